"""GraphQL documents sent to the upstream content source.

``MUTATIONS`` holds the write operations the cache knows how to replay; each
name maps to the collection it targets via ``MUTATION_COLLECTIONS``.
"""

PING_QUERY = "query Ping { __typename }"

SNAPSHOT_QUERY = """
query ContentSnapshot($first: Int = 100) {
  posts(first: $first) {
    nodes {
      databaseId
      id
      title
      content
      excerpt
      slug
      date
      status
      author { node { databaseId name } }
      categories { nodes { databaseId name slug } }
      tags { nodes { databaseId name slug } }
    }
  }
  pages(first: $first) {
    nodes { databaseId id title content slug status }
  }
  categories(first: $first) {
    nodes { databaseId id name slug description count }
  }
  tags(first: $first) {
    nodes { databaseId id name slug count }
  }
  users(first: $first) {
    nodes { databaseId id name slug }
  }
  generalSettings { title description url }
  menuItems(first: $first) {
    nodes { databaseId label url parentDatabaseId }
  }
}
"""

MUTATIONS: dict[str, str] = {
    # Posts
    "createPost": """
mutation CreatePost($input: CreatePostInput!) {
  createPost(input: $input) {
    post { databaseId id title content excerpt slug date status }
  }
}
""",
    "updatePost": """
mutation UpdatePost($input: UpdatePostInput!) {
  updatePost(input: $input) {
    post { databaseId id title content excerpt slug date status }
  }
}
""",
    "deletePost": """
mutation DeletePost($input: DeletePostInput!) {
  deletePost(input: $input) {
    deletedId
    post { databaseId id title }
  }
}
""",
    # Pages
    "createPage": """
mutation CreatePage($input: CreatePageInput!) {
  createPage(input: $input) {
    page { databaseId id title content slug status }
  }
}
""",
    "updatePage": """
mutation UpdatePage($input: UpdatePageInput!) {
  updatePage(input: $input) {
    page { databaseId id title content slug status }
  }
}
""",
    "deletePage": """
mutation DeletePage($input: DeletePageInput!) {
  deletePage(input: $input) {
    deletedId
    page { databaseId id title }
  }
}
""",
    # Categories
    "createCategory": """
mutation CreateCategory($input: CreateCategoryInput!) {
  createCategory(input: $input) {
    category { databaseId id name slug description }
  }
}
""",
    "updateCategory": """
mutation UpdateCategory($input: UpdateCategoryInput!) {
  updateCategory(input: $input) {
    category { databaseId id name slug description }
  }
}
""",
    "deleteCategory": """
mutation DeleteCategory($input: DeleteCategoryInput!) {
  deleteCategory(input: $input) {
    deletedId
    category { databaseId id name }
  }
}
""",
    # Tags
    "createTag": """
mutation CreateTag($input: CreateTagInput!) {
  createTag(input: $input) {
    tag { databaseId id name slug }
  }
}
""",
    "updateTag": """
mutation UpdateTag($input: UpdateTagInput!) {
  updateTag(input: $input) {
    tag { databaseId id name slug }
  }
}
""",
    "deleteTag": """
mutation DeleteTag($input: DeleteTagInput!) {
  deleteTag(input: $input) {
    deletedId
    tag { databaseId id name }
  }
}
""",
}

MUTATION_COLLECTIONS: dict[str, str] = {
    "createPost": "posts",
    "updatePost": "posts",
    "deletePost": "posts",
    "createPage": "pages",
    "updatePage": "pages",
    "deletePage": "pages",
    "createCategory": "categories",
    "updateCategory": "categories",
    "deleteCategory": "categories",
    "createTag": "tags",
    "updateTag": "tags",
    "deleteTag": "tags",
}
