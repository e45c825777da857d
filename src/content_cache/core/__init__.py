"""Remote execution against the upstream GraphQL content source."""

from .async_utils import run_sync, run_sync_limited
from .client import GraphQLClient

__all__ = ["GraphQLClient", "run_sync", "run_sync_limited"]
