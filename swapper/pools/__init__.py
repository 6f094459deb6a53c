"""Pool lookup package.

Provides PoolRegistry for resolving pools and reserves from the chain.
"""

from .registry import DEFAULT_QUERY_TIMEOUT, PoolRegistry

__all__ = [
    "PoolRegistry",
    "DEFAULT_QUERY_TIMEOUT",
]
