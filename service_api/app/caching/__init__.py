"""
SRD API caching package.

List queries go through a cache-aside resolver; entries are written once
and expire by TTL. There is no partial invalidation.
"""

from .cache_aside import CacheAsideResolver

__all__ = ["CacheAsideResolver"]
