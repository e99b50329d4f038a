# app/utils/cache_invalidation.py
"""Cache invalidation utilities."""
import logging
from typing import Any

from ..core.cache import cache

logger = logging.getLogger(__name__)


async def invalidate_directory_cache(org_id: Any) -> None:
    """Drop cached recipient lists and dashboard counts for an org."""
    removed = 0
    for prefix in ("recipients", "dashboard"):
        removed += await cache.delete_prefix(prefix, org_id)
    if removed:
        logger.debug(f"Invalidated {removed} cache entries for org {org_id}")
