# src/perf_enhancer/services/cache_header_service.py
import logging
from typing import List, Tuple

from perf_enhancer.model import EnhancerSettings

logger = logging.getLogger(__name__)

STALE_IF_ERROR = 14400  # seconds


class CacheHeaderService:
    """Builds the Cache-Control header from the homepage/inner page TTLs."""

    def __init__(self, settings: EnhancerSettings):
        self.settings = settings

    def cache_control(self, is_homepage: bool) -> str:
        max_age = self.settings.ttl_homepage if is_homepage else self.settings.ttl_inner
        revalidate = max_age * 2
        return (
            f"public, max-age={max_age}, must-revalidate, "
            f"stale-while-revalidate={revalidate}, stale-if-error={STALE_IF_ERROR}"
        )

    def headers(self, is_homepage: bool = False) -> List[Tuple[str, str]]:
        """Returns the header to set (replacing any existing Cache-Control), or nothing when disabled."""
        if not self.settings.cache_headers:
            return []
        return [("Cache-Control", self.cache_control(is_homepage))]
