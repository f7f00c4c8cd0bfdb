from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from resto.application.dto.responses import MenuResponse
from resto.application.mappers.menu_mapper import to_menu_response
from resto.application.metrics.lifecycle import record_menu_cache_lookup
from resto.application.ports.cache import CacheStore
from resto.application.ports.repositories import MenuRepository

logger = logging.getLogger(__name__)

MENU_CACHE_KEY = "menu:items"


class GetMenu:
    def __init__(
        self,
        repository: MenuRepository,
        cache: CacheStore,
        ttl_seconds: int = 300,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("menu_cache_read_failed", exc_info=True)
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("menu_cache_write_failed", exc_info=True)

    def execute(self) -> MenuResponse:
        payload = self._cache_get(MENU_CACHE_KEY)
        if payload:
            try:
                cached = MenuResponse.model_validate_json(payload)
            except ValidationError:
                logger.warning("menu_cache_entry_invalid")
            else:
                record_menu_cache_lookup(hit=True)
                return cached

        record_menu_cache_lookup(hit=False)
        items = sorted(
            self._repository.list_items(),
            key=lambda item: ((item.category or ""), item.name),
        )
        response = to_menu_response(items, generated_at=datetime.now(timezone.utc))
        self._cache_set(MENU_CACHE_KEY, response.model_dump_json())
        return response
