from __future__ import annotations

from fastapi import APIRouter

from resto.application.dto.responses import MenuResponse
from resto.application.use_cases.get_menu import GetMenu
from resto.config import get_settings
from resto.infrastructure.cache.cache_store import RedisCacheStore
from resto.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository

router = APIRouter()


def _get_menu_use_case() -> GetMenu:
    return GetMenu(
        repository=SqlAlchemyMenuRepository(),
        cache=RedisCacheStore(),
        ttl_seconds=get_settings().menu_cache_ttl_seconds,
    )


@router.get("/v1/menu", response_model=MenuResponse)
def get_menu() -> MenuResponse:
    return _get_menu_use_case().execute()
