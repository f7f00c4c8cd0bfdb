from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.use_cases.get_menu import MENU_CACHE_KEY, GetMenu


def test_menu_sorted_by_category_then_name_and_cached(world) -> None:
    world.add_menu_item("itm_1", "Paneer Tikka", 28000, category="Starters")
    world.add_menu_item("itm_2", "Butter Chicken", 42000, category="Mains")
    world.add_menu_item("itm_3", "Dal Makhani", 30000, category="Mains")
    use_case = GetMenu(world.menu, world.cache, ttl_seconds=120)

    first = use_case.execute()
    second = use_case.execute()

    assert [item.name for item in first.items] == ["Butter Chicken", "Dal Makhani", "Paneer Tikka"]
    assert first.items[0].priceMoney.currency == "INR"
    assert second == first
    assert world.menu.list_calls == 1
    assert world.cache.ttls[MENU_CACHE_KEY] == 120


def test_menu_served_from_repository_when_cache_down(world) -> None:
    world.add_menu_item("itm_1", "Gulab Jamun", 15000, category="Desserts")
    world.cache.fail = True

    response = GetMenu(world.menu, world.cache).execute()

    assert [item.itemId for item in response.items] == ["itm_1"]


def test_corrupt_cache_entry_is_rebuilt(world) -> None:
    world.add_menu_item("itm_1", "Gulab Jamun", 15000)
    world.cache.values[MENU_CACHE_KEY] = "{not json"

    response = GetMenu(world.menu, world.cache).execute()

    assert len(response.items) == 1
    assert world.menu.list_calls == 1
