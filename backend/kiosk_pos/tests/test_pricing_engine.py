from datetime import datetime
from decimal import Decimal

import pytest

from kiosk_pos.core import pricing_engine
from kiosk_pos.core.errors import ValidationError
from kiosk_pos.models.price_list import PriceList
from kiosk_pos.models.product import Product


# 2024-06-02 is a Sunday
SUNDAY = datetime(2024, 6, 2, 12, 0)
MONDAY_19 = datetime(2024, 6, 3, 19, 0)


def price_list(id, pct="0", rule="none", priority=0, schedule=None, created_at=None, **kwargs):
    return PriceList(
        id=id,
        name=kwargs.pop("name", f"Lista {id}"),
        adjustment_percentage=Decimal(pct),
        rounding_rule=rule,
        is_active=kwargs.pop("is_active", True),
        priority=priority,
        schedule=schedule,
        excluded_category_ids=kwargs.pop("excluded_category_ids", None),
        excluded_product_ids=kwargs.pop("excluded_product_ids", None),
        created_at=created_at or datetime(2024, 1, 1),
    )


def product(id=1, price="1000", category_id=None):
    return Product(id=id, name=f"Producto {id}", price=Decimal(price), category_id=category_id)


MONDAY_EVENING = [{"day": 1, "start": "18:00", "end": "22:00"}]


@pytest.mark.parametrize("amount,rule,expected", [
    ("125", "nearest_10", "130"),
    ("124.99", "nearest_10", "120"),
    ("1098.9", "nearest_10", "1100"),
    ("175", "nearest_50", "200"),
    ("174.99", "nearest_50", "150"),
    ("1250", "nearest_100", "1300"),
    ("1249", "nearest_100", "1200"),
    ("366.30", "none", "366.30"),
])
def test_round_price(amount, rule, expected):
    assert pricing_engine.round_price(Decimal(amount), rule) == Decimal(expected)


def test_round_price_unknown_rule():
    with pytest.raises(ValidationError):
        pricing_engine.round_price(Decimal("10"), "nearest_7")


def test_day_of_week_starts_on_sunday():
    assert pricing_engine.day_of_week(SUNDAY) == 0
    assert pricing_engine.day_of_week(MONDAY_19) == 1
    assert pricing_engine.day_of_week(datetime(2024, 6, 1, 9, 0)) == 6


def test_window_is_half_open():
    pl = price_list(1, schedule=MONDAY_EVENING)
    assert pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 18, 0))
    assert pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 21, 59))
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 22, 0))
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 17, 59))
    # same hour, other day
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 4, 19, 0))


def test_overnight_window_never_matches():
    pl = price_list(1, schedule=[{"day": 1, "start": "22:00", "end": "02:00"}])
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 23, 0))
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 1, 0))
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 4, 1, 0))


def test_malformed_schedule_entries_are_ignored():
    pl = price_list(1, schedule=[{"day": 9, "start": "10:00", "end": "11:00"}, {"day": 1, "start": "x"}] + MONDAY_EVENING)
    assert pricing_engine.is_in_window(pl, MONDAY_19)


def test_no_lists_returns_base_price():
    resolution = pricing_engine.resolve(product(price="999.5"), [], MONDAY_19)
    assert resolution.price_list is None
    assert resolution.final_price == Decimal("999.50")


def test_empty_schedule_is_manual_only():
    manual = price_list(1, pct="20", rule="nearest_10")
    assert pricing_engine.resolve_price_list(product(), [manual], MONDAY_19) is None
    selected = pricing_engine.resolve_price_list(product(), [manual], MONDAY_19, manual_list_id=1)
    assert selected is manual


def test_adjustment_then_rounding():
    night = price_list(1, pct="15", rule="nearest_10", schedule=MONDAY_EVENING)
    resolution = pricing_engine.resolve(product(price="999"), [night], MONDAY_19)
    # 999 * 1.15 = 1148.85 -> 1150
    assert resolution.price_list is night
    assert resolution.base_price == Decimal("999.00")
    assert resolution.final_price == Decimal("1150.00")


def test_discount_without_rounding_keeps_cents():
    promo = price_list(1, pct="-10", schedule=MONDAY_EVENING)
    assert pricing_engine.resolve_effective_price(product(price="333"), [promo], MONDAY_19) == Decimal("299.70")


def test_final_price_has_two_decimals():
    pl = price_list(1, pct="7.5", schedule=MONDAY_EVENING)
    final = pricing_engine.resolve_effective_price(product(price="10.01"), [pl], MONDAY_19)
    assert final.as_tuple().exponent == -2


def test_category_exclusion_falls_back_to_base():
    pl = price_list(1, pct="20", schedule=MONDAY_EVENING, excluded_category_ids=[7])
    resolution = pricing_engine.resolve(product(category_id=7), [pl], MONDAY_19)
    assert resolution.price_list is None
    assert resolution.final_price == Decimal("1000.00")


def test_product_exclusion_compares_ids_as_strings():
    pl = price_list(1, pct="20", schedule=MONDAY_EVENING, excluded_product_ids=["5"])
    assert pricing_engine.resolve_price_list(product(id=5), [pl], MONDAY_19) is None
    assert pricing_engine.resolve_price_list(product(id=6), [pl], MONDAY_19) is pl


def test_excluded_list_leaves_room_for_next_candidate():
    high = price_list(1, pct="30", priority=10, schedule=MONDAY_EVENING, excluded_category_ids=[7])
    low = price_list(2, pct="10", priority=1, schedule=MONDAY_EVENING)
    assert pricing_engine.resolve_price_list(product(category_id=7), [high, low], MONDAY_19) is low


def test_inactive_list_is_ignored():
    pl = price_list(1, pct="20", schedule=MONDAY_EVENING, is_active=False)
    assert pricing_engine.resolve_price_list(product(), [pl], MONDAY_19) is None
    assert pricing_engine.resolve_price_list(product(), [pl], MONDAY_19, manual_list_id=1) is None


def test_highest_priority_wins():
    low = price_list(1, pct="10", priority=1, schedule=MONDAY_EVENING)
    high = price_list(2, pct="25", priority=5, schedule=MONDAY_EVENING)
    assert pricing_engine.resolve_price_list(product(), [high, low], MONDAY_19) is high
    assert pricing_engine.resolve_price_list(product(), [low, high], MONDAY_19) is high


def test_priority_tie_breaks_on_newest_then_id():
    older = price_list(1, priority=3, schedule=MONDAY_EVENING, created_at=datetime(2024, 1, 1))
    newer = price_list(2, priority=3, schedule=MONDAY_EVENING, created_at=datetime(2024, 3, 1))
    assert pricing_engine.resolve_price_list(product(), [newer, older], MONDAY_19) is newer

    same_a = price_list(3, priority=3, schedule=MONDAY_EVENING, created_at=datetime(2024, 3, 1))
    assert pricing_engine.resolve_price_list(product(), [same_a, newer], MONDAY_19) is same_a
    assert pricing_engine.resolve_price_list(product(), [newer, same_a], MONDAY_19) is same_a


def test_manual_choice_replaces_automatic_resolution():
    auto = price_list(1, pct="50", priority=99, schedule=MONDAY_EVENING)
    manual = price_list(2, pct="-10")
    resolution = pricing_engine.resolve(product(), [auto, manual], MONDAY_19, manual_list_id=2)
    assert resolution.price_list_id == 2
    assert resolution.price_list_name == "Lista 2"
    assert resolution.final_price == Decimal("900.00")


def test_manual_choice_respects_exclusions():
    manual = price_list(2, pct="-10", excluded_product_ids=[1])
    resolution = pricing_engine.resolve(product(id=1), [manual], MONDAY_19, manual_list_id=2)
    assert resolution.price_list is None
    assert resolution.final_price == Decimal("1000.00")


def test_unknown_manual_list_resolves_to_base():
    auto = price_list(1, pct="50", schedule=MONDAY_EVENING)
    assert pricing_engine.resolve_price_list(product(), [auto], MONDAY_19, manual_list_id=42) is None


def test_schedule_window_from_entry():
    window = pricing_engine.ScheduleWindow.from_entry({"day": 0, "start": "09:30", "end": "13:00"})
    assert window.is_valid
    assert window.contains(datetime(2024, 6, 2, 9, 30))
    assert pricing_engine.ScheduleWindow.from_entry({"day": True, "start": "09:30", "end": "13:00"}) is None
    assert pricing_engine.ScheduleWindow.from_entry("lunes") is None


def test_window_can_end_at_midnight():
    pl = price_list(1, schedule=[{"day": 1, "start": "22:00", "end": "24:00"}])
    assert pricing_engine.is_in_window(pl, datetime(2024, 6, 3, 23, 59))
    assert not pricing_engine.is_in_window(pl, datetime(2024, 6, 4, 0, 0))
    assert pricing_engine.ScheduleWindow.from_entry({"day": 1, "start": "24:00", "end": "24:00"}).is_valid is False
