"""
Weekly price resolution and write-path tests.

Covers:
- master defaults when no override is in force
- override precedence (cost / fee overrides, markup, stored delivery price)
- latest effective_from then highest id wins among overlapping overrides
- posting the default price writes nothing
- posted prices create / update the week's override and prune shadowed rows
- comparison screen and clone-last-week
"""

from datetime import date
from decimal import Decimal

from backoffice.models import Product, WeeklyPrice
from backoffice.services import pricing_service
from backoffice.services.pricing_service import pick_override, resolve_price


TUESDAY = date(2026, 3, 10)
MONDAY = date(2026, 3, 9)
SUNDAY = date(2026, 3, 15)


def _product(**fields):
    defaults = {"id": 7, "name": "Cabbage", "unit_cost": Decimal("50"), "markup": Decimal("8"),
                "delivery_fee": Decimal("4")}
    defaults.update(fields)
    return Product(**defaults)


def _override(**fields):
    defaults = {"id": 1, "product_id": 7, "effective_from": MONDAY, "effective_to": SUNDAY,
                "markup": Decimal("0"), "base_price": Decimal("0"), "delivery_price": Decimal("0")}
    defaults.update(fields)
    return WeeklyPrice(**defaults)


def test_no_override_uses_master_defaults():
    result = resolve_price(_product(), None, TUESDAY)

    assert result.cost == Decimal("50")
    assert result.markup == Decimal("8")
    assert result.delivery_fee == Decimal("4")
    assert result.delivery_price == Decimal("62")
    assert not result.has_override


def test_override_precedence_ignores_master_values():
    override = _override(cost_override=Decimal("10"), delivery_fee_override=Decimal("2"), markup=Decimal("3"))

    result = resolve_price(_product(), override, TUESDAY)

    assert result.delivery_price == Decimal("15")
    assert result.cost == Decimal("10")
    assert result.delivery_fee == Decimal("2")
    assert result.override_id == 1


def test_override_outside_its_range_is_ignored():
    override = _override(cost_override=Decimal("10"), markup=Decimal("3"))

    result = resolve_price(_product(), override, date(2026, 3, 16))

    assert result.delivery_price == Decimal("62")
    assert not result.has_override


def test_legacy_base_price_gives_markup_when_markup_is_zero():
    override = _override(cost_override=Decimal("20"), base_price=Decimal("26"))

    result = resolve_price(_product(), override, TUESDAY)

    assert result.markup == Decimal("6")
    assert result.delivery_price == Decimal("30")  # 20 + 6 + master fee 4


def test_stored_delivery_price_wins_over_recomputation():
    override = _override(markup=Decimal("3"), delivery_price=Decimal("99"))

    result = resolve_price(_product(), override, TUESDAY)

    assert result.delivery_price == Decimal("99")
    assert result.markup == Decimal("3")


def test_null_cost_override_inherits_master_cost():
    override = _override(cost_override=None, markup=Decimal("5"))

    result = resolve_price(_product(), override, TUESDAY)

    assert result.cost == Decimal("50")
    assert result.delivery_price == Decimal("59")


def test_pick_override_latest_effective_from_then_highest_id():
    older = _override(id=5, effective_from=date(2026, 3, 9), effective_to=date(2026, 3, 15))
    newer = _override(id=9, effective_from=date(2026, 3, 10), effective_to=date(2026, 3, 16))
    same_start_lower_id = _override(id=8, effective_from=date(2026, 3, 10), effective_to=date(2026, 3, 16))

    assert pick_override([older, newer], TUESDAY).id == 9
    assert pick_override([newer, older], TUESDAY).id == 9
    assert pick_override([same_start_lower_id, newer], TUESDAY).id == 9
    assert pick_override([older, newer], date(2026, 3, 1)) is None


def test_resolve_prices_breaks_ties_from_database(db_session, make_product):
    product = make_product("Cabbage", unit_cost="50", markup="8", delivery_fee="4")
    db_session.add_all([
        WeeklyPrice(id=5, product_id=product.id, effective_from=date(2026, 3, 9), effective_to=date(2026, 3, 15),
                    markup=Decimal("1"), base_price=Decimal("0"), delivery_price=Decimal("0")),
        WeeklyPrice(id=9, product_id=product.id, effective_from=date(2026, 3, 10), effective_to=date(2026, 3, 16),
                    markup=Decimal("2"), base_price=Decimal("0"), delivery_price=Decimal("0")),
    ])
    db_session.commit()

    result = pricing_service.resolve_prices(db_session, [product.id], TUESDAY)[product.id]

    assert result.override_id == 9
    assert result.delivery_price == Decimal("56")  # 50 + 2 + 4


def test_posting_default_price_writes_nothing(db_session, make_product):
    product = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")

    changed = pricing_service.apply_posted_prices(db_session, TUESDAY, {product.id: Decimal("15.004")})
    db_session.commit()

    assert changed == []
    assert db_session.query(WeeklyPrice).count() == 0


def test_zero_or_negative_posted_price_is_ignored(db_session, make_product):
    product = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")

    changed = pricing_service.apply_posted_prices(
        db_session, TUESDAY, {product.id: Decimal("0"), 999: Decimal("20")}
    )

    assert changed == []
    assert db_session.query(WeeklyPrice).count() == 0


def test_posted_price_creates_week_override(db_session, make_product):
    product = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")

    changed = pricing_service.apply_posted_prices(db_session, TUESDAY, {product.id: Decimal("18")})
    db_session.commit()

    assert len(changed) == 1
    wp = db_session.query(WeeklyPrice).one()
    assert wp.effective_from == MONDAY
    assert wp.effective_to == SUNDAY
    assert wp.markup == Decimal("6.00")
    assert wp.base_price == Decimal("16.00")
    assert wp.delivery_price == Decimal("18.00")
    assert pricing_service.resolve_prices(db_session, [product.id], TUESDAY)[product.id].delivery_price == Decimal("18.00")


def test_posted_price_updates_winner_and_prunes_shadowed(db_session, make_product, make_weekly_price):
    product = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")
    shadowed = make_weekly_price(product, MONDAY, SUNDAY, markup="4")
    winner = make_weekly_price(product, TUESDAY, SUNDAY, cost_override="12", markup="4")
    shadowed_id, winner_id = shadowed.id, winner.id

    pricing_service.apply_posted_prices(db_session, TUESDAY, {product.id: Decimal("20")})
    db_session.commit()

    rows = db_session.query(WeeklyPrice).all()
    assert [wp.id for wp in rows] == [winner_id]
    assert db_session.get(WeeklyPrice, shadowed_id) is None
    assert rows[0].markup == Decimal("6.00")  # 20 - 12 - 2
    assert rows[0].base_price == Decimal("18.00")


def test_price_versus_lists_active_products(db_session, make_product, make_weekly_price):
    cabbage = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")
    make_product("Ampalaya", unit_cost="20")
    make_product("Retired", is_active=False)
    make_weekly_price(cabbage, MONDAY, SUNDAY, markup="5")

    screen = pricing_service.price_versus(db_session, TUESDAY)

    assert screen["week_start"] == "2026-03-09"
    assert [item["product_name"] for item in screen["items"]] == ["Ampalaya", "Cabbage"]
    cabbage_row = screen["items"][1]
    assert cabbage_row["has_weekly_record"] is True
    assert Decimal(cabbage_row["delivery_price"]) == Decimal("17")


def test_save_price_versus_routes_markup_through_write_path(db_session, make_product):
    product = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")

    unchanged = pricing_service.save_price_versus(db_session, TUESDAY, {product.id: Decimal("3")})
    changed = pricing_service.save_price_versus(db_session, TUESDAY, {product.id: Decimal("7")})
    db_session.commit()

    assert unchanged == []
    assert len(changed) == 1
    assert changed[0].delivery_price == Decimal("19.00")


def test_clone_last_week_skips_products_already_priced(db_session, make_product, make_weekly_price):
    cabbage = make_product("Cabbage", unit_cost="10")
    carrots = make_product("Carrots", unit_cost="10")
    make_weekly_price(cabbage, date(2026, 3, 2), date(2026, 3, 8), markup="4", delivery_price="16")
    make_weekly_price(carrots, date(2026, 3, 2), date(2026, 3, 8), markup="5")
    make_weekly_price(carrots, MONDAY, SUNDAY, markup="9")

    created = pricing_service.clone_last_week(db_session, TUESDAY)
    db_session.commit()

    assert [wp.product_id for wp in created] == [cabbage.id]
    assert created[0].effective_from == MONDAY
    assert created[0].effective_to == SUNDAY
    assert created[0].delivery_price == Decimal("16")

    again = pricing_service.clone_last_week(db_session, TUESDAY)
    assert again == []
