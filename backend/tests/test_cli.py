from datetime import date

from backoffice.cli import SEED_OUTLETS, SEED_PRODUCTS
from backoffice.models import Customer, Product, Receipt, WeeklyPrice
from backoffice.models.receipts import STATUS_UNPAID
from backoffice.services.outlet_service import backfill_receipt_outlets


def test_system_init_seeds_empty_tables_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert f"Outlets created: {len(SEED_OUTLETS)}" in result.output
    assert db_session.query(Product).count() == len(SEED_PRODUCTS)

    again = runner.invoke(args=["system", "init"])
    assert "Outlets created: 0" in again.output
    assert db_session.query(Customer).count() == len(SEED_OUTLETS)


def test_clone_last_week_command(app, db_session, make_product, make_weekly_price):
    cabbage = make_product("Cabbage", unit_cost="10")
    make_weekly_price(cabbage, date(2026, 3, 2), date(2026, 3, 8), markup="4")

    result = app.test_cli_runner().invoke(args=["prices", "clone-last-week", "--date", "2026-03-10"])

    assert result.exit_code == 0, result.output
    assert "Cloned 1 weekly price(s)" in result.output
    assert db_session.query(WeeklyPrice).filter(WeeklyPrice.effective_from == date(2026, 3, 9)).count() == 1


def test_clone_last_week_rejects_bad_date(app, db_session):
    result = app.test_cli_runner().invoke(args=["prices", "clone-last-week", "--date", "soon"])

    assert result.exit_code != 0


def test_backfill_links_only_unambiguous_names(db_session, make_product, make_outlet, make_receipt):
    cabbage = make_product("Cabbage")
    autoliv = make_outlet("Autoliv")
    make_outlet("GMC")
    make_outlet("gmc ")
    day = date(2026, 3, 10)
    linked = make_receipt(None, day, {cabbage: 1}, status=STATUS_UNPAID, customer_name="autoliv")
    make_receipt(None, day, {cabbage: 1}, status=STATUS_UNPAID, customer_name="GMC")
    make_receipt(None, day, {cabbage: 1}, status=STATUS_UNPAID, customer_name="Nowhere")

    preview = backfill_receipt_outlets(db_session, dry_run=True)
    assert preview["linked"] == 1
    assert db_session.get(Receipt, linked.id).customer_id is None

    report = backfill_receipt_outlets(db_session)
    db_session.commit()

    assert report["scanned"] == 3
    assert report["ambiguous"] == ["GMC"]
    assert report["unmatched"] == ["Nowhere"]
    assert db_session.get(Receipt, linked.id).customer_id == autoliv.id


def test_backfill_command_dry_run(app, db_session, make_product, make_outlet, make_receipt):
    cabbage = make_product("Cabbage")
    make_outlet("Autoliv")
    make_receipt(None, date(2026, 3, 10), {cabbage: 1}, status=STATUS_UNPAID, customer_name="Autoliv")

    result = app.test_cli_runner().invoke(args=["receipts", "backfill-outlets", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "DRY RUN Linked 1 receipt(s)" in result.output
    assert db_session.query(Receipt).filter(Receipt.customer_id.is_(None)).count() == 1
