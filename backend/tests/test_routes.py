"""
HTTP-level tests: request parsing, status codes and response shapes.
"""

from datetime import date
from decimal import Decimal

from backoffice.models import Receipt
from backoffice.models.receipts import STATUS_PAID, STATUS_UNPAID


DAY = "2026-03-10"


def _save_matrix(client, product, outlet, quantity=5, **extra):
    body = {
        "date": DAY,
        "quantities": [{"product_id": product.id, "outlet_id": outlet.id, "quantity": quantity}],
    }
    body.update(extra)
    return client.post("/api/orders/matrix", json=body)


class TestHealth:
    def test_degraded_without_matrix_outlets(self, client, db_session):
        response = client.get("/api/system/health")

        assert response.status_code == 200
        assert response.json["status"] == "degraded"
        assert response.json["checks"]["database"]["status"] == "healthy"

    def test_healthy_with_grouped_outlet(self, client, db_session, make_outlet):
        make_outlet("Autoliv")

        response = client.get("/api/system/health")

        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert response.json["checks"]["matrix"]["details"]["matrix_outlets"] == 1


class TestOrderMatrix:
    def test_save_and_read_back(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")
        outlet = make_outlet("Autoliv")

        saved = _save_matrix(client, cabbage, outlet, prices={str(cabbage.id): "16"})
        assert saved.status_code == 200
        assert saved.json["receipts"][0]["total_amount"] == "80.00"

        view = client.get(f"/api/orders/matrix?date={DAY}")
        assert view.status_code == 200
        assert view.json["cells"] == [
            {"product_id": cabbage.id, "outlet_id": outlet.id, "quantity": 5, "status": STATUS_UNPAID}
        ]
        assert view.json["products"][0]["delivery_price"] == "16.00"
        assert view.json["products"][0]["has_weekly_record"] is True

    def test_unknown_outlet_is_404(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10")
        make_outlet("Autoliv")

        response = client.post("/api/orders/matrix", json={
            "date": DAY,
            "quantities": [{"product_id": cabbage.id, "outlet_id": 9999, "quantity": 1}],
        })

        assert response.status_code == 404
        assert db_session.query(Receipt).count() == 0

    def test_missing_date_is_400(self, client, db_session):
        response = client.post("/api/orders/matrix", json={"quantities": []})

        assert response.status_code == 400
        assert response.json["errors"] == ["date is required"]

    def test_bad_cells_are_400(self, client, db_session):
        response = client.post("/api/orders/matrix", json={
            "date": DAY,
            "quantities": [{"product_id": "x", "outlet_id": 1, "quantity": 1}, "oops"],
        })

        assert response.status_code == 400
        assert len(response.json["errors"]) == 2

    def test_bad_page_falls_back_to_first(self, client, db_session, make_outlet):
        make_outlet("Autoliv")

        response = client.get(f"/api/orders/matrix?date={DAY}&page=abc")

        assert response.status_code == 200
        assert response.json["pagination"]["outlet_page"] == 1


class TestOutletOrder:
    def test_orphan_price_is_400_with_every_error(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10")
        carrots = make_product("Carrots", unit_cost="10")
        outlet = make_outlet("Autoliv")

        response = client.post("/api/orders/outlet", json={
            "date": DAY,
            "customer_id": outlet.id,
            "quantities": {},
            "prices": {str(cabbage.id): "20", str(carrots.id): "18"},
        })

        assert response.status_code == 400
        assert len(response.json["errors"]) == 2

    def test_save_then_view(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")
        outlet = make_outlet("Autoliv")

        saved = client.post("/api/orders/outlet", json={
            "date": DAY, "customer_id": outlet.id, "quantities": {str(cabbage.id): 4},
        })
        assert saved.status_code == 200
        assert saved.json["receipt"]["lines"][0]["quantity"] == 4

        view = client.get(f"/api/orders/outlet?date={DAY}&customer_id={outlet.id}")
        assert view.json["products"][0]["quantity"] == 4


class TestReceipts:
    def test_unknown_receipt_is_404(self, client, db_session):
        assert client.get("/api/receipts/12345").status_code == 404

    def test_mark_paid_once(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")
        outlet = make_outlet("Autoliv")
        receipt_id = _save_matrix(client, cabbage, outlet).json["receipts"][0]["id"]

        paid = client.post(f"/api/receipts/{receipt_id}/mark-paid", json={"recorded_by": "cashier"})
        assert paid.status_code == 200
        assert paid.json["receipt"]["status"] == STATUS_PAID
        assert paid.json["receipt"]["payments"][0]["amount"] == "75.00"

        again = client.post(f"/api/receipts/{receipt_id}/mark-paid")
        assert again.status_code == 409

    def test_paid_receipt_becomes_floor_for_next_save(self, client, db_session, make_product, make_outlet):
        cabbage = make_product("Cabbage", unit_cost="10")
        outlet = make_outlet("Autoliv")
        receipt_id = _save_matrix(client, cabbage, outlet, quantity=5).json["receipts"][0]["id"]
        client.post(f"/api/receipts/{receipt_id}/mark-paid")

        response = _save_matrix(client, cabbage, outlet, quantity=7)

        assert response.status_code == 200
        drafts = db_session.query(Receipt).filter(Receipt.status == STATUS_UNPAID).all()
        assert [line.quantity for line in drafts[0].lines] == [2]

    def test_unknown_payment_method_is_400(self, client, db_session):
        response = client.post("/api/receipts/1/mark-paid", json={"method": "BARTER"})

        assert response.status_code == 400


class TestPurchases:
    def test_create_pay_and_settle(self, client, db_session):
        created = client.post("/api/purchases", json={
            "supplier_name": "Carbon Market",
            "date": DAY,
            "lines": [{"item_name": "Cabbage", "quantity": 10, "cost": "8.50"}],
        })
        assert created.status_code == 201
        purchase = created.json["purchase"]
        assert purchase["total_amount"] == "85.00"
        assert purchase["date"].startswith(DAY)

        partial = client.post(f"/api/purchases/{purchase['id']}/payments", json={"amount": "40"})
        assert partial.json["purchase"]["status"] == "PARTIAL"

        settled = client.post(f"/api/purchases/{purchase['id']}/mark-paid")
        assert settled.json["purchase"]["status"] == "PAID"
        assert settled.json["purchase"]["balance"] == "0.00"

    def test_lines_must_be_a_list(self, client, db_session):
        response = client.post("/api/purchases", json={"lines": "cabbage"})

        assert response.status_code == 400

    def test_line_that_is_not_an_object_is_400(self, client, db_session):
        response = client.post("/api/purchases", json={"supplier_name": "Carbon Market", "lines": [1]})

        assert response.status_code == 400
        assert response.json["errors"] == ["lines[0] must be an object"]

    def test_unknown_purchase_is_404(self, client, db_session):
        response = client.post("/api/purchases/777/payments", json={"amount": "1"})

        assert response.status_code == 404


class TestWeeklyPrices:
    def test_versus_save_and_clone(self, client, db_session, make_product):
        cabbage = make_product("Cabbage", unit_cost="10", markup="3", delivery_fee="2")

        saved = client.post("/api/weekly-prices/versus", json={
            "date": "2026-03-03", "markups": {str(cabbage.id): "5"},
        })
        assert saved.status_code == 200
        assert saved.json["count"] == 1

        cloned = client.post("/api/weekly-prices/clone-last-week", json={"date": DAY})
        assert cloned.status_code == 201
        assert cloned.json["count"] == 1

        screen = client.get(f"/api/weekly-prices/versus?date={DAY}")
        assert screen.json["items"][0]["has_weekly_record"] is True
        assert Decimal(screen.json["items"][0]["delivery_price"]) == Decimal("17")


class TestProfitReport:
    def test_summary_and_inputs(self, client, db_session, make_product, make_outlet, make_receipt):
        cabbage = make_product("Cabbage", unit_cost="10")
        outlet = make_outlet("Autoliv")
        make_receipt(outlet, date(2026, 3, 10), {cabbage: 4}, status=STATUS_PAID)

        added = client.post("/api/reports/profit/deductions", json={
            "date": DAY, "description": "Fuel", "amount": "5",
        })
        assert added.status_code == 201
        assert client.post("/api/reports/profit/capital", json={"date": DAY, "amount": "5"}).status_code == 201
        assert client.post("/api/reports/profit/partner-purchases", json={
            "date": DAY, "partner_name": "Partner 2", "amount": "1",
        }).status_code == 201

        response = client.get(f"/api/reports/profit?start={DAY}&end={DAY}")

        assert response.status_code == 200
        assert response.json["net_profit"] == "10.00"
        assert response.json["partners"][1]["final"] == "5.00"

    def test_share_out_of_range_is_400(self, client, db_session):
        response = client.get("/api/reports/profit?partner1_share=150")

        assert response.status_code == 400

    def test_negative_deduction_is_400(self, client, db_session):
        response = client.post("/api/reports/profit/deductions", json={
            "date": DAY, "description": "Fuel", "amount": "-5",
        })

        assert response.status_code == 400
