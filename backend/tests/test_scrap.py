# Overview: Pytest coverage for the scrap flow.

from stocknexus.constants import Department
from stocknexus.models import Alert, InventoryItem, ScrapItem


class TestScrapItem:

    def test_partial_scrap_decrements_and_reconciles(self, client, db_session, hod_physics_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 14, model="DS1054Z", serial_number="OSC-9")

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 5, "reason": "Burnt display", "notes": "Bench 3",
        }, headers=hod_physics_headers)

        assert resp.status_code == 201
        record = resp.json["scrap_item"]
        assert record["item_name"] == "Oscilloscope"
        assert record["item_model"] == "DS1054Z"
        assert record["item_serial_number"] == "OSC-9"
        assert record["quantity"] == 5
        assert record["scrapped_by_name"] == "Hod Physics"

        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).quantity == 9
        alerts = db_session.query(Alert).filter_by(item_name="Oscilloscope", is_resolved=False).all()
        assert len(alerts) == 1
        assert "Total: 9" in alerts[0].message

    def test_scrapping_everything_deletes_row(self, client, db_session, hod_physics_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 2, "reason": "Obsolete",
        }, headers=hod_physics_headers)

        assert resp.status_code == 201
        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id) is None

        record = db_session.query(ScrapItem).one()
        assert record.item_id is None
        assert record.item_name == "Oscilloscope"

        assert db_session.query(Alert).filter_by(item_name="Oscilloscope").count() == 0

    def test_cannot_scrap_more_than_in_stock(self, client, db_session, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 3, "reason": "Obsolete",
        }, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot scrap 3; only 2 in stock"
        assert db_session.query(ScrapItem).count() == 0

    def test_reason_required(self, client, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={"item_id": item.id, "reason": "   "}, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "reason is required"

    def test_zero_quantity_rejected(self, client, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 0, "reason": "Obsolete",
        }, headers=admin_headers)

        assert resp.status_code == 400

    def test_item_id_must_be_integer(self, client, admin_headers):
        resp = client.post("/api/scrap", json={"item_id": "7", "reason": "Obsolete"}, headers=admin_headers)

        assert resp.status_code == 400

    def test_foreign_department_is_404_and_writes_nothing(self, client, db_session, hod_cse_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 1, "reason": "Obsolete",
        }, headers=hod_cse_headers)

        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).quantity == 2
        assert db_session.query(ScrapItem).count() == 0

    def test_staff_cannot_scrap(self, client, staff_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 2)

        resp = client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 1, "reason": "Obsolete",
        }, headers=staff_headers)

        assert resp.status_code == 404


class TestScrapListing:

    def test_hod_sees_own_department_only(self, client, admin_headers, hod_cse_headers, make_item):
        physics = make_item("Oscilloscope", Department.PHYSICS, 5)
        cse = make_item("Keyboard", Department.CSE, 5)
        for item in (physics, cse):
            client.post("/api/scrap", json={
                "item_id": item.id, "quantity": 1, "reason": "Broken",
            }, headers=admin_headers)

        admin_view = client.get("/api/scrap", headers=admin_headers)
        cse_view = client.get("/api/scrap", headers=hod_cse_headers)

        assert len(admin_view.json["scrap_items"]) == 2
        assert [r["item_name"] for r in cse_view.json["scrap_items"]] == ["Keyboard"]

    def test_staff_sees_no_scrap_records(self, client, admin_headers, staff_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 5)
        client.post("/api/scrap", json={
            "item_id": item.id, "quantity": 1, "reason": "Broken",
        }, headers=admin_headers)

        resp = client.get("/api/scrap", headers=staff_headers)

        assert resp.json["scrap_items"] == []
