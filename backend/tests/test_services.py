# Overview: Pytest coverage for service (maintenance) records.

import io
import os

from stocknexus.constants import Bucket, Department
from stocknexus.models import Service
from stocknexus.services import storage_service


def _service(**overrides):
    payload = {
        "service_type": "external",
        "nature_of_service": "calibration",
        "service_date": "2026-09-14",
        "technician_vendor_name": "Acme Instruments",
    }
    payload.update(overrides)
    return payload


class TestSingleService:

    def test_hod_logs_service_for_own_item(self, client, hod_physics, hod_physics_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3, category="Electronics")

        resp = client.post("/api/services", json=_service(equipment_id=item.id, cost="1500.5"),
                           headers=hod_physics_headers)

        assert resp.status_code == 201
        record = resp.json["service"]
        assert record["department"] == Department.PHYSICS
        assert record["equipment_name"] == "Oscilloscope"
        assert record["service_date"] == "2026-09-14"
        assert record["cost"] == "1500.50"
        assert record["status"] == "pending"
        assert record["created_by"] == hod_physics.id

    def test_department_follows_equipment(self, client, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", json=_service(equipment_id=item.id, department=Department.CSE),
                           headers=admin_headers)

        assert resp.json["service"]["department"] == Department.PHYSICS

    def test_foreign_equipment_is_403(self, client, db_session, hod_cse_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", json=_service(equipment_id=item.id), headers=hod_cse_headers)

        assert resp.status_code == 403
        assert db_session.query(Service).count() == 0

    def test_staff_cannot_log_services(self, client, staff_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", json=_service(equipment_id=item.id), headers=staff_headers)

        assert resp.status_code == 403

    def test_missing_equipment(self, client, admin_headers):
        no_id = client.post("/api/services", json=_service(), headers=admin_headers)
        unknown = client.post("/api/services", json=_service(equipment_id=99999), headers=admin_headers)

        assert no_id.status_code == 400
        assert unknown.status_code == 404
        assert unknown.json["error"] == "Equipment not found"

    def test_invalid_choices(self, client, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", json=_service(equipment_id=item.id, nature_of_service="polishing"),
                           headers=admin_headers)

        assert resp.status_code == 400
        assert "nature_of_service must be one of" in resp.json["error"]

    def test_negative_cost(self, client, admin_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", json=_service(equipment_id=item.id, cost=-1), headers=admin_headers)

        assert resp.status_code == 400

    def test_multipart_with_bill_photo(self, client, app, hod_physics, hod_physics_headers, make_item):
        item = make_item("Oscilloscope", Department.PHYSICS, 3)

        resp = client.post("/api/services", data=dict(
            _service(equipment_id=str(item.id), remarks=""),
            bill_photo=(io.BytesIO(b"\x89PNG bill"), "bill.png"),
        ), headers=hod_physics_headers, content_type="multipart/form-data")

        assert resp.status_code == 201
        record = resp.json["service"]
        assert record["remarks"] is None
        assert record["bill_photo_url"].startswith(f"{hod_physics.id}/")
        assert os.path.isfile(os.path.join(
            app.config["UPLOAD_FOLDER"], Bucket.SERVICE_BILLS, record["bill_photo_url"]
        ))

    def test_replacing_bill_removes_old_file(self, client, app, hod_physics_headers, make_item, monkeypatch):
        stamps = iter([1700000000000, 1700000000001])
        monkeypatch.setattr(storage_service, "epoch_millis", lambda: next(stamps))
        item = make_item("Oscilloscope", Department.PHYSICS, 3)
        bills = os.path.join(app.config["UPLOAD_FOLDER"], Bucket.SERVICE_BILLS)

        created = client.post("/api/services", data=dict(
            _service(equipment_id=str(item.id)),
            bill_photo=(io.BytesIO(b"\x89PNG old"), "bill.png"),
        ), headers=hod_physics_headers, content_type="multipart/form-data").json["service"]
        old_path, record_id = created["bill_photo_url"], created["id"]

        resp = client.patch(f"/api/services/{record_id}", data={
            "bill_photo": (io.BytesIO(b"\x89PNG new"), "bill.png"),
        }, headers=hod_physics_headers, content_type="multipart/form-data")

        assert resp.status_code == 200
        new_path = resp.json["service"]["bill_photo_url"]
        assert new_path != old_path
        assert os.path.isfile(os.path.join(bills, new_path))
        assert not os.path.exists(os.path.join(bills, old_path))


class TestBulkService:

    def test_bulk_uses_first_item_and_prefixes_remarks(self, client, hod_physics_headers, make_item):
        first = make_item("Multimeter", Department.PHYSICS, 3, category="Electronics")
        make_item("Oscilloscope", Department.PHYSICS, 3, category="Electronics")

        resp = client.post("/api/services", json=_service(
            service_scope="bulk", category="Electronics", remarks="Annual check",
        ), headers=hod_physics_headers)

        assert resp.status_code == 201
        record = resp.json["service"]
        assert record["equipment_id"] == first.id
        assert record["department"] == Department.PHYSICS
        assert record["remarks"] == "[BULK SERVICE - Electronics] Annual check"

    def test_bulk_without_remarks(self, client, admin_headers, make_item):
        make_item("Multimeter", Department.CSE, 3, category="Electronics")

        resp = client.post("/api/services", json=_service(
            service_scope="bulk", category="Electronics", department=Department.CSE,
        ), headers=admin_headers)

        assert resp.json["service"]["remarks"] == "[BULK SERVICE - Electronics]"

    def test_bulk_requires_matching_items(self, client, hod_physics_headers, make_item):
        make_item("Multimeter", Department.CSE, 3, category="Electronics")

        resp = client.post("/api/services", json=_service(
            service_scope="bulk", category="Electronics",
        ), headers=hod_physics_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "No items found in category Electronics for Physics"

    def test_bulk_requires_category(self, client, admin_headers):
        resp = client.post("/api/services", json=_service(service_scope="bulk"), headers=admin_headers)

        assert resp.status_code == 400

    def test_unknown_scope(self, client, admin_headers):
        resp = client.post("/api/services", json=_service(service_scope="everything"), headers=admin_headers)

        assert resp.status_code == 400


class TestServiceAccess:

    def _create(self, client, headers, item):
        return client.post("/api/services", json=_service(equipment_id=item.id), headers=headers).json["service"]

    def test_department_staff_can_read(self, client, hod_physics_headers, staff_headers, hod_cse_headers, make_item):
        record = self._create(client, hod_physics_headers, make_item("Laser", Department.PHYSICS, 3))

        assert client.get(f"/api/services/{record['id']}", headers=staff_headers).status_code == 200
        assert client.get(f"/api/services/{record['id']}", headers=hod_cse_headers).status_code == 404
        assert len(client.get("/api/services", headers=staff_headers).json["services"]) == 1
        assert client.get("/api/services", headers=hod_cse_headers).json["services"] == []

    def test_foreign_update_and_delete_are_404(self, client, db_session, admin_headers, hod_cse_headers, make_item):
        record = self._create(client, admin_headers, make_item("Laser", Department.PHYSICS, 3))

        update = client.patch(f"/api/services/{record['id']}", json={"status": "completed"}, headers=hod_cse_headers)
        delete = client.delete(f"/api/services/{record['id']}", headers=hod_cse_headers)

        assert update.status_code == 404
        assert delete.status_code == 404
        assert db_session.query(Service).count() == 1

    def test_hod_updates_status(self, client, hod_physics_headers, make_item):
        record = self._create(client, hod_physics_headers, make_item("Laser", Department.PHYSICS, 3))

        resp = client.patch(f"/api/services/{record['id']}", json={"status": "completed"}, headers=hod_physics_headers)

        assert resp.status_code == 200
        assert resp.json["service"]["status"] == "completed"

    def test_record_survives_equipment_delete(self, client, db_session, admin_headers, make_item):
        item = make_item("Laser", Department.PHYSICS, 3)
        record = self._create(client, admin_headers, item)

        client.delete(f"/api/inventory/{item.id}", headers=admin_headers)

        db_session.expire_all()
        survivor = db_session.get(Service, record["id"])
        assert survivor.equipment_id is None
        assert survivor.department == Department.PHYSICS
