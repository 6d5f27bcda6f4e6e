# Overview: Pytest coverage for bulk inventory import (CSV and Excel uploads).

import io

from openpyxl import Workbook

from stocknexus.constants import Department
from stocknexus.models import Alert, InventoryItem


def _csv(text, name="items.csv"):
    return {"file": (io.BytesIO(text.encode("utf-8")), name)}


def _post(client, headers, data):
    return client.post(
        "/api/inventory/import",
        data=data,
        headers=headers,
        content_type="multipart/form-data",
    )


class TestCsvImport:

    def test_admin_imports_rows_with_aliases(self, client, db_session, admin_headers):
        text = (
            "Name,Department,Quantity,SerialNumber,Threshold,Specs\n"
            'Beaker,Chemistry,40,BK-1,8,"{""volume"": ""250ml""}"\n'
            "Burette,Chemistry,0,,,\n"
        )

        resp = _post(client, admin_headers, _csv(text))

        assert resp.status_code == 201
        assert resp.json["created"] == 2
        assert resp.json["skipped"] == 0

        beaker = db_session.query(InventoryItem).filter_by(name="Beaker").one()
        assert beaker.serial_number == "BK-1"
        assert beaker.low_stock_threshold == 8
        assert beaker.specifications == {"volume": "250ml"}

        burette = db_session.query(InventoryItem).filter_by(name="Burette").one()
        assert burette.quantity == 0
        assert burette.low_stock_threshold == 5
        assert burette.specifications == {}

    def test_import_reconciles_each_group(self, client, db_session, admin_headers):
        text = "name,department,quantity\nBeaker,Chemistry,40\nBurette,Chemistry,0\n"

        _post(client, admin_headers, _csv(text))

        alerts = db_session.query(Alert).all()
        assert [a.item_name for a in alerts] == ["Burette"]

    def test_rows_without_name_or_department_are_skipped(self, client, admin_headers):
        text = "name,department,quantity\nBeaker,Chemistry,4\n,Chemistry,3\nFlask,,2\n"

        resp = _post(client, admin_headers, _csv(text))

        assert resp.status_code == 201
        assert resp.json["created"] == 1
        assert resp.json["skipped"] == 2

    def test_unparsable_quantity_defaults_to_one(self, client, db_session, admin_headers):
        text = "name,department,quantity\nBeaker,Chemistry,lots\n"

        _post(client, admin_headers, _csv(text))

        assert db_session.query(InventoryItem).one().quantity == 1

    def test_infinite_numbers_fall_back_to_defaults(self, client, db_session, admin_headers):
        text = "name,department,quantity,threshold\nBeaker,Chemistry,inf,1e400\n"

        resp = _post(client, admin_headers, _csv(text))

        assert resp.status_code == 201
        item = db_session.query(InventoryItem).one()
        assert item.quantity == 1
        assert item.low_stock_threshold == 5

    def test_missing_required_column(self, client, db_session, admin_headers):
        resp = _post(client, admin_headers, _csv("name,department\nBeaker,Chemistry\n"))

        assert resp.status_code == 400
        assert resp.json["error"] == "Missing required columns: quantity"
        assert db_session.query(InventoryItem).count() == 0

    def test_unknown_department_rejects_whole_file(self, client, db_session, admin_headers):
        text = "name,department,quantity\nBeaker,Chemistry,4\nTelescope,Astronomy,1\n"

        resp = _post(client, admin_headers, _csv(text))

        assert resp.status_code == 400
        assert "Astronomy" in resp.json["error"]
        assert db_session.query(InventoryItem).count() == 0

    def test_unsupported_extension(self, client, admin_headers):
        resp = _post(client, admin_headers, _csv("name,department,quantity\n", name="items.txt"))

        assert resp.status_code == 400
        assert "Unsupported file format" in resp.json["error"]

    def test_file_field_required(self, client, admin_headers):
        resp = _post(client, admin_headers, {})

        assert resp.status_code == 400
        assert resp.json["error"] == "file is required"


class TestImportAuthorization:

    def test_hod_imports_own_department(self, client, hod_physics_headers):
        resp = _post(client, hod_physics_headers, _csv("name,department,quantity\nLens,Physics,20\n"))

        assert resp.status_code == 201
        assert resp.json["items"][0]["department"] == Department.PHYSICS

    def test_hod_foreign_row_aborts_import(self, client, db_session, hod_physics_headers):
        text = "name,department,quantity\nLens,Physics,20\nGPU,CSE,2\n"

        resp = _post(client, hod_physics_headers, _csv(text))

        assert resp.status_code == 403
        assert db_session.query(InventoryItem).count() == 0
        assert db_session.query(Alert).count() == 0

    def test_staff_cannot_import(self, client, staff_headers):
        resp = _post(client, staff_headers, _csv("name,department,quantity\nLens,Physics,20\n"))

        assert resp.status_code == 403


class TestExcelImport:

    def test_xlsx_upload(self, client, db_session, admin_headers):
        wb = Workbook()
        sheet = wb.active
        sheet.append(["Name", "Department", "Quantity", "Location"])
        sheet.append(["Multimeter", "IT", 12, "Lab 4"])
        sheet.append([None, None, None, None])
        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        resp = _post(client, admin_headers, {"file": (buffer, "items.xlsx")})

        assert resp.status_code == 201
        assert resp.json["created"] == 1
        item = db_session.query(InventoryItem).one()
        assert (item.name, item.quantity, item.location) == ("Multimeter", 12, "Lab 4")
