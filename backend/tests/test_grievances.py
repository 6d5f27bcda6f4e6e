# Overview: Pytest coverage for grievances and attachment storage.

import io
import os

from stocknexus.constants import Bucket, GrievanceStatus
from stocknexus.models import Grievance


def _file(content=b"%PDF-1.4 test", name="evidence.pdf"):
    return (io.BytesIO(content), name)


class TestSubmitGrievance:

    def test_staff_submits_json(self, client, staff_physics, staff_headers):
        resp = client.post("/api/grievances", json={
            "title": "Fume hood fan noisy",
            "description": "Fan rattles above 50% speed",
            "priority": "high",
        }, headers=staff_headers)

        assert resp.status_code == 201
        grievance = resp.json["grievance"]
        assert grievance["status"] == GrievanceStatus.PENDING
        assert grievance["priority"] == "high"
        assert grievance["created_by"] == staff_physics.id
        assert grievance["attachment_url"] is None

    def test_priority_defaults_to_medium(self, client, staff_headers):
        resp = client.post("/api/grievances", json={
            "title": "Broken chair", "description": "Lab 2",
        }, headers=staff_headers)

        assert resp.json["grievance"]["priority"] == "medium"

    def test_multipart_with_attachment(self, client, app, staff_physics, staff_headers):
        resp = client.post("/api/grievances", data={
            "title": "Leaking tap",
            "description": "See photo",
            "attachment": _file(),
        }, headers=staff_headers, content_type="multipart/form-data")

        assert resp.status_code == 201
        path = resp.json["grievance"]["attachment_url"]
        owner, filename = path.split("/")
        assert owner == str(staff_physics.id)
        assert filename.endswith(".pdf")
        assert os.path.isfile(os.path.join(app.config["UPLOAD_FOLDER"], Bucket.GRIEVANCE_ATTACHMENTS, path))

    def test_admin_cannot_submit(self, client, db_session, admin_headers):
        resp = client.post("/api/grievances", json={
            "title": "x", "description": "y",
        }, headers=admin_headers)

        assert resp.status_code == 403
        assert db_session.query(Grievance).count() == 0

    def test_created_by_cannot_be_spoofed(self, client, hod_physics, staff_headers):
        resp = client.post("/api/grievances", json={
            "title": "x", "description": "y", "created_by": hod_physics.id,
        }, headers=staff_headers)

        assert resp.status_code == 400

    def test_unsupported_attachment_type(self, client, db_session, staff_headers):
        resp = client.post("/api/grievances", data={
            "title": "x",
            "description": "y",
            "attachment": _file(b"MZ", "tool.exe"),
        }, headers=staff_headers, content_type="multipart/form-data")

        assert resp.status_code == 400
        assert db_session.query(Grievance).count() == 0


class TestGrievanceVisibility:

    def test_author_and_admin_only(self, client, staff_headers, hod_physics_headers, admin_headers):
        created = client.post("/api/grievances", json={
            "title": "x", "description": "y",
        }, headers=staff_headers).json["grievance"]

        assert client.get(f"/api/grievances/{created['id']}", headers=staff_headers).status_code == 200
        assert client.get(f"/api/grievances/{created['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/grievances/{created['id']}", headers=hod_physics_headers).status_code == 404

        assert client.get("/api/grievances", headers=hod_physics_headers).json["grievances"] == []
        assert len(client.get("/api/grievances", headers=admin_headers).json["grievances"]) == 1


class TestReviewGrievance:

    def _submit(self, client, headers):
        return client.post("/api/grievances", json={
            "title": "x", "description": "y",
        }, headers=headers).json["grievance"]

    def test_resolving_stamps_resolver(self, client, admin_user, admin_headers, staff_headers):
        grievance = self._submit(client, staff_headers)

        resp = client.patch(f"/api/grievances/{grievance['id']}", json={
            "status": GrievanceStatus.RESOLVED, "resolution_notes": "Replaced the fan",
        }, headers=admin_headers)

        assert resp.status_code == 200
        updated = resp.json["grievance"]
        assert updated["status"] == GrievanceStatus.RESOLVED
        assert updated["resolved_by"] == admin_user.id
        assert updated["resolved_at"] is not None

    def test_reopening_clears_resolver(self, client, admin_headers, staff_headers):
        grievance = self._submit(client, staff_headers)
        client.patch(f"/api/grievances/{grievance['id']}", json={"status": "rejected"}, headers=admin_headers)

        resp = client.patch(f"/api/grievances/{grievance['id']}", json={"status": "in_progress"}, headers=admin_headers)

        assert resp.json["grievance"]["resolved_by"] is None
        assert resp.json["grievance"]["resolved_at"] is None

    def test_author_cannot_update(self, client, staff_headers):
        grievance = self._submit(client, staff_headers)

        resp = client.patch(f"/api/grievances/{grievance['id']}", json={"status": "resolved"}, headers=staff_headers)

        assert resp.status_code == 404

    def test_invalid_status(self, client, admin_headers, staff_headers):
        grievance = self._submit(client, staff_headers)

        resp = client.patch(f"/api/grievances/{grievance['id']}", json={"status": "closed"}, headers=admin_headers)

        assert resp.status_code == 400


class TestAttachments:

    def test_owner_downloads_own_upload(self, client, staff_headers):
        upload = client.post(
            f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}",
            data={"file": _file(b"hello", "note.txt")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )
        assert upload.status_code == 201
        path = upload.json["path"]

        resp = client.get(f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}/{path}", headers=staff_headers)

        assert resp.status_code == 200
        assert resp.data == b"hello"
        resp.close()

    def test_other_user_gets_404_admin_gets_file(self, client, staff_headers, hod_physics_headers, admin_headers):
        path = client.post(
            f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}",
            data={"file": _file(b"hello", "note.txt")},
            headers=staff_headers,
            content_type="multipart/form-data",
        ).json["path"]

        other = client.get(f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}/{path}", headers=hod_physics_headers)
        admin = client.get(f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}/{path}", headers=admin_headers)

        assert other.status_code == 404
        assert admin.status_code == 200
        admin.close()

    def test_dot_segments_cannot_reach_another_owner(self, client, hod_physics, staff_headers, hod_physics_headers):
        path = client.post(
            f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}",
            data={"file": _file(b"secret", "s.pdf")},
            headers=staff_headers,
            content_type="multipart/form-data",
        ).json["path"]

        for crafted in (f"{hod_physics.id}/../{path}", f"{hod_physics.id}/./../{path}"):
            resp = client.get(f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}/{crafted}", headers=hod_physics_headers)
            assert resp.status_code == 404
            assert resp.data != b"secret"

    def test_owner_path_must_be_canonical(self, client, staff_physics, staff_headers):
        path = client.post(
            f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}",
            data={"file": _file(b"hello", "note.txt")},
            headers=staff_headers,
            content_type="multipart/form-data",
        ).json["path"]
        name = path.split("/", 1)[1]

        resp = client.get(
            f"/api/attachments/{Bucket.GRIEVANCE_ATTACHMENTS}/{staff_physics.id}/./{name}",
            headers=staff_headers,
        )

        assert resp.status_code == 404

    def test_staff_cannot_upload_bills(self, client, staff_headers):
        resp = client.post(
            f"/api/attachments/{Bucket.SERVICE_BILLS}",
            data={"file": _file()},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 403

    def test_oversized_upload_rejected(self, client, app, hod_physics_headers):
        limit = app.config["MAX_UPLOAD_BYTES"]

        resp = client.post(
            f"/api/attachments/{Bucket.SERVICE_BILLS}",
            data={"file": _file(b"x" * (limit + 1), "bill.pdf")},
            headers=hod_physics_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 400
        assert "maximum size" in resp.json["error"]

    def test_unknown_bucket(self, client, admin_headers):
        resp = client.post(
            "/api/attachments/secrets",
            data={"file": _file()},
            headers=admin_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 400
