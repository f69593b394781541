"""
HTTP tests for /api/requests — status codes, payload shapes, role gates.
"""

import pytest


def _create(client, headers, **overrides):
    body = {"title": "Projector broken", "description": "LT-3 projector shows no signal.", "category": "IT"}
    body.update(overrides)
    return client.post("/api/requests", json=body, headers=headers)


# ═══════════════════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════════════════


class TestCreateRequest:
    def test_created(self, client, student, auth_headers):
        res = _create(client, auth_headers(student))
        assert res.status_code == 201
        data = res.get_json()
        assert data["status"] == "Pending"
        assert data["priority"] == "Medium"
        assert data["assignedDepartment"] == ""
        assert data["assignedBy"] is None
        assert data["studentId"]["id"] == student.id
        assert data["studentId"]["studentId"] == "S1001"
        assert len(data["statusHistory"]) == 1
        assert data["statusHistory"][0]["comment"] == "Request created"

    def test_validation_error_shape(self, client, student, auth_headers):
        res = client.post("/api/requests", json={"description": "no title"}, headers=auth_headers(student))
        assert res.status_code == 400
        data = res.get_json()
        assert data["message"] == "Validation failed"
        fields = {e["field"] for e in data["errors"]}
        assert fields == {"title", "category"}

    def test_title_too_long(self, client, student, auth_headers):
        res = _create(client, auth_headers(student), title="t" * 201)
        assert res.status_code == 400
        assert res.get_json()["errors"] == [
            {"field": "title", "message": "Title cannot exceed 200 characters"},
        ]

    def test_invalid_category(self, client, student, auth_headers):
        res = _create(client, auth_headers(student), category="Parking")
        assert res.status_code == 400

    def test_non_json_body(self, client, student, auth_headers):
        res = client.post("/api/requests", data="title=x", headers=auth_headers(student))
        assert res.status_code == 400

    def test_requires_token(self, client):
        res = client.post("/api/requests", json={})
        assert res.status_code == 401
        assert res.get_json()["message"] == "Not authorized, no token"


# ═══════════════════════════════════════════════════════════════════════════
# List / detail
# ═══════════════════════════════════════════════════════════════════════════


class TestListAndDetail:
    def test_student_list_is_scoped(self, client, student, other_student, auth_headers, make_request):
        make_request(student, title="Mine")
        make_request(other_student, title="Theirs")
        res = client.get("/api/requests", headers=auth_headers(student))
        assert res.status_code == 200
        data = res.get_json()
        assert data["count"] == 1
        assert data["requests"][0]["title"] == "Mine"

    def test_admin_list_with_filters(self, client, student, admin, auth_headers, make_request):
        make_request(student, title="Open", status="Pending")
        make_request(student, title="Done", status="Resolved")
        res = client.get("/api/requests?status=Resolved", headers=auth_headers(admin))
        assert [r["title"] for r in res.get_json()["requests"]] == ["Done"]

    def test_invalid_filter(self, client, admin, auth_headers):
        res = client.get("/api/requests?priority=Urgent", headers=auth_headers(admin))
        assert res.status_code == 400

    def test_detail(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.get(f"/api/requests/{req.id}", headers=auth_headers(student))
        assert res.status_code == 200
        assert res.get_json()["statusHistory"][0]["updatedBy"]["name"] == "Asha Verma"

    def test_detail_other_student_forbidden(self, client, student, other_student, auth_headers, make_request):
        req = make_request(student)
        res = client.get(f"/api/requests/{req.id}", headers=auth_headers(other_student))
        assert res.status_code == 403

    def test_detail_not_found(self, client, admin, auth_headers):
        res = client.get("/api/requests/9999", headers=auth_headers(admin))
        assert res.status_code == 404
        assert res.get_json()["message"] == "Request not found"


# ═══════════════════════════════════════════════════════════════════════════
# Edit / delete
# ═══════════════════════════════════════════════════════════════════════════


class TestEditAndDelete:
    def test_owner_edits_pending(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}", json={"priority": "High"}, headers=auth_headers(student))
        assert res.status_code == 200
        assert res.get_json()["priority"] == "High"

    def test_edit_after_processing(self, client, student, auth_headers, make_request):
        req = make_request(student, status="InProgress")
        res = client.put(f"/api/requests/{req.id}", json={"title": "New"}, headers=auth_headers(student))
        assert res.status_code == 400
        assert res.get_json()["message"] == "Cannot update request after it has been processed"

    def test_edit_by_other_student(self, client, student, other_student, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}", json={"title": "New"}, headers=auth_headers(other_student))
        assert res.status_code == 403

    def test_edit_invalid_value(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}", json={"title": ""}, headers=auth_headers(student))
        assert res.status_code == 400
        assert res.get_json()["errors"][0]["field"] == "title"

    @pytest.mark.parametrize("field", ["priority", "category"])
    def test_edit_empty_choice(self, client, student, auth_headers, make_request, field):
        req = make_request(student, category="Hostel", priority="Low")
        res = client.put(f"/api/requests/{req.id}", json={field: ""}, headers=auth_headers(student))
        assert res.status_code == 400
        assert res.get_json()["errors"] == [{"field": field, "message": f"Invalid {field}"}]
        detail = client.get(f"/api/requests/{req.id}", headers=auth_headers(student)).get_json()
        assert detail["category"] == "Hostel"
        assert detail["priority"] == "Low"

    def test_delete(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.delete(f"/api/requests/{req.id}", headers=auth_headers(student))
        assert res.status_code == 200
        assert res.get_json() == {"message": "Request deleted successfully"}
        assert client.get(f"/api/requests/{req.id}", headers=auth_headers(student)).status_code == 404

    def test_delete_after_processing(self, client, student, auth_headers, make_request):
        req = make_request(student, status="Resolved")
        res = client.delete(f"/api/requests/{req.id}", headers=auth_headers(student))
        assert res.status_code == 400

    def test_delete_unknown(self, client, student, auth_headers):
        assert client.delete("/api/requests/424242", headers=auth_headers(student)).status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Status / assignment / history
# ═══════════════════════════════════════════════════════════════════════════


class TestAdminActions:
    def test_change_status(self, client, student, admin, auth_headers, make_request):
        req = make_request(student)
        res = client.put(
            f"/api/requests/{req.id}/status",
            json={"status": "InProgress", "comment": "Technician booked"},
            headers=auth_headers(admin),
        )
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "InProgress"
        last = data["statusHistory"][-1]
        assert last["comment"] == "Technician booked"
        assert last["updatedBy"]["id"] == admin.id

    def test_change_status_requires_admin(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}/status", json={"status": "Resolved"},
                         headers=auth_headers(student))
        assert res.status_code == 403
        assert res.get_json()["message"] == "User role 'student' is not authorized to access this route"

    @pytest.mark.parametrize("body", [{}, {"status": "Closed"}, {"status": "Resolved", "comment": "c" * 501}])
    def test_change_status_invalid_body(self, client, student, admin, auth_headers, make_request, body):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}/status", json=body, headers=auth_headers(admin))
        assert res.status_code == 400

    def test_change_status_unknown_request(self, client, admin, auth_headers):
        res = client.put("/api/requests/8080/status", json={"status": "Resolved"}, headers=auth_headers(admin))
        assert res.status_code == 404

    def test_assign(self, client, student, admin, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}/assign", json={"department": "Accounts"},
                         headers=auth_headers(admin))
        assert res.status_code == 200
        data = res.get_json()
        assert data["assignedDepartment"] == "Accounts"
        assert data["assignedBy"]["id"] == admin.id
        assert data["statusHistory"][-1]["comment"] == "Assigned to Accounts department"

    def test_assign_short_department(self, client, student, admin, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}/assign", json={"department": "A"},
                         headers=auth_headers(admin))
        assert res.status_code == 400
        assert res.get_json()["errors"][0]["field"] == "department"

    def test_assign_requires_admin(self, client, student, auth_headers, make_request):
        req = make_request(student)
        res = client.put(f"/api/requests/{req.id}/assign", json={"department": "Accounts"},
                         headers=auth_headers(student))
        assert res.status_code == 403

    def test_history(self, client, student, admin, auth_headers, make_request):
        req = make_request(student)
        client.put(f"/api/requests/{req.id}/status", json={"status": "Rejected"}, headers=auth_headers(admin))
        res = client.get(f"/api/requests/{req.id}/history", headers=auth_headers(student))
        assert res.status_code == 200
        data = res.get_json()
        assert data["requestId"] == req.id
        assert [h["status"] for h in data["statusHistory"]] == ["Pending", "Rejected"]
        assert data["statusHistory"][1]["updatedBy"]["role"] == "admin"

    def test_history_other_student(self, client, student, other_student, auth_headers, make_request):
        req = make_request(student)
        res = client.get(f"/api/requests/{req.id}/history", headers=auth_headers(other_student))
        assert res.status_code == 403


class TestListFilters:
    def test_admin_bad_student_id(self, client, admin, auth_headers):
        res = client.get("/api/requests?studentId=abc", headers=auth_headers(admin))
        assert res.status_code == 400
        assert res.get_json()["errors"] == [{"field": "studentId", "message": "Invalid studentId"}]

    def test_student_id_ignored_for_students(self, client, student, auth_headers):
        res = client.get("/api/requests?studentId=abc", headers=auth_headers(student))
        assert res.status_code == 200
