from bson import ObjectId

from tests.conftest import auth_header


def _token_for(client, username, password="secret123"):
    response = client.post("/api/auth/login", json={"login": username, "password": password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()["data"]["token"]


class TestAdminGate:
    def test_requires_token(self, client):
        assert client.get("/api/admin/pending-users").status_code == 401

    def test_non_admin_is_forbidden(self, client, register, admin_headers):
        user_id = register("tina", "teacher")
        client.put(f"/api/admin/approve-user/{user_id}", json={}, headers=admin_headers)
        headers = auth_header(_token_for(client, "tina"))

        response = client.get("/api/admin/pending-users", headers=headers)

        assert response.status_code == 403
        assert response.get_json() == {
            "success": False,
            "message": "Access denied. Required permission: manage_users",
        }

    def test_guard_runs_before_the_operation(self, client, register, admin_headers, db):
        teacher_id = register("tina", "teacher")
        client.put(f"/api/admin/approve-user/{teacher_id}", json={}, headers=admin_headers)
        pending_id = register("amy")

        response = client.put(f"/api/admin/approve-user/{pending_id}", json={},
                              headers=auth_header(_token_for(client, "tina")))

        assert response.status_code == 403
        assert db.users.find_one({"_id": ObjectId(pending_id)})["approval_status"] == "pending"


class TestApprovalEndpoints:
    def test_pending_users_listing(self, client, register, admin_headers):
        register("amy")
        register("bob", "staff")

        data = client.get("/api/admin/pending-users", headers=admin_headers).get_json()["data"]

        assert data["count"] == 2
        assert {u["username"] for u in data["users"]} == {"amy", "bob"}
        assert all("password" not in u for u in data["users"])

    def test_approve_then_approve_again(self, client, register, admin_headers, admin):
        user_id = register("amy")

        first = client.put(f"/api/admin/approve-user/{user_id}", json={"notes": "ok"}, headers=admin_headers)
        second = client.put(f"/api/admin/approve-user/{user_id}", json={}, headers=admin_headers)

        assert first.status_code == 200
        user = first.get_json()["data"]["user"]
        assert user["approvalStatus"] == "approved"
        assert user["isActive"] is True
        assert user["approvedBy"]["id"] == str(admin["_id"])
        assert second.status_code == 400
        assert second.get_json()["message"] == "User has already been processed"

    def test_approve_unknown_user(self, client, admin_headers):
        response = client.put(f"/api/admin/approve-user/{ObjectId()}", json={}, headers=admin_headers)
        assert response.status_code == 404
        assert client.put("/api/admin/approve-user/bogus", json={}, headers=admin_headers).status_code == 404

    def test_reject_requires_reason(self, client, register, admin_headers):
        user_id = register("amy")

        missing = client.put(f"/api/admin/reject-user/{user_id}", json={}, headers=admin_headers)
        assert missing.status_code == 400
        assert missing.get_json()["message"] == "Rejection reason is required"

        ok = client.put(f"/api/admin/reject-user/{user_id}", json={"reason": "Duplicate"},
                        headers=admin_headers)
        assert ok.status_code == 200
        assert ok.get_json()["data"]["user"]["rejectionReason"] == "Duplicate"

        login = client.post("/api/auth/login", json={"login": "amy", "password": "secret123"})
        assert login.status_code == 401
        assert "Duplicate" in login.get_json()["message"]

    def test_bulk_approve(self, client, register, admin_headers):
        a = register("ann")
        b = register("ben")
        c = register("cat")
        client.put(f"/api/admin/approve-user/{b}", json={}, headers=admin_headers)

        response = client.put("/api/admin/bulk-approve", json={"userIds": [a, b, c]}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["modifiedCount"] == 2
        assert response.get_json()["message"] == "2 users approved successfully"

    def test_bulk_approve_needs_ids(self, client, admin_headers):
        for body in ({}, {"userIds": []}, {"userIds": "abc"}):
            response = client.put("/api/admin/bulk-approve", json=body, headers=admin_headers)
            assert response.status_code == 400
            assert response.get_json()["message"] == "User IDs array is required"

    def test_admin_cannot_deactivate_self(self, client, admin, admin_headers):
        response = client.put(f"/api/admin/deactivate-user/{admin['_id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.get_json()["message"] == "You cannot deactivate your own account"

    def test_approval_stats(self, client, register, admin_headers):
        register("amy")
        data = client.get("/api/admin/approval-stats", headers=admin_headers).get_json()["data"]
        assert data["overall"]["pending"] == 1
        assert data["byUserType"]["student"]["pending"] == 1


class TestUserListing:
    def test_filter_and_paginate(self, client, register, admin_headers):
        for i in range(5):
            register(f"stu{i}", "student")
        register("tch0", "teacher")

        response = client.get("/api/admin/users?status=pending&userType=student&page=2&limit=2",
                              headers=admin_headers)

        data = response.get_json()["data"]
        assert response.status_code == 200
        assert data["total"] == 5
        assert data["totalPages"] == 3
        assert data["currentPage"] == 2
        assert len(data["users"]) == 2
        assert all(u["userType"] == "student" for u in data["users"])

    def test_invalid_filters(self, client, admin_headers):
        assert client.get("/api/admin/users?status=weird", headers=admin_headers).status_code == 400
        assert client.get("/api/admin/users?page=0", headers=admin_headers).status_code == 400
        assert client.get("/api/admin/users?limit=abc", headers=admin_headers).status_code == 400


class TestRolesEndpoints:
    def test_roles_listing(self, client, admin_headers):
        roles = client.get("/api/roles", headers=admin_headers).get_json()["data"]["roles"]
        assert [r["name"] for r in roles][0] == "admin"
        teacher = next(r for r in roles if r["name"] == "teacher")
        assert "manage_grades" in teacher["permissions"]
        assert teacher["isSuperRole"] is False

    def test_permissions_grouped_by_category(self, client, admin_headers):
        grouped = client.get("/api/roles/permissions", headers=admin_headers).get_json()["data"]["permissions"]
        assert {p["name"] for p in grouped["financial_management"]} == {
            "manage_fees", "collect_fees", "view_fees", "generate_reports"}

    def test_single_role(self, client, admin_headers, db):
        role = db.roles.find_one({"name": "staff"})
        response = client.get(f"/api/roles/{role['_id']}", headers=admin_headers)
        assert response.get_json()["data"]["role"]["level"] == 3
        assert client.get(f"/api/roles/{ObjectId()}", headers=admin_headers).status_code == 404
