"""用户组 API 测试

测试 /api/user_groups 端点
"""
import pytest

from qualityhub.services.permission_service import GlobalPermission


@pytest.fixture
def organization_admin(db_tester, user_session):
    organization = db_tester.default_organization()
    user_session.log_in(db_tester.insert_user()).add_organization_permission(
        organization.uuid, GlobalPermission.ADMIN
    )
    return user_session


class TestCreateGroup:
    """创建用户组测试"""

    def test_create(self, client, db_tester, organization_admin):
        response = client.post("/api/user_groups/create", json={"name": "developers", "description": "Devs"})

        assert response.status_code == 200
        group = response.json()["group"]
        assert group["name"] == "developers"
        assert group["description"] == "Devs"
        assert group["organization"] == db_tester.default_organization().uuid
        assert group["membersCount"] == 0

    def test_create_in_organization(self, client, db_tester, user_session):
        organization = db_tester.insert_organization("acme")
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.ADMIN
        )

        response = client.post("/api/user_groups/create", json={"name": "developers", "organization": "acme"})

        assert response.status_code == 200
        assert response.json()["group"]["organization"] == organization.uuid

    def test_create_duplicate(self, client, db_tester, organization_admin):
        db_tester.insert_group(db_tester.default_organization(), "developers")

        response = client.post("/api/user_groups/create", json={"name": "developers"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Group 'developers' already exists"

    def test_same_name_in_other_organization(self, client, db_tester, organization_admin):
        db_tester.insert_group(db_tester.insert_organization(), "developers")

        response = client.post("/api/user_groups/create", json={"name": "developers"})

        assert response.status_code == 200

    @pytest.mark.parametrize("name", ["Anyone", "anyone", "ANYONE"])
    def test_anyone_is_reserved(self, client, organization_admin, name):
        response = client.post("/api/user_groups/create", json={"name": name})

        assert response.status_code == 400
        assert response.json()["detail"] == "Anyone group cannot be used"

    def test_requires_organization_admin(self, client, db_tester, user_session):
        user_session.log_in(db_tester.insert_user())

        response = client.post("/api/user_groups/create", json={"name": "developers"})

        assert response.status_code == 403


class TestDeleteGroup:
    """删除用户组测试"""

    def test_delete_by_id(self, client, db_tester, organization_admin):
        group = db_tester.insert_group(db_tester.default_organization())
        db_tester.insert_member(group, db_tester.insert_user())
        db_tester.insert_permission_on_group(group, GlobalPermission.SCAN)

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 204
        assert db_tester.select_group(group.id) is None
        assert db_tester.select_group_permissions(group, db_tester.default_organization()) == set()

    def test_delete_by_name_in_organization(self, client, db_tester, user_session):
        organization = db_tester.insert_organization("acme")
        group = db_tester.insert_group(organization, "developers")
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.ADMIN
        )
        group_id = group.id

        response = client.post("/api/user_groups/delete", json={"name": "developers", "organization": "acme"})

        assert response.status_code == 204
        assert db_tester.select_group(group_id) is None

    def test_cannot_delete_default_group(self, client, db_tester, organization_admin):
        group = db_tester.default_group()

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 400
        assert response.json()["detail"] == f"Default group '{group.name}' cannot be deleted"
        assert db_tester.select_group(group.id) is not None

    def test_group_named_like_default_group_in_other_organization(self, client, db_tester, user_session):
        organization = db_tester.insert_organization()
        group = db_tester.insert_group(organization, db_tester.default_group().name)
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.ADMIN
        )

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 204

    def test_cannot_delete_last_admin_group(self, client, db_tester, organization_admin):
        group = db_tester.insert_group(db_tester.default_organization(), "admins")
        db_tester.insert_permission_on_group(group, GlobalPermission.ADMIN)
        db_tester.insert_member(group, db_tester.insert_user())

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 400
        assert response.json()["detail"] == "The last system admin group cannot be deleted"

    def test_delete_admin_group_when_admin_user_remains(self, client, db_tester, organization_admin):
        organization = db_tester.default_organization()
        group = db_tester.insert_group(organization, "admins")
        db_tester.insert_permission_on_group(group, GlobalPermission.ADMIN)
        db_tester.insert_member(group, db_tester.insert_user())
        db_tester.insert_permission_on_user(organization, db_tester.insert_user(), GlobalPermission.ADMIN)

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 204

    def test_unknown_group(self, client, organization_admin):
        response = client.post("/api/user_groups/delete", json={"id": 999})

        assert response.status_code == 404
        assert response.json()["detail"] == "No group with id '999'"

    def test_anonymous_is_rejected(self, client, db_tester):
        group = db_tester.insert_group(db_tester.default_organization())

        response = client.post("/api/user_groups/delete", json={"id": group.id})

        assert response.status_code == 401


class TestMembership:
    """成员管理测试"""

    def test_add_and_remove_user(self, client, db_tester, organization_admin):
        group = db_tester.insert_group(db_tester.default_organization(), "developers")
        user = db_tester.insert_user("alice")

        response = client.post("/api/user_groups/add_user", json={"id": group.id, "login": "alice"})
        assert response.status_code == 204
        assert group.id in db_tester.select_group_ids_of_user(user)

        response = client.post("/api/user_groups/add_user", json={"id": group.id, "login": "alice"})
        assert response.status_code == 204
        assert db_tester.select_group_ids_of_user(user).count(group.id) == 1

        response = client.post("/api/user_groups/remove_user", json={"name": "developers", "login": "alice"})
        assert response.status_code == 204
        assert group.id not in db_tester.select_group_ids_of_user(user)

    def test_unknown_user(self, client, db_tester, organization_admin):
        group = db_tester.insert_group(db_tester.default_organization())

        response = client.post("/api/user_groups/add_user", json={"id": group.id, "login": "ghost"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Could not find a user with login 'ghost'"
