"""组织 API 集成测试

测试 /api/organizations 端点
"""
import pytest

from qualityhub.core.config import settings
from qualityhub.database.organization_models import PermTemplateGroup, PermissionTemplate
from qualityhub.database.user_models import Group
from qualityhub.services.organization_service import slugify
from qualityhub.services.permission_service import GLOBAL_PERMISSIONS, GlobalPermission


@pytest.fixture
def root(db_tester, user_session):
    """root 用户登录，且组织功能已开启"""
    db_tester.enable_organizations()
    user = db_tester.insert_user("root-user", root=True)
    user_session.log_in(user).set_root()
    return user


class TestSlugify:
    def test_slugify(self):
        assert slugify("Foo Bar") == "foo-bar"
        assert slugify("  --Foo_Bar!!  ") == "foo-bar"
        assert slugify("Élève") == "eleve"
        assert slugify("abc-123") == "abc-123"


class TestCreateOrganization:
    """创建组织 API 测试"""

    def test_create_with_all_fields(self, client, root):
        response = client.post("/api/organizations/create", json={
            "name": "Orange",
            "key": "orange",
            "description": "An orange company",
            "url": "https://orange.example.com",
            "avatar": "https://orange.example.com/logo.png",
        })

        assert response.status_code == 200
        assert response.json() == {
            "organization": {
                "key": "orange",
                "name": "Orange",
                "description": "An orange company",
                "url": "https://orange.example.com",
                "avatar": "https://orange.example.com/logo.png",
            }
        }

    def test_key_is_generated_from_name(self, client, root):
        response = client.post("/api/organizations/create", json={"name": "Foo Company"})

        assert response.status_code == 200
        assert response.json()["organization"]["key"] == "foo-company"

    def test_creates_owners_group_with_all_global_permissions(self, client, root, db_tester):
        client.post("/api/organizations/create", json={"name": "Orange", "key": "orange"})

        organization = db_tester.select_organization("orange")
        owners = db_tester.db.query(Group).filter(Group.organization_uuid == organization.uuid).one()
        assert owners.name == "Owners"
        assert owners.description == "Owners of organization Orange"
        assert db_tester.select_group_permissions(owners, organization) == set(GLOBAL_PERMISSIONS)
        assert owners.id in db_tester.select_group_ids_of_user(root)

    def test_creates_default_permission_template(self, client, root, db_tester):
        client.post("/api/organizations/create", json={"name": "Orange", "key": "orange"})

        organization = db_tester.select_organization("orange")
        db = db_tester.db
        template = db.query(PermissionTemplate).filter(
            PermissionTemplate.organization_uuid == organization.uuid
        ).one()
        assert template.name == "Default template"
        assert template.description == "Default permission template of organization Orange"
        assert organization.default_perm_template_project == template.kee

        owners = db.query(Group).filter(Group.organization_uuid == organization.uuid).one()
        grants = {
            (g.group_id, g.permission_reference)
            for g in db.query(PermTemplateGroup).filter(PermTemplateGroup.template_id == template.id)
        }
        assert grants == {
            (owners.id, "admin"),
            (owners.id, "issueadmin"),
            (None, "user"),
            (None, "codeviewer"),
        }

    def test_fails_when_feature_is_disabled(self, client, db_tester, user_session):
        user_session.log_in(db_tester.insert_user(root=True)).set_root()

        response = client.post("/api/organizations/create", json={"name": "Orange"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Organization feature is disabled"

    def test_requires_root(self, client, db_tester, user_session):
        db_tester.enable_organizations()
        user_session.log_in(db_tester.insert_user())

        response = client.post("/api/organizations/create", json={"name": "Orange"})

        assert response.status_code == 403

    def test_any_logged_in_user_can_create_when_allowed(self, client, db_tester, user_session, monkeypatch):
        monkeypatch.setattr(settings, "ORGANIZATIONS_ANYONE_CAN_CREATE", True)
        db_tester.enable_organizations()
        user_session.log_in(db_tester.insert_user())

        response = client.post("/api/organizations/create", json={"name": "Orange"})

        assert response.status_code == 200

    def test_anonymous_cannot_create_when_allowed(self, client, db_tester, monkeypatch):
        monkeypatch.setattr(settings, "ORGANIZATIONS_ANYONE_CAN_CREATE", True)
        db_tester.enable_organizations()

        response = client.post("/api/organizations/create", json={"name": "Orange"})

        assert response.status_code == 401

    @pytest.mark.parametrize("payload, message", [
        ({"name": "Orange", "key": "a"}, "Key 'a' must be at least 2 chars long"),
        ({"name": "Orange", "key": "a" * 33}, f"Key '{'a' * 33}' must be at most 32 chars long"),
        ({"name": "Orange", "key": "Not Valid"}, "Key 'Not Valid' contains at least one invalid char"),
        ({"name": "O"}, "Name 'O' must be at least 2 chars long"),
        ({}, "Name can't be empty"),
    ])
    def test_validation(self, client, root, payload, message):
        response = client.post("/api/organizations/create", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"] == message

    def test_description_is_limited_to_256_chars(self, client, root):
        response = client.post("/api/organizations/create", json={"name": "Orange", "description": "d" * 257})

        assert response.status_code == 400

    def test_fails_when_key_is_already_used(self, client, root, db_tester):
        db_tester.insert_organization("orange")

        response = client.post("/api/organizations/create", json={"name": "Orange", "key": "orange"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Key 'orange' is already used. Specify another one."

    def test_fails_when_generated_key_is_already_used(self, client, root, db_tester):
        db_tester.insert_organization("orange")

        response = client.post("/api/organizations/create", json={"name": "Orange"})

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Key 'orange' generated from name 'Orange' is already used. Specify one."
        )


class TestUpdateOrganization:
    """更新组织 API 测试"""

    def test_update_as_organization_admin(self, client, db_tester, user_session):
        db_tester.enable_organizations()
        organization = db_tester.insert_organization("orange", "Orange")
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.ADMIN
        )

        response = client.post("/api/organizations/update", json={
            "key": "orange",
            "name": "Orange Inc",
            "url": "https://orange.example.com",
        })

        assert response.status_code == 200
        data = response.json()["organization"]
        assert data["name"] == "Orange Inc"
        assert data["url"] == "https://orange.example.com"
        assert db_tester.select_organization("orange").name == "Orange Inc"

    def test_requires_organization_admin(self, client, db_tester, user_session):
        db_tester.enable_organizations()
        db_tester.insert_organization("orange")
        user_session.log_in(db_tester.insert_user())

        response = client.post("/api/organizations/update", json={"key": "orange", "name": "Other"})

        assert response.status_code == 403

    def test_unknown_organization(self, client, root):
        response = client.post("/api/organizations/update", json={"key": "unknown", "name": "Other"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No organization with key 'unknown'"


class TestDeleteOrganization:
    """删除组织 API 测试"""

    def test_delete_with_projects_groups_and_permissions(self, client, db_tester, user_session):
        db_tester.enable_organizations()
        organization = db_tester.insert_organization("orange")
        project = db_tester.insert_project(organization)
        group = db_tester.insert_group(organization)
        user = db_tester.insert_user()
        db_tester.insert_member(group, user)
        db_tester.insert_permission_on_group(group, GlobalPermission.ADMIN)
        db_tester.insert_permission_on_user(organization, user, "user", project)
        user_session.log_in(user).add_organization_permission(organization.uuid, GlobalPermission.ADMIN)
        project_uuid, group_id = project.uuid, group.id

        response = client.post("/api/organizations/delete", json={"key": "orange"})

        assert response.status_code == 204
        assert db_tester.select_organization("orange") is None
        assert db_tester.select_component(project_uuid) is None
        assert db_tester.select_group(group_id) is None
        assert db_tester.select_user_permissions(user, project) == set()
        assert db_tester.select_group_ids_of_user(user) == []

    def test_default_organization_cannot_be_deleted(self, client, root, db_tester):
        response = client.post("/api/organizations/delete", json={"key": "default-organization"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Default Organization can't be deleted"
        assert db_tester.select_organization("default-organization") is not None

    def test_guarded_organization_requires_root(self, client, db_tester, user_session):
        db_tester.enable_organizations()
        organization = db_tester.insert_organization("guarded", guarded=True)
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.ADMIN
        )

        response = client.post("/api/organizations/delete", json={"key": "guarded"})

        assert response.status_code == 403
        assert db_tester.select_organization("guarded") is not None

    def test_root_can_delete_guarded_organization(self, client, root, db_tester):
        db_tester.insert_organization("guarded", guarded=True)

        response = client.post("/api/organizations/delete", json={"key": "guarded"})

        assert response.status_code == 204
        assert db_tester.select_organization("guarded") is None

    def test_requires_authentication(self, client, db_tester):
        db_tester.enable_organizations()
        db_tester.insert_organization("orange")

        response = client.post("/api/organizations/delete", json={"key": "orange"})

        assert response.status_code == 401


class TestSearchOrganizations:
    """查询组织 API 测试"""

    def test_search_all_newest_first(self, client, db_tester):
        db_tester.insert_organization("first")
        db_tester.insert_organization("second")

        response = client.get("/api/organizations/search")

        assert response.status_code == 200
        data = response.json()
        keys = [o["key"] for o in data["organizations"]]
        assert keys[:2] == ["second", "first"]
        assert "default-organization" in keys
        assert data["paging"]["total"] == 3

    def test_search_by_keys(self, client, db_tester):
        db_tester.insert_organization("first")
        db_tester.insert_organization("second")

        response = client.get("/api/organizations/search", params={"organizations": "first,unknown"})

        assert [o["key"] for o in response.json()["organizations"]] == ["first"]

    def test_pagination(self, client, db_tester):
        for index in range(5):
            db_tester.insert_organization(f"org-{index}")

        response = client.get("/api/organizations/search", params={"p": 2, "ps": 2})

        data = response.json()
        assert len(data["organizations"]) == 2
        assert data["paging"] == {"pageIndex": 2, "pageSize": 2, "total": 6}

    def test_page_size_is_limited(self, client):
        response = client.get("/api/organizations/search", params={"ps": 501})

        assert response.status_code == 400
