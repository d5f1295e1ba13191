"""质量门测试

测试 QualityGates 服务与 /api/qualitygates 端点
"""
import pytest

from qualityhub.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    IllegalStateError,
    NotFoundException,
)
from qualityhub.database.quality_gate_models import QualityGateCondition
from qualityhub.services.permission_service import GlobalPermission, ProjectPermission
from qualityhub.services.property_service import PropertyService
from qualityhub.services.quality_gate_service import SONAR_QUALITYGATE_PROPERTY, QualityGates


@pytest.fixture
def gate_admin(db_tester, user_session):
    """默认组织上的 gateadmin"""
    user_session.log_in(db_tester.insert_user()).add_organization_permission(
        db_tester.default_organization().uuid, GlobalPermission.QUALITY_GATE_ADMIN
    )
    return user_session


@pytest.fixture
def quality_gates(db, user_session):
    return QualityGates(db, user_session)


class TestAdministration:
    """管理权限"""

    def test_system_administrator_can_administer(self, db_tester, user_session, quality_gates):
        user_session.log_in(db_tester.insert_user()).set_system_administrator()

        assert quality_gates.can_administer()

    def test_gate_admin_of_default_organization_can_administer(self, gate_admin, quality_gates):
        assert quality_gates.can_administer()

    def test_gate_admin_of_other_organization_cannot_administer(self, db_tester, user_session, quality_gates):
        organization = db_tester.insert_organization()
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.QUALITY_GATE_ADMIN
        )

        with pytest.raises(ForbiddenException, match="Insufficient privileges"):
            quality_gates.create("Default")

    def test_anonymous_cannot_administer(self, quality_gates):
        with pytest.raises(ForbiddenException):
            quality_gates.create("Default")


class TestQualityGates:
    """质量门增删改查"""

    def test_create(self, gate_admin, quality_gates):
        gate = quality_gates.create("Default")

        assert gate.id is not None
        assert quality_gates.get_by_name("Default").id == gate.id

    def test_create_with_empty_name(self, gate_admin, quality_gates):
        with pytest.raises(BadRequestException) as exc_info:
            quality_gates.create("")

        assert exc_info.value.errors == ["Name can't be empty"]

    def test_create_with_duplicate_name(self, gate_admin, quality_gates, db_tester):
        db_tester.insert_quality_gate("Default")

        with pytest.raises(BadRequestException) as exc_info:
            quality_gates.create("Default")

        assert exc_info.value.errors == ["Name has already been taken"]

    def test_get_unknown(self, quality_gates):
        with pytest.raises(NotFoundException, match="There is no quality gate with id=123"):
            quality_gates.get(123)
        with pytest.raises(NotFoundException, match="There is no quality gate with name=Unknown"):
            quality_gates.get_by_name("Unknown")

    def test_list_is_sorted_by_name(self, quality_gates, db_tester):
        db_tester.insert_quality_gate("Zeta")
        db_tester.insert_quality_gate("Alpha")

        assert [g.name for g in quality_gates.list()] == ["Alpha", "Zeta"]

    def test_rename(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate("Old")

        renamed = quality_gates.rename(gate.id, "New")

        assert renamed.name == "New"

    def test_rename_to_same_name(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate("Same")

        assert quality_gates.rename(gate.id, "Same").name == "Same"

    def test_rename_to_name_of_other_gate(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate("First")
        db_tester.insert_quality_gate("Second")

        with pytest.raises(BadRequestException, match="Name has already been taken"):
            quality_gates.rename(gate.id, "Second")

    def test_copy_with_conditions(self, gate_admin, quality_gates, db_tester):
        source = db_tester.insert_quality_gate("Source")
        coverage = db_tester.insert_metric("coverage")
        bugs = db_tester.insert_metric("bugs")
        db_tester.insert_condition(source, coverage, "LT", error="80", warning="90")
        db_tester.insert_condition(source, bugs, "GT", error="0", period=1)

        copy = quality_gates.copy(source.id, "Copy")

        conditions = quality_gates.list_conditions(copy.id)
        assert copy.name == "Copy"
        assert [(c.metric_key, c.operator, c.value_error, c.value_warning, c.period) for c in conditions] == [
            ("coverage", "LT", "80", "90", None),
            ("bugs", "GT", "0", None, 1),
        ]
        assert len(quality_gates.list_conditions(source.id)) == 2

    def test_delete_default_gate(self, gate_admin, quality_gates, db_tester, db):
        gate = db_tester.insert_quality_gate()
        project = db_tester.insert_project(db_tester.default_organization())
        db_tester.insert_condition(gate, db_tester.insert_metric())
        quality_gates.set_default(gate.id)
        PropertyService.save_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id, str(gate.id))
        db.commit()
        gate_id = gate.id

        quality_gates.delete(gate_id)

        assert quality_gates.get_default() is None
        assert PropertyService.select_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id) is None
        assert db.query(QualityGateCondition).count() == 0
        with pytest.raises(NotFoundException):
            quality_gates.get(gate_id)

    def test_set_and_unset_default(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()

        quality_gates.set_default(gate.id)
        assert quality_gates.get_default().id == gate.id

        quality_gates.set_default(None)
        assert quality_gates.get_default() is None


class TestConditions:
    """质量门条件"""

    def test_create_condition(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()
        db_tester.insert_metric("coverage")

        condition = quality_gates.create_condition(gate.id, "coverage", "LT", "90", "80", None)

        assert condition.metric_key == "coverage"
        assert condition.value_warning == "90"
        assert condition.value_error == "80"

    @pytest.mark.parametrize("operator, warning, error, period, message", [
        ("XX", None, "10", None, "Operator XX is not allowed for metric 'coverage'"),
        ("LT", None, None, None, "At least one threshold (warning, error) must be set."),
        ("LT", None, "10", 2, "The only authorized period is '1'"),
    ])
    def test_invalid_condition(self, gate_admin, quality_gates, db_tester, operator, warning, error, period, message):
        gate = db_tester.insert_quality_gate()
        db_tester.insert_metric("coverage")

        with pytest.raises(BadRequestException) as exc_info:
            quality_gates.create_condition(gate.id, "coverage", operator, warning, error, period)

        assert message in exc_info.value.errors

    def test_duplicate_condition(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()
        metric = db_tester.insert_metric("coverage", short_name="Coverage")
        db_tester.insert_condition(gate, metric, "LT", error="80")

        with pytest.raises(BadRequestException, match="Condition on metric 'Coverage' already exists."):
            quality_gates.create_condition(gate.id, "coverage", "LT", None, "70", None)

    def test_same_metric_on_leak_period_is_allowed(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()
        metric = db_tester.insert_metric("coverage")
        db_tester.insert_condition(gate, metric, "LT", error="80")

        condition = quality_gates.create_condition(gate.id, "coverage", "LT", None, "70", 1)

        assert condition.period == 1

    def test_unknown_metric(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()

        with pytest.raises(NotFoundException, match="There is no metric with key=unknown"):
            quality_gates.create_condition(gate.id, "unknown", "LT", None, "70", None)

    def test_update_condition(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()
        condition = db_tester.insert_condition(gate, db_tester.insert_metric("coverage"), "LT", error="80")
        db_tester.insert_metric("bugs")

        updated = quality_gates.update_condition(condition.id, "bugs", "GT", None, "0", None)

        assert updated.metric_key == "bugs"
        assert updated.operator == "GT"

    def test_delete_condition(self, gate_admin, quality_gates, db_tester):
        gate = db_tester.insert_quality_gate()
        condition = db_tester.insert_condition(gate, db_tester.insert_metric())

        quality_gates.delete_condition(condition.id)

        assert quality_gates.list_conditions(gate.id) == []

    def test_delete_unknown_condition(self, gate_admin, quality_gates):
        with pytest.raises(NotFoundException, match="There is no condition with id=42"):
            quality_gates.delete_condition(42)

    def test_list_conditions_fails_on_missing_metric(self, quality_gates, db_tester, db):
        gate = db_tester.insert_quality_gate()
        db.add(QualityGateCondition(qgate_id=gate.id, metric_id=999, operator="GT", value_error="1"))
        db.commit()

        with pytest.raises(IllegalStateError, match="Could not find metric with id 999"):
            quality_gates.list_conditions(gate.id)


class TestProjectAssociation:
    """项目关联"""

    def test_associate_as_project_admin(self, quality_gates, db_tester, user_session, db):
        gate = db_tester.insert_quality_gate()
        project = db_tester.insert_project(db_tester.default_organization())
        user_session.log_in(db_tester.insert_user()).add_project_uuid_permissions(
            ProjectPermission.ADMIN, project.uuid
        )

        quality_gates.associate_project(gate.id, project)

        prop = PropertyService.select_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id)
        assert prop.text_value == str(gate.id)

    def test_dissociate_as_gate_admin_of_project_organization(self, quality_gates, db_tester, user_session, db):
        organization = db_tester.insert_organization()
        gate = db_tester.insert_quality_gate()
        project = db_tester.insert_project(organization)
        PropertyService.save_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id, str(gate.id))
        db.commit()
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.QUALITY_GATE_ADMIN
        )

        quality_gates.dissociate_project(gate.id, project)

        assert PropertyService.select_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id) is None

    def test_associate_requires_permission(self, quality_gates, db_tester, user_session):
        gate = db_tester.insert_quality_gate()
        project = db_tester.insert_project(db_tester.default_organization())
        user_session.log_in(db_tester.insert_user()).add_project_uuid_permissions(
            ProjectPermission.USER, project.uuid
        )

        with pytest.raises(ForbiddenException):
            quality_gates.associate_project(gate.id, project)


class TestQualityGatesAPI:
    """质量门 API 测试"""

    def test_create(self, client, gate_admin, db_tester):
        response = client.post("/api/qualitygates/create", json={"name": "Default"})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Default"
        assert data["id"] is not None

    def test_create_requires_gate_admin(self, client, db_tester, user_session):
        user_session.log_in(db_tester.insert_user())

        response = client.post("/api/qualitygates/create", json={"name": "Default"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient privileges"

    def test_create_requires_gate_admin_of_default_organization(self, client, db_tester, user_session):
        organization = db_tester.insert_organization()
        user_session.log_in(db_tester.insert_user()).add_organization_permission(
            organization.uuid, GlobalPermission.QUALITY_GATE_ADMIN
        )

        response = client.post("/api/qualitygates/create", json={"name": "Default"})

        assert response.status_code == 403

    def test_show_and_list(self, client, gate_admin, db_tester):
        gate = db_tester.insert_quality_gate("Sonar way")
        db_tester.insert_condition(gate, db_tester.insert_metric("coverage"), "LT", error="80")
        client.post("/api/qualitygates/set_as_default", json={"id": gate.id})

        show = client.get("/api/qualitygates/show", params={"name": "Sonar way"}).json()
        listing = client.get("/api/qualitygates/list").json()

        assert show["id"] == gate.id
        assert show["conditions"][0]["metric"] == "coverage"
        assert show["conditions"][0]["op"] == "LT"
        assert show["conditions"][0]["error"] == "80"
        assert listing == {"qualitygates": [{"id": gate.id, "name": "Sonar way"}], "default": gate.id}

    def test_unset_default_without_body(self, client, gate_admin, db_tester):
        gate = db_tester.insert_quality_gate()
        client.post("/api/qualitygates/set_as_default", json={"id": gate.id})

        response = client.post("/api/qualitygates/unset_default")

        assert response.status_code == 204
        assert client.get("/api/qualitygates/list").json()["default"] is None

    def test_select_and_deselect(self, client, gate_admin, db_tester, db):
        gate = db_tester.insert_quality_gate()
        project = db_tester.insert_project(db_tester.default_organization(), "my-project")
        gate_admin.add_project_uuid_permissions(ProjectPermission.ADMIN, project.uuid)

        response = client.post("/api/qualitygates/select", json={"gateId": gate.id, "projectKey": "my-project"})
        assert response.status_code == 204
        assert PropertyService.select_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id) is not None

        response = client.post("/api/qualitygates/deselect", json={"gateId": gate.id, "projectId": project.uuid})
        assert response.status_code == 204
        db.expire_all()
        assert PropertyService.select_project_property(db, SONAR_QUALITYGATE_PROPERTY, project.id) is None

    def test_destroy_unknown_gate(self, client, gate_admin):
        response = client.post("/api/qualitygates/destroy", json={"id": 123})

        assert response.status_code == 404
        assert response.json()["detail"] == "There is no quality gate with id=123"
