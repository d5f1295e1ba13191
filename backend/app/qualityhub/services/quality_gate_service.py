"""QualityHub - Quality Gate Service

质量门管理

- 质量门的增删改查、复制、默认质量门
- 质量门条件的增删改
- 项目与质量门的关联（保存在项目属性 sonar.qualitygate 中）

质量门目前不区分组织，管理权限为：系统管理员，或默认组织上的 gateadmin 权限。
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import (
    Errors,
    check_argument,
    check_found,
    check_state,
    insufficient_privileges,
)
from qualityhub.database.component_models import Component
from qualityhub.database.quality_gate_models import Metric, QualityGate, QualityGateCondition
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.permission_service import GlobalPermission, ProjectPermission
from qualityhub.services.property_service import PropertyService
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

SONAR_QUALITYGATE_PROPERTY = "sonar.qualitygate"

OPERATORS = ("LT", "GT", "EQ", "NE")
LEAK_PERIOD = 1


class QualityGates:
    """质量门服务

    与其它服务不同，这里按实例持有 db 和 user_session，
    路由层每个请求创建一个实例。
    """

    def __init__(
        self,
        db: Session,
        user_session: AbstractUserSession,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ):
        self.db = db
        self.user_session = user_session
        self.default_organization_provider = default_organization_provider or DefaultOrganizationProvider()

    # ========== 查询 ==========

    def get(self, id: int) -> QualityGate:
        gate = self.db.query(QualityGate).filter(QualityGate.id == id).first()
        return check_found(gate, "There is no quality gate with id=%s", id)

    def get_by_name(self, name: str) -> QualityGate:
        gate = self.db.query(QualityGate).filter(QualityGate.name == name).first()
        return check_found(gate, "There is no quality gate with name=%s", name)

    def list(self) -> List[QualityGate]:
        return self.db.query(QualityGate).order_by(QualityGate.name).all()

    def get_default(self) -> Optional[QualityGate]:
        default_id = self._get_default_id()
        if default_id is None:
            return None
        return self.db.query(QualityGate).filter(QualityGate.id == default_id).first()

    def is_default(self, gate: QualityGate) -> bool:
        return gate.id == self._get_default_id()

    # ========== 创建 / 修改 ==========

    def create(self, name: Optional[str]) -> QualityGate:
        self.check_can_administer()
        self._validate_quality_gate(None, name)
        gate = QualityGate(name=name)
        self.db.add(gate)
        self.db.commit()
        self.db.refresh(gate)
        logger.info(f"Quality gate created: {name}")
        return gate

    def rename(self, id: int, name: Optional[str]) -> QualityGate:
        self.check_can_administer()
        gate = self.get(id)
        self._validate_quality_gate(id, name)
        gate.name = name
        self.db.commit()
        self.db.refresh(gate)
        logger.info(f"Quality gate {id} renamed to {name}")
        return gate

    def copy(self, source_id: int, destination_name: Optional[str]) -> QualityGate:
        """复制质量门及其全部条件（同一事务）"""
        self.check_can_administer()
        self.get(source_id)
        self._validate_quality_gate(None, destination_name)

        destination = QualityGate(name=destination_name)
        self.db.add(destination)
        self.db.flush()
        for source in self._select_conditions(source_id):
            self.db.add(QualityGateCondition(
                qgate_id=destination.id,
                metric_id=source.metric_id,
                operator=source.operator,
                value_warning=source.value_warning,
                value_error=source.value_error,
                period=source.period,
            ))
        self.db.commit()
        self.db.refresh(destination)
        logger.info(f"Quality gate {source_id} copied to {destination_name}")
        return destination

    def delete(self, id: int) -> None:
        """删除质量门，同时清除默认设置、项目关联和条件"""
        self.check_can_administer()
        gate = self.get(id)
        if self.is_default(gate):
            PropertyService.delete_global_property(self.db, SONAR_QUALITYGATE_PROPERTY)
        PropertyService.delete_project_properties(self.db, SONAR_QUALITYGATE_PROPERTY, str(id))
        self.db.query(QualityGateCondition).filter(QualityGateCondition.qgate_id == id).delete(
            synchronize_session=False
        )
        self.db.delete(gate)
        self.db.commit()
        logger.info(f"Quality gate deleted: {id}")

    def set_default(self, id: Optional[int]) -> None:
        """设置默认质量门，id 为 None 时清除"""
        self.check_can_administer()
        if id is None:
            PropertyService.delete_global_property(self.db, SONAR_QUALITYGATE_PROPERTY)
        else:
            gate = self.get(id)
            PropertyService.save_global_property(self.db, SONAR_QUALITYGATE_PROPERTY, str(gate.id))
        self.db.commit()
        logger.info(f"Default quality gate set to {id}")

    # ========== 条件 ==========

    def list_conditions(self, gate_id: int) -> List[QualityGateCondition]:
        conditions = self._select_conditions(gate_id)
        for condition in conditions:
            metric = self.db.query(Metric).filter(Metric.id == condition.metric_id).first()
            check_state(metric is not None, "Could not find metric with id %s", condition.metric_id)
            condition.metric_key = metric.key
        return conditions

    def create_condition(
        self,
        gate_id: int,
        metric_key: str,
        operator: str,
        warning_threshold: Optional[str] = None,
        error_threshold: Optional[str] = None,
        period: Optional[int] = None,
    ) -> QualityGateCondition:
        self.check_can_administer()
        gate = self.get(gate_id)
        metric = self._get_metric(metric_key)
        self._validate_condition(metric, operator, warning_threshold, error_threshold, period)
        self._check_condition_does_not_exist(gate.id, metric, period)

        condition = QualityGateCondition(
            qgate_id=gate.id,
            metric_id=metric.id,
            operator=operator,
            value_warning=warning_threshold,
            value_error=error_threshold,
            period=period,
        )
        self.db.add(condition)
        self.db.commit()
        self.db.refresh(condition)
        condition.metric_key = metric.key
        logger.info(f"Condition on metric {metric.key} added to quality gate {gate.name}")
        return condition

    def update_condition(
        self,
        condition_id: int,
        metric_key: str,
        operator: str,
        warning_threshold: Optional[str] = None,
        error_threshold: Optional[str] = None,
        period: Optional[int] = None,
    ) -> QualityGateCondition:
        self.check_can_administer()
        condition = self._get_condition(condition_id)
        metric = self._get_metric(metric_key)
        self._validate_condition(metric, operator, warning_threshold, error_threshold, period)
        self._check_condition_does_not_exist(condition.qgate_id, metric, period, excluded_id=condition.id)

        condition.metric_id = metric.id
        condition.operator = operator
        condition.value_warning = warning_threshold
        condition.value_error = error_threshold
        condition.period = period
        self.db.commit()
        self.db.refresh(condition)
        condition.metric_key = metric.key
        logger.info(f"Condition {condition_id} updated")
        return condition

    def delete_condition(self, condition_id: int) -> None:
        self.check_can_administer()
        condition = self._get_condition(condition_id)
        self.db.delete(condition)
        self.db.commit()
        logger.info(f"Condition {condition_id} deleted")

    # ========== 项目关联 ==========

    def associate_project(self, gate_id: int, project: Component) -> None:
        gate = self.get(gate_id)
        self._check_project_admin(project)
        PropertyService.save_project_property(self.db, SONAR_QUALITYGATE_PROPERTY, project.id, str(gate.id))
        self.db.commit()
        logger.info(f"Project {project.kee} associated with quality gate {gate.name}")

    def dissociate_project(self, gate_id: int, project: Component) -> None:
        gate = self.get(gate_id)
        self._check_project_admin(project)
        PropertyService.delete_project_property(self.db, SONAR_QUALITYGATE_PROPERTY, project.id)
        self.db.commit()
        logger.info(f"Project {project.kee} dissociated from quality gate {gate.name}")

    # ========== 权限 ==========

    def can_administer(self) -> bool:
        if self.user_session.is_system_administrator():
            return True
        default_organization = self.default_organization_provider.get(self.db)
        return self.user_session.has_organization_permission(
            default_organization.uuid, GlobalPermission.QUALITY_GATE_ADMIN
        )

    def check_can_administer(self) -> None:
        if not self.can_administer():
            raise insufficient_privileges()

    def _check_project_admin(self, project: Component) -> None:
        if not self.user_session.has_organization_permission(
            project.organization_uuid, GlobalPermission.QUALITY_GATE_ADMIN
        ) and not self.user_session.has_component_permission(ProjectPermission.ADMIN, project):
            raise insufficient_privileges()

    # ========== 内部方法 ==========

    def _get_default_id(self) -> Optional[int]:
        prop = PropertyService.select_global_property(self.db, SONAR_QUALITYGATE_PROPERTY)
        if prop is None or not (prop.text_value or "").strip():
            return None
        return int(prop.text_value)

    def _select_conditions(self, gate_id: int) -> List[QualityGateCondition]:
        return (
            self.db.query(QualityGateCondition)
            .filter(QualityGateCondition.qgate_id == gate_id)
            .order_by(QualityGateCondition.id)
            .all()
        )

    def _get_condition(self, condition_id: int) -> QualityGateCondition:
        condition = self.db.query(QualityGateCondition).filter(QualityGateCondition.id == condition_id).first()
        return check_found(condition, "There is no condition with id=%s", condition_id)

    def _get_metric(self, metric_key: str) -> Metric:
        metric = self.db.query(Metric).filter(Metric.name == metric_key, Metric.enabled.is_(True)).first()
        return check_found(metric, "There is no metric with key=%s", metric_key)

    def _validate_quality_gate(self, updating_id: Optional[int], name: Optional[str]) -> None:
        errors = Errors()
        if not name:
            errors.add("Name can't be empty")
        else:
            existing = self.db.query(QualityGate).filter(QualityGate.name == name).first()
            is_modifying_current = updating_id is not None and existing is not None and existing.id == updating_id
            errors.check(is_modifying_current or existing is None, "Name has already been taken")
        errors.raise_if_any()

    @staticmethod
    def _validate_condition(
        metric: Metric,
        operator: str,
        warning_threshold: Optional[str],
        error_threshold: Optional[str],
        period: Optional[int],
    ) -> None:
        errors = Errors()
        errors.check(operator in OPERATORS, f"Operator {operator} is not allowed for metric '{metric.key}'")
        errors.check(
            bool(warning_threshold) or bool(error_threshold),
            "At least one threshold (warning, error) must be set.",
        )
        errors.check(period is None or period == LEAK_PERIOD, f"The only authorized period is '{LEAK_PERIOD}'")
        errors.raise_if_any()

    def _check_condition_does_not_exist(
        self,
        gate_id: int,
        metric: Metric,
        period: Optional[int],
        excluded_id: Optional[int] = None,
    ) -> None:
        query = self.db.query(QualityGateCondition).filter(
            QualityGateCondition.qgate_id == gate_id,
            QualityGateCondition.metric_id == metric.id,
            QualityGateCondition.period.is_(None) if period is None else QualityGateCondition.period == period,
        )
        if excluded_id is not None:
            query = query.filter(QualityGateCondition.id != excluded_id)
        if period is None:
            message = f"Condition on metric '{metric.short_name or metric.key}' already exists."
        else:
            message = f"Condition on metric '{metric.short_name or metric.key}' over leak period already exists."
        check_argument(query.first() is None, message)
