"""QualityHub - Organization Feature

组织功能开关

功能默认关闭，关闭时系统只有默认组织，
开启后允许创建新组织，且只有 root 用户被视为系统管理员。
"""
import logging

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import IllegalStateError
from qualityhub.database.property_models import InternalPropertyKey
from qualityhub.services.property_service import InternalPropertyService

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Organization feature is disabled"


class OrganizationFeature:
    """组织功能开关（状态存储在 internal_properties）"""

    def is_enabled(self, db: Session) -> bool:
        value = InternalPropertyService.select_by_key(db, InternalPropertyKey.ORGANIZATION_ENABLED)
        return value == "true"

    def check_enabled(self, db: Session) -> None:
        if not self.is_enabled(db):
            raise IllegalStateError(FAILURE_MESSAGE)

    def enable(self, db: Session) -> None:
        """开启组织功能（不提交事务）"""
        InternalPropertyService.save(db, InternalPropertyKey.ORGANIZATION_ENABLED, "true")
        logger.info("Organization feature enabled")
