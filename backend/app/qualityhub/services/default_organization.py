"""QualityHub - Default Organization

默认组织

默认组织的 UUID 保存在内部属性 organization.default 中，由启动 seed 创建。
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import check_state
from qualityhub.database.organization_models import Organization
from qualityhub.database.property_models import InternalPropertyKey
from qualityhub.services.property_service import InternalPropertyService

DEFAULT_ORGANIZATION_KEY = "default-organization"
DEFAULT_ORGANIZATION_NAME = "Default Organization"


@dataclass(frozen=True)
class DefaultOrganization:
    uuid: str
    key: str
    name: str
    created_at: datetime


class DefaultOrganizationProvider:
    """默认组织提供者"""

    def get(self, db: Session) -> DefaultOrganization:
        uuid = InternalPropertyService.select_by_key(db, InternalPropertyKey.DEFAULT_ORGANIZATION)
        check_state(uuid, "No default organization uuid registered")
        organization = db.query(Organization).filter(Organization.uuid == uuid).first()
        check_state(organization is not None, "Default organization with uuid '%s' does not exist", uuid)
        return DefaultOrganization(
            uuid=organization.uuid,
            key=organization.kee,
            name=organization.name,
            created_at=organization.created_at,
        )

    def is_default(self, db: Session, organization_uuid: str) -> bool:
        return self.get(db).uuid == organization_uuid
