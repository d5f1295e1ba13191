"""QualityHub - Property Service

全局 / 项目级配置属性与内部属性的读写
"""
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.database.property_models import InternalProperty, Property


class PropertyService:
    """配置属性服务

    写操作只 flush 不提交，由调用方控制事务。
    """

    @staticmethod
    def select_global_property(db: Session, key: str) -> Optional[Property]:
        return db.query(Property).filter(
            Property.prop_key == key,
            Property.resource_id.is_(None),
            Property.user_id.is_(None),
        ).first()

    @staticmethod
    def save_global_property(db: Session, key: str, value: Optional[str]) -> Property:
        prop = PropertyService.select_global_property(db, key)
        if prop is None:
            prop = Property(prop_key=key)
            db.add(prop)
        prop.text_value = value
        db.flush()
        return prop

    @staticmethod
    def delete_global_property(db: Session, key: str) -> None:
        db.query(Property).filter(
            Property.prop_key == key,
            Property.resource_id.is_(None),
            Property.user_id.is_(None),
        ).delete(synchronize_session=False)

    @staticmethod
    def select_project_property(db: Session, key: str, project_id: int) -> Optional[Property]:
        return db.query(Property).filter(
            Property.prop_key == key,
            Property.resource_id == project_id,
            Property.user_id.is_(None),
        ).first()

    @staticmethod
    def save_project_property(db: Session, key: str, project_id: int, value: Optional[str]) -> Property:
        prop = PropertyService.select_project_property(db, key, project_id)
        if prop is None:
            prop = Property(prop_key=key, resource_id=project_id)
            db.add(prop)
        prop.text_value = value
        db.flush()
        return prop

    @staticmethod
    def delete_project_property(db: Session, key: str, project_id: int) -> None:
        db.query(Property).filter(
            Property.prop_key == key,
            Property.resource_id == project_id,
        ).delete(synchronize_session=False)

    @staticmethod
    def delete_project_properties(db: Session, key: str, value: str) -> None:
        """删除所有值为 value 的项目级属性"""
        db.query(Property).filter(
            Property.prop_key == key,
            Property.resource_id.isnot(None),
            Property.text_value == value,
        ).delete(synchronize_session=False)

    @staticmethod
    def delete_properties_of_projects(db: Session, project_ids: list[int]) -> None:
        if not project_ids:
            return
        db.query(Property).filter(Property.resource_id.in_(project_ids)).delete(synchronize_session=False)


class InternalPropertyService:
    """内部属性服务"""

    @staticmethod
    def select_by_key(db: Session, key: str) -> Optional[str]:
        """读取内部属性，不存在返回 None"""
        prop = db.query(InternalProperty).filter(InternalProperty.kee == key).first()
        if prop is None:
            return None
        return prop.get_value()

    @staticmethod
    def save(db: Session, key: str, value: Optional[str]) -> None:
        prop = db.query(InternalProperty).filter(InternalProperty.kee == key).first()
        if prop is None:
            prop = InternalProperty(kee=key)
            db.add(prop)
        prop.is_empty = not value
        prop.text_value = value or None
        db.flush()
