"""
测试用用户会话

权限完全由测试代码设置，不访问数据库：

    user_session.log_in(user).add_organization_permission(org.uuid, "admin")
    user_session.log_in(user).set_root()
    user_session.anonymous()
"""
from typing import Optional

from qualityhub.services.user_session import AbstractUserSession


class MockUserSession(AbstractUserSession):
    """内存中的用户会话"""

    def __init__(self):
        self.anonymous()

    # ========== 设置身份 ==========

    def log_in(self, user=None, login: Optional[str] = None, user_id: Optional[int] = None) -> "MockUserSession":
        """以指定用户（或任意登录名）登录，清空已有权限"""
        self.anonymous()
        if user is not None:
            self._login = user.login
            self._name = user.name
            self._user_id = user.id
        else:
            self._login = login or "john"
            self._name = self._login
            self._user_id = user_id
        self._logged_in = True
        return self

    def anonymous(self) -> "MockUserSession":
        self._login = None
        self._name = None
        self._user_id = None
        self._logged_in = False
        self._root = False
        self._system_administrator = False
        self._groups = []
        self._organization_permissions: dict[str, set[str]] = {}
        self._project_permissions: dict[str, set[str]] = {}
        return self

    def set_root(self, root: bool = True) -> "MockUserSession":
        self._root = root
        return self

    def set_system_administrator(self, value: bool = True) -> "MockUserSession":
        self._system_administrator = value
        return self

    def set_groups(self, *groups) -> "MockUserSession":
        self._groups = list(groups)
        return self

    def add_organization_permission(self, organization_uuid: str, permission) -> "MockUserSession":
        self._organization_permissions.setdefault(organization_uuid, set()).add(_value(permission))
        return self

    def add_project_uuid_permissions(self, permission, *project_uuids: str) -> "MockUserSession":
        for project_uuid in project_uuids:
            self._project_permissions.setdefault(project_uuid, set()).add(_value(permission))
        return self

    # ========== AbstractUserSession ==========

    @property
    def login(self) -> Optional[str]:
        return self._login

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    def is_logged_in(self) -> bool:
        return self._logged_in

    def is_root(self) -> bool:
        return self._root

    def groups(self) -> list:
        return list(self._groups)

    def _has_organization_permission(self, organization_uuid: str, permission: str) -> bool:
        return permission in self._organization_permissions.get(organization_uuid, set())

    def _has_component_uuid_permission(self, permission: str, component_uuid: str) -> bool:
        return permission in self._project_permissions.get(component_uuid, set())

    def _is_system_administrator(self) -> bool:
        return self._system_administrator


def _value(permission) -> str:
    return getattr(permission, "value", permission)
