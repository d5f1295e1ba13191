"""QualityHub - Server ID Service

服务器 ID 生成与查看

服务器 ID 由组织名称和服务器 IP 地址计算得出：
    "1" + sha1("<organization>-<ip>") 的前 14 位十六进制字符
"""
from __future__ import annotations

import hashlib
import ipaddress
import logging
import socket
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import check_argument
from qualityhub.services.property_service import PropertyService
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

PERMANENT_SERVER_ID = "sonar.server_id"
ORGANISATION = "sonar.organisation"
SERVER_ID_IP_ADDRESS = "sonar.server_id.ip_address"

SERVER_ID_VERSION = "1"
SERVER_ID_HASH_LENGTH = 14


def _host_addresses() -> List[str]:
    """本机所有地址（包含回环地址，由调用方过滤）"""
    addresses = set()
    hostname = socket.gethostname()
    try:
        for info in socket.getaddrinfo(hostname, None):
            addresses.add(info[4][0])
    except socket.gaierror:
        logger.warning(f"Failed to resolve host addresses of {hostname}")
    return sorted(addresses)


def is_fixed_address(address: str) -> bool:
    """排除回环、链路本地和未指定地址"""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


class ServerIdGenerator:
    """服务器 ID 生成器

    address_provider 返回本机地址列表，测试时可替换。
    """

    def __init__(self, address_provider: Optional[Callable[[], List[str]]] = None):
        self._address_provider = address_provider or _host_addresses

    def validate(self, organization: Optional[str], ip_address: Optional[str], expected_server_id: str) -> bool:
        generated = self.generate(organization, ip_address)
        return generated is not None and generated == expected_server_id

    def generate(self, organization: Optional[str], ip_address: Optional[str]) -> Optional[str]:
        """组织为空或地址不是本机有效地址时返回 None"""
        if not organization or not organization.strip() or not self.is_valid_address(ip_address):
            return None
        return self.to_id(organization, ip_address)

    def is_valid_address(self, ip_address: Optional[str]) -> bool:
        if not ip_address or not ip_address.strip():
            return False
        return ip_address.strip() in self.get_available_addresses()

    def get_available_addresses(self) -> List[str]:
        return [address for address in self._address_provider() if is_fixed_address(address)]

    @staticmethod
    def to_id(organization: str, ip_address: str) -> str:
        digest = hashlib.sha1(f"{organization}-{ip_address}".encode("utf-8")).hexdigest()
        return SERVER_ID_VERSION + digest[:SERVER_ID_HASH_LENGTH]


@dataclass
class ServerIdInfo:
    server_id: Optional[str] = None
    organization: Optional[str] = None
    ip: Optional[str] = None
    valid_ip_addresses: List[str] = field(default_factory=list)
    invalid_server_id: bool = False


class ServerIdService:
    """服务器 ID 查看与生成（仅系统管理员）"""

    def __init__(self, db: Session, user_session: AbstractUserSession, generator: Optional[ServerIdGenerator] = None):
        self.db = db
        self.user_session = user_session
        self.generator = generator or ServerIdGenerator()

    def show(self) -> ServerIdInfo:
        self.user_session.check_is_system_administrator()

        server_id = self._get_property(PERMANENT_SERVER_ID)
        organization = self._get_property(ORGANISATION)
        ip = self._get_property(SERVER_ID_IP_ADDRESS)

        info = ServerIdInfo(
            server_id=server_id,
            organization=organization,
            ip=ip,
            valid_ip_addresses=self.generator.get_available_addresses(),
        )
        if server_id:
            info.invalid_server_id = not self.generator.validate(organization, ip, server_id)
        return info

    def generate(self, organization: str, ip: str) -> str:
        self.user_session.check_is_system_administrator()

        check_argument(organization and organization.strip(), "Organization must not be empty")
        check_argument(
            self.generator.is_valid_address(ip),
            "Invalid IP address '%s'. Valid addresses are: %s",
            ip, ", ".join(self.generator.get_available_addresses()),
        )
        server_id = self.generator.generate(organization, ip)

        PropertyService.save_global_property(self.db, ORGANISATION, organization)
        PropertyService.save_global_property(self.db, SERVER_ID_IP_ADDRESS, ip)
        PropertyService.save_global_property(self.db, PERMANENT_SERVER_ID, server_id)
        self.db.commit()

        logger.info(f"Server ID generated: {server_id}")
        return server_id

    def _get_property(self, key: str) -> Optional[str]:
        prop = PropertyService.select_global_property(self.db, key)
        return prop.text_value if prop else None
