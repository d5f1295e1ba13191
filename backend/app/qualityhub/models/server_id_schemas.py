"""QualityHub - Server ID Schemas"""
from typing import Optional, List
from pydantic import BaseModel


class ServerIdShowResponse(BaseModel):
    serverId: Optional[str] = None
    organization: Optional[str] = None
    ip: Optional[str] = None
    validIpAddresses: List[str] = []
    invalidServerId: bool = False


class ServerIdGenerate(BaseModel):
    organization: str
    ip: str


class ServerIdGenerateResponse(BaseModel):
    serverId: str
