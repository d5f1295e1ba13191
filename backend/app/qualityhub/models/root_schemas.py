"""QualityHub - Root Schemas"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


class RootLogin(BaseModel):
    login: str


class RootResponse(BaseModel):
    login: str
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RootSearchResponse(BaseModel):
    roots: List[RootResponse]
