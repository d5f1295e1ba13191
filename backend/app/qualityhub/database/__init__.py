"""QualityHub - Database package

导入所有模型，确保 Base.metadata 完整注册。
"""
from qualityhub.database import (  # noqa: F401
    organization_models,
    user_models,
    permission_models,
    component_models,
    property_models,
    quality_gate_models,
)
