"""QualityHub - Quality Gate Models

质量门与度量数据模型
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Index

from qualityhub.database.config import Base


class Metric(Base):
    """度量"""
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), unique=True, nullable=False)  # 度量 key
    short_name = Column(String(64), nullable=True)
    val_type = Column(String(8), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)

    @property
    def key(self) -> str:
        return self.name


class QualityGate(Base):
    """质量门"""
    __tablename__ = "quality_gates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<QualityGate(id={self.id}, name='{self.name}')>"


class QualityGateCondition(Base):
    """质量门条件

    metric_key 不落库，由 QualityGates.list_conditions 填充。
    """
    __tablename__ = "quality_gate_conditions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    qgate_id = Column(Integer, ForeignKey("quality_gates.id", ondelete="CASCADE"), nullable=False)
    metric_id = Column(Integer, nullable=False)
    operator = Column(String(3), nullable=False)
    value_warning = Column(String(64), nullable=True)
    value_error = Column(String(64), nullable=True)
    period = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    metric_key = None

    __table_args__ = (
        Index("ix_quality_gate_conditions_qgate_id", "qgate_id"),
    )
