"""数据库迁移测试

在独立的 SQLite 数据库上执行迁移脚本，检查 snapshots 表的列变化
"""
import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

VERSIONS_DIR = Path(__file__).resolve().parent.parent / "migrations" / "versions"


def _load_revision(prefix: str):
    path = next(VERSIONS_DIR.glob(f"{prefix}_*.py"))
    spec = importlib.util.spec_from_file_location(f"revision_{prefix}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


initial_schema = _load_revision("3f1a9c2d7b10")
drop_periods = _load_revision("8e4b2f6c1d95")


def _run(engine, step):
    with engine.begin() as connection:
        with Operations.context(MigrationContext.configure(connection)):
            step()


def _snapshot_columns(engine) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns("snapshots")}


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}")
    _run(engine, initial_schema.upgrade)
    yield engine
    engine.dispose()


class TestDropNonLeakPeriodColumns:

    def test_revision_chain(self):
        assert drop_periods.down_revision == initial_schema.revision

    def test_dropped_columns(self):
        columns = drop_periods.dropped_columns()

        assert len(columns) == 12
        assert "period2_mode" in columns
        assert "period5_date" in columns
        assert not any(column.startswith("period1") for column in columns)

    def test_upgrade_removes_non_leak_period_columns(self, engine):
        assert set(drop_periods.dropped_columns()) <= _snapshot_columns(engine)

        _run(engine, drop_periods.upgrade)

        columns = _snapshot_columns(engine)
        assert columns.isdisjoint(drop_periods.dropped_columns())
        assert {"period1_mode", "period1_param", "period1_date"} <= columns
        assert {"uuid", "component_uuid", "status", "islast"} <= columns

    def test_upgrade_keeps_existing_rows(self, engine):
        with engine.begin() as connection:
            connection.exec_driver_sql(
                "INSERT INTO snapshots (uuid, component_uuid, status, islast, period1_mode, period2_mode) "
                "VALUES ('s1', 'c1', 'P', 1, 'previous_version', 'days')"
            )

        _run(engine, drop_periods.upgrade)

        with engine.connect() as connection:
            row = connection.exec_driver_sql("SELECT uuid, period1_mode FROM snapshots").one()
        assert tuple(row) == ("s1", "previous_version")

    def test_downgrade_restores_columns(self, engine):
        _run(engine, drop_periods.upgrade)

        _run(engine, drop_periods.downgrade)

        assert set(drop_periods.dropped_columns()) <= _snapshot_columns(engine)
