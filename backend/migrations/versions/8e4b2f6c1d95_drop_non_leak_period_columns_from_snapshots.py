"""drop_non_leak_period_columns_from_snapshots

只保留泄漏期（period1），删除 snapshots 表中 period2 ~ period5 的
mode / param / date 列，共 12 列。

Revision ID: 8e4b2f6c1d95
Revises: 3f1a9c2d7b10
Create Date: 2026-10-05 14:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e4b2f6c1d95'
down_revision: Union[str, None] = '3f1a9c2d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLE = 'snapshots'
NON_LEAK_PERIODS = (2, 3, 4, 5)


def dropped_columns() -> list[str]:
    columns = []
    for index in NON_LEAK_PERIODS:
        columns += [f'period{index}_mode', f'period{index}_param', f'period{index}_date']
    return columns


def upgrade() -> None:
    # SQLite 不支持 DROP COLUMN，使用 batch 模式重建表
    with op.batch_alter_table(TABLE) as batch_op:
        for column in dropped_columns():
            batch_op.drop_column(column)


def downgrade() -> None:
    with op.batch_alter_table(TABLE) as batch_op:
        for index in NON_LEAK_PERIODS:
            batch_op.add_column(sa.Column(f'period{index}_mode', sa.String(100), nullable=True))
            batch_op.add_column(sa.Column(f'period{index}_param', sa.String(100), nullable=True))
            batch_op.add_column(sa.Column(f'period{index}_date', sa.BigInteger(), nullable=True))
