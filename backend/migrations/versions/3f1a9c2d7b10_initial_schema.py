"""initial_schema

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-09-28 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PERIODS = range(1, 6)


def upgrade() -> None:
    # 组织
    op.create_table('organizations',
        sa.Column('uuid', sa.String(40), nullable=False),
        sa.Column('kee', sa.String(32), nullable=False),
        sa.Column('name', sa.String(64), nullable=False),
        sa.Column('description', sa.String(256), nullable=True),
        sa.Column('url', sa.String(256), nullable=True),
        sa.Column('avatar_url', sa.String(256), nullable=True),
        sa.Column('guarded', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('default_perm_template_project', sa.String(40), nullable=True),
        sa.Column('default_perm_template_view', sa.String(40), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('uuid')
    )
    op.create_index('ix_organizations_kee', 'organizations', ['kee'], unique=True)

    # 用户与用户组
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('login', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('email', sa.String(100), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('is_root', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_login', 'users', ['login'], unique=True)

    op.create_table('groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_uuid', sa.String(40), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_uuid'], ['organizations.uuid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_uuid', 'name', name='uniq_groups_org_name')
    )

    op.create_table('groups_users',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'group_id')
    )
    op.create_index('ix_groups_users_group_id', 'groups_users', ['group_id'], unique=False)

    # 组件与快照
    op.create_table('projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', sa.String(50), nullable=False),
        sa.Column('organization_uuid', sa.String(40), nullable=False),
        sa.Column('kee', sa.String(400), nullable=False),
        sa.Column('name', sa.String(2000), nullable=True),
        sa.Column('qualifier', sa.String(10), nullable=False),
        sa.Column('scope', sa.String(3), nullable=True),
        sa.Column('project_uuid', sa.String(50), nullable=False),
        sa.Column('path', sa.String(2000), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_uuid'], ['organizations.uuid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid'),
        sa.UniqueConstraint('kee')
    )
    op.create_index('ix_projects_organization_uuid', 'projects', ['organization_uuid'], unique=False)
    op.create_index('ix_projects_project_uuid', 'projects', ['project_uuid'], unique=False)

    snapshot_columns = [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', sa.String(50), nullable=False),
        sa.Column('component_uuid', sa.String(50), nullable=False),
        sa.Column('status', sa.String(4), nullable=False, server_default='U'),
        sa.Column('islast', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('version', sa.String(500), nullable=True),
    ]
    for index in PERIODS:
        snapshot_columns += [
            sa.Column(f'period{index}_mode', sa.String(100), nullable=True),
            sa.Column(f'period{index}_param', sa.String(100), nullable=True),
            sa.Column(f'period{index}_date', sa.BigInteger(), nullable=True),
        ]
    op.create_table('snapshots',
        *snapshot_columns,
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_snapshots_component_uuid', 'snapshots', ['component_uuid'], unique=False)

    # 权限
    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_uuid', sa.String(40), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('role', sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(['organization_uuid'], ['organizations.uuid'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'], unique=False)
    op.create_index('ix_user_roles_resource_id', 'user_roles', ['resource_id'], unique=False)

    op.create_table('group_roles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_uuid', sa.String(40), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=True),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('role', sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(['organization_uuid'], ['organizations.uuid'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_group_roles_group_id', 'group_roles', ['group_id'], unique=False)
    op.create_index('ix_group_roles_resource_id', 'group_roles', ['resource_id'], unique=False)

    # 权限模板
    op.create_table('permission_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_uuid', sa.String(40), nullable=False),
        sa.Column('kee', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(4000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_uuid'], ['organizations.uuid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('kee')
    )

    op.create_table('perm_templates_groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=True),
        sa.Column('permission_reference', sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['permission_templates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_perm_templates_groups_template_id', 'perm_templates_groups', ['template_id'], unique=False)

    # 属性
    op.create_table('properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('prop_key', sa.String(512), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('text_value', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_properties_key', 'properties', ['prop_key'], unique=False)

    op.create_table('internal_properties',
        sa.Column('kee', sa.String(20), nullable=False),
        sa.Column('is_empty', sa.Boolean(), nullable=False),
        sa.Column('text_value', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('kee')
    )

    # 质量门
    op.create_table('metrics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(64), nullable=False),
        sa.Column('short_name', sa.String(64), nullable=True),
        sa.Column('val_type', sa.String(8), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('quality_gates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('quality_gate_conditions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('qgate_id', sa.Integer(), nullable=False),
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('operator', sa.String(3), nullable=False),
        sa.Column('value_warning', sa.String(64), nullable=True),
        sa.Column('value_error', sa.String(64), nullable=True),
        sa.Column('period', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['qgate_id'], ['quality_gates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quality_gate_conditions_qgate_id', 'quality_gate_conditions', ['qgate_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_quality_gate_conditions_qgate_id', table_name='quality_gate_conditions')
    op.drop_table('quality_gate_conditions')
    op.drop_table('quality_gates')
    op.drop_table('metrics')
    op.drop_table('internal_properties')
    op.drop_index('ix_properties_key', table_name='properties')
    op.drop_table('properties')
    op.drop_index('ix_perm_templates_groups_template_id', table_name='perm_templates_groups')
    op.drop_table('perm_templates_groups')
    op.drop_table('permission_templates')
    op.drop_index('ix_group_roles_resource_id', table_name='group_roles')
    op.drop_index('ix_group_roles_group_id', table_name='group_roles')
    op.drop_table('group_roles')
    op.drop_index('ix_user_roles_resource_id', table_name='user_roles')
    op.drop_index('ix_user_roles_user_id', table_name='user_roles')
    op.drop_table('user_roles')
    op.drop_index('ix_snapshots_component_uuid', table_name='snapshots')
    op.drop_table('snapshots')
    op.drop_index('ix_projects_project_uuid', table_name='projects')
    op.drop_index('ix_projects_organization_uuid', table_name='projects')
    op.drop_table('projects')
    op.drop_index('ix_groups_users_group_id', table_name='groups_users')
    op.drop_table('groups_users')
    op.drop_table('groups')
    op.drop_index('ix_users_login', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_organizations_kee', table_name='organizations')
    op.drop_table('organizations')
