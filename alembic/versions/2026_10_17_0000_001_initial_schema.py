"""Initial schema: entities and association tables

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Entity tables
    op.create_table(
        'project',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'sprint',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'task',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('committed_hours', sa.Integer(), nullable=False),
        sa.Column('estimated_hours', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'member',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('phone', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # Association tables
    op.create_table(
        'project_sprint',
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('sprint_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ),
        sa.ForeignKeyConstraint(['sprint_id'], ['sprint.id'], ),
        sa.PrimaryKeyConstraint('project_id', 'sprint_id'),
    )
    op.create_index(op.f('ix_project_sprint_sprint_id'), 'project_sprint', ['sprint_id'], unique=False)

    op.create_table(
        'part_of',
        sa.Column('sprint_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sprint_id'], ['sprint.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['task.id'], ),
        sa.PrimaryKeyConstraint('sprint_id', 'task_id'),
    )
    op.create_index(op.f('ix_part_of_task_id'), 'part_of', ['task_id'], unique=False)

    op.create_table(
        'contributes_to',
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('role', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.ForeignKeyConstraint(['member_id'], ['member.id'], ),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ),
        sa.PrimaryKeyConstraint('project_id', 'member_id'),
    )
    op.create_index(op.f('ix_contributes_to_member_id'), 'contributes_to', ['member_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_contributes_to_member_id'), table_name='contributes_to')
    op.drop_table('contributes_to')
    op.drop_index(op.f('ix_part_of_task_id'), table_name='part_of')
    op.drop_table('part_of')
    op.drop_index(op.f('ix_project_sprint_sprint_id'), table_name='project_sprint')
    op.drop_table('project_sprint')
    op.drop_table('member')
    op.drop_table('task')
    op.drop_table('sprint')
    op.drop_table('project')
