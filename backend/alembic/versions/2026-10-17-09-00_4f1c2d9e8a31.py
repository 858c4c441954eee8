"""create pitchbooks, slides and slide_layouts

Revision ID: 4f1c2d9e8a31
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union
import sqlmodel
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2d9e8a31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'pitchbooks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('type', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('pitchbook_prompt', sa.Text(), nullable=True),
        sa.Column('section_prompts', sa.JSON(), nullable=False),
        sa.Column('scoped_prompts', sa.JSON(), nullable=False),
        sa.Column('generated_content', sa.JSON(), nullable=False),
        sa.Column('last_generated', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_pitchbooks_id'), 'pitchbooks', ['id'], unique=False)

    op.create_table(
        'slide_layouts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('type', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('placeholders', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_slide_layouts_id'), 'slide_layouts', ['id'], unique=False)
    op.create_index(op.f('ix_slide_layouts_name'), 'slide_layouts', ['name'], unique=True)

    op.create_table(
        'slides',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('pitchbook_id', sa.Uuid(), nullable=False),
        sa.Column('slide_number', sa.Integer(), nullable=False),
        sa.Column('layout_name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('slide_type', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('section_title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('slide_prompt', sa.Text(), nullable=True),
        sa.Column('placeholder_prompts', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['pitchbook_id'], ['pitchbooks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pitchbook_id', 'slide_number', name='uq_pitchbook_slide_number'),
    )
    op.create_index(op.f('ix_slides_id'), 'slides', ['id'], unique=False)
    op.create_index(op.f('ix_slides_pitchbook_id'), 'slides', ['pitchbook_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_slides_pitchbook_id'), table_name='slides')
    op.drop_index(op.f('ix_slides_id'), table_name='slides')
    op.drop_table('slides')
    op.drop_index(op.f('ix_slide_layouts_name'), table_name='slide_layouts')
    op.drop_index(op.f('ix_slide_layouts_id'), table_name='slide_layouts')
    op.drop_table('slide_layouts')
    op.drop_index(op.f('ix_pitchbooks_id'), table_name='pitchbooks')
    op.drop_table('pitchbooks')
