"""Create meal records, meal nutrition and food stress score tables

Revision ID: 1c2d3e4f5a6b
Revises:
Create Date: 2026-10-16 10:12:41.503117

"""
from alembic import op
import sqlalchemy as sa


revision = '1c2d3e4f5a6b'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'meal_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('eaten_at', sa.DateTime(), nullable=False),
        sa.Column('source_type', sa.String(20), nullable=False, server_default='PHOTO'),
        sa.Column('image_url', sa.String(512), nullable=True),
        sa.Column('health_score', sa.Integer(), nullable=True),
        sa.Column('risk_level', sa.String(20), nullable=True),
        sa.Column('note', sa.String(255), nullable=True),
        sa.Column('ai_result_json', sa.Text(), nullable=True),
        sa.Column('food_items', sa.Text(), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('is_balanced', sa.Boolean(), nullable=True),
        sa.Column('nutrition_summary', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_meal_records_user_id', 'meal_records', ['user_id'])
    op.create_index('idx_meal_records_eaten_at', 'meal_records', ['eaten_at'])
    op.create_index('idx_meal_records_health_score', 'meal_records', ['health_score'])

    # One-to-one nutrient estimate, keyed by the meal record
    op.create_table(
        'meal_nutrition',
        sa.Column('meal_id', sa.Integer(), sa.ForeignKey('meal_records.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('energy_kcal', sa.Float(), nullable=True),
        sa.Column('protein_g', sa.Float(), nullable=True),
        sa.Column('fat_g', sa.Float(), nullable=True),
        sa.Column('carb_g', sa.Float(), nullable=True),
        sa.Column('fiber_g', sa.Float(), nullable=True),
        sa.Column('sodium_mg', sa.Float(), nullable=True),
        sa.Column('sugar_g', sa.Float(), nullable=True),
        sa.Column('sat_fat_g', sa.Float(), nullable=True),
        sa.Column('high_quality_proteins', sa.JSON(), nullable=True),
    )

    op.create_table(
        'food_stress_scores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('score_date', sa.Date(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'score_date', name='uq_food_stress_scores_user_date'),
    )


def downgrade() -> None:
    op.drop_table('food_stress_scores')
    op.drop_table('meal_nutrition')
    op.drop_index('idx_meal_records_health_score', table_name='meal_records')
    op.drop_index('idx_meal_records_eaten_at', table_name='meal_records')
    op.drop_index('idx_meal_records_user_id', table_name='meal_records')
    op.drop_table('meal_records')
