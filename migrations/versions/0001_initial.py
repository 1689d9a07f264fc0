"""services, time slots, bookings

Revision ID: 0001
Revises:
Create Date: 2025-09-20

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.UniqueConstraint('name', name='uq_services_name'),
    )

    op.create_table('time_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=False),
        sa.Column('is_booked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('start_at < end_at', name='ck_time_slots_range'),
    )

    op.create_table('bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('time_slot_id', sa.Integer(), sa.ForeignKey('time_slots.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        # одна бронь на слот: даже если в приложении баг
        sa.UniqueConstraint('time_slot_id', name='uq_bookings_time_slot'),
    )

def downgrade():
    op.drop_table('bookings')
    op.drop_table('time_slots')
    op.drop_table('services')
