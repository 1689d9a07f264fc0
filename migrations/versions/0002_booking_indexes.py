"""indexes for open-slot listing and ledger ordering"""
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

def upgrade():
    op.create_index("ix_time_slots_open", "time_slots", ["service_id", "is_booked", "start_at"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])

def downgrade():
    op.drop_index("ix_bookings_created_at", table_name="bookings")
    op.drop_index("ix_time_slots_open", table_name="time_slots")
