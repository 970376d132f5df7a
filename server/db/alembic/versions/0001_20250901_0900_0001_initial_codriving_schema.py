"""Initial co-driving schema

Revision ID: 0001
Revises:
Create Date: 2025-09-01 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('pseudo', sa.String(length=100), nullable=False),
        sa.Column('firstname', sa.String(length=100), nullable=False),
        sa.Column('lastname', sa.String(length=100), nullable=False),
        sa.Column('mail', sa.String(length=150), nullable=False),
        sa.Column('profile_picture', sa.LargeBinary(), nullable=True),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('credits >= 0', name='ck_user_credits_non_negative'),
        sa.CheckConstraint('length(pseudo) > 0', name='ck_user_pseudo_not_empty'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mail')
    )
    op.create_index(op.f('ix_users_pseudo'), 'users', ['pseudo'], unique=True)

    # Create cars table
    op.create_table('cars',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=True),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('license_plate', sa.String(length=20), nullable=False),
        sa.Column('energy', sa.String(length=20), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('license_plate')
    )
    op.create_index(op.f('ix_cars_owner_id'), 'cars', ['owner_id'], unique=False)

    # Create trips table
    op.create_table('trips',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('departure_date', sa.Date(), nullable=False),
        sa.Column('departure_hour', sa.Time(), nullable=False),
        sa.Column('departure_location', sa.String(length=100), nullable=False),
        sa.Column('departure_city', sa.String(length=50), nullable=False),
        sa.Column('arrival_date', sa.Date(), nullable=False),
        sa.Column('arrival_hour', sa.Time(), nullable=False),
        sa.Column('arrival_location', sa.String(length=100), nullable=False),
        sa.Column('arrival_city', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('seats_available', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('driver_id', sa.Uuid(), nullable=False),
        sa.Column('car_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('seats_available >= 0', name='ck_trip_seats_available_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_trip_price_non_negative'),
        sa.CheckConstraint(
            'duration_minutes IS NULL OR duration_minutes >= 0',
            name='ck_trip_duration_non_negative'
        ),
        sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['car_id'], ['cars.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trips_departure_date'), 'trips', ['departure_date'], unique=False)
    op.create_index(op.f('ix_trips_departure_city'), 'trips', ['departure_city'], unique=False)
    op.create_index(op.f('ix_trips_arrival_city'), 'trips', ['arrival_city'], unique=False)
    op.create_index(op.f('ix_trips_status'), 'trips', ['status'], unique=False)
    op.create_index(op.f('ix_trips_driver_id'), 'trips', ['driver_id'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('passenger_id', sa.Uuid(), nullable=False),
        sa.Column('trip_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('credits_used', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('credits_used > 0', name='ck_booking_credits_used_positive'),
        sa.ForeignKeyConstraint(['passenger_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_passenger_id'), 'bookings', ['passenger_id'], unique=False)
    op.create_index(op.f('ix_bookings_trip_id'), 'bookings', ['trip_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(
        'uq_booking_confirmed_passenger_trip',
        'bookings',
        ['passenger_id', 'trip_id'],
        unique=True,
        postgresql_where=sa.text("status = 'CONFIRMED'"),
        sqlite_where=sa.text("status = 'CONFIRMED'")
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('bookings')
    op.drop_table('trips')
    op.drop_table('cars')
    op.drop_table('users')
