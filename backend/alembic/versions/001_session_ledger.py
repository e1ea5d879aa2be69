# backend/alembic/versions/001_session_ledger.py
"""Session ledger - catalog, credit grants, bookings, policies, cancellations

Revision ID: 001_session_ledger
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the full ledger schema: the catalog the ledger references, credit
grants with their non-negative balance constraint, versioned policies with a
single-active partial index, bookings and cancellation records.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001_session_ledger"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")


def _ts(name: str, nullable: bool = True, server_now: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if server_now else None,
    )


def upgrade() -> None:
    """Create the session ledger schema."""
    print("Creating session ledger schema...")

    op.create_table(
        "practitioners",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at", nullable=False, server_now=True),
    )

    op.create_table(
        "session_types",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("is_group", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("price_usd_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price_cad_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "session_packages",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("session_count", sa.Integer(), nullable=False),
        sa.Column(
            "session_type_id", sa.String(26), sa.ForeignKey("session_types.id"), nullable=True
        ),
        sa.Column("price_usd_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price_cad_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "credit_grants",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("owner_id", sa.String(26), nullable=False),
        sa.Column(
            "session_type_id", sa.String(26), sa.ForeignKey("session_types.id"), nullable=True
        ),
        sa.Column("credits_granted", sa.Integer(), nullable=False),
        sa.Column("credits_remaining", sa.Integer(), nullable=False),
        _ts("purchased_at", nullable=False),
        _ts("expires_at"),
        sa.Column(
            "grace_cancellation_used", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("source_type", sa.String(30), nullable=False, server_default="purchase"),
        sa.Column("source_reference", sa.String(255), nullable=True),
        sa.Column(
            "package_id", sa.String(26), sa.ForeignKey("session_packages.id"), nullable=True
        ),
        sa.Column("source_booking_id", sa.String(26), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("amount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("metadata", JSON_TYPE, nullable=False),
        _ts("created_at", nullable=False, server_now=True),
        sa.CheckConstraint(
            "credits_remaining >= 0", name="ck_credit_grants_remaining_non_negative"
        ),
        sa.CheckConstraint("credits_granted > 0", name="ck_credit_grants_granted_positive"),
    )
    op.create_index("ix_credit_grants_owner_id", "credit_grants", ["owner_id"])
    op.create_index(
        "ix_credit_grants_owner_redeemable",
        "credit_grants",
        ["owner_id", "session_type_id", "purchased_at"],
    )

    op.create_table(
        "client_ledger_accounts",
        sa.Column("client_id", sa.String(26), primary_key=True),
        sa.Column(
            "grace_cancellations_used", sa.Integer(), nullable=False, server_default="0"
        ),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at"),
        sa.CheckConstraint(
            "grace_cancellations_used >= 0",
            name="ck_client_ledger_accounts_grace_non_negative",
        ),
    )

    op.create_table(
        "processed_purchases",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("purchase_reference", sa.String(255), nullable=False),
        sa.Column("client_id", sa.String(26), nullable=False),
        sa.Column(
            "credit_grant_id", sa.String(26), sa.ForeignKey("credit_grants.id"), nullable=True
        ),
        sa.Column("payload", JSON_TYPE, nullable=True),
        _ts("processed_at", nullable=False),
        sa.UniqueConstraint("purchase_reference", name="uq_processed_purchases_reference"),
    )
    op.create_index("ix_processed_purchases_client_id", "processed_purchases", ["client_id"])

    for table in ("cancellation_policies", "waiver_policies"):
        columns = [
            sa.Column("id", sa.String(26), primary_key=True),
            sa.Column("version", sa.Integer(), nullable=False),
        ]
        if table == "cancellation_policies":
            columns += [
                sa.Column("standard_cancellation_hours", sa.Integer(), nullable=False),
                sa.Column("late_cancellation_hours", sa.Integer(), nullable=False),
                sa.Column("late_fees", JSON_TYPE, nullable=False),
                sa.Column(
                    "grace_cancellations_allowed", sa.Integer(), nullable=False, server_default="1"
                ),
                sa.Column("policy_text", sa.Text(), nullable=True),
            ]
        else:
            columns.append(sa.Column("policy_text", sa.Text(), nullable=False))
        columns += [
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_by", sa.String(26), nullable=True),
            _ts("created_at", nullable=False, server_now=True),
        ]
        op.create_table(
            table, *columns, sa.UniqueConstraint("version", name=f"uq_{table}_version")
        )
        op.create_index(
            f"uq_{table}_single_active",
            table,
            ["is_active"],
            unique=True,
            postgresql_where=sa.text("is_active"),
            sqlite_where=sa.text("is_active = 1"),
        )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("client_id", sa.String(26), nullable=False),
        sa.Column(
            "practitioner_id", sa.String(26), sa.ForeignKey("practitioners.id"), nullable=False
        ),
        sa.Column(
            "session_type_id", sa.String(26), sa.ForeignKey("session_types.id"), nullable=True
        ),
        sa.Column(
            "credit_grant_id", sa.String(26), sa.ForeignKey("credit_grants.id"), nullable=False
        ),
        _ts("scheduled_at", nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("cancellation_policy_version", sa.Integer(), nullable=True),
        sa.Column("room_name", sa.String(255), nullable=False),
        sa.Column("is_group", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("session_location", sa.String(50), nullable=False, server_default="online"),
        sa.Column("physical_location", sa.String(500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at"),
        _ts("cancelled_at"),
    )
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_client_status", "bookings", ["client_id", "status"])
    op.create_index(
        "ix_bookings_practitioner_scheduled", "bookings", ["practitioner_id", "scheduled_at"]
    )

    op.create_table(
        "cancellation_records",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("booking_id", sa.String(26), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        _ts("cancelled_at", nullable=False),
        sa.Column("cancellation_type", sa.String(20), nullable=False),
        sa.Column("hours_before_start", sa.Float(), nullable=False),
        sa.Column("fee_charged_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("fee_currency", sa.String(3), nullable=False),
        sa.Column("credit_returned_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credits_returned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credit_currency", sa.String(3), nullable=False),
        sa.Column("grace_requested", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "refund_grant_id", sa.String(26), sa.ForeignKey("credit_grants.id"), nullable=True
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("policy_version", sa.Integer(), nullable=False),
        sa.UniqueConstraint("booking_id", name="uq_cancellation_records_booking"),
    )
    op.create_index("ix_cancellation_records_user_id", "cancellation_records", ["user_id"])

    print("Session ledger schema created")


def downgrade() -> None:
    """Drop the session ledger schema."""
    print("Dropping session ledger schema...")

    op.drop_index("ix_cancellation_records_user_id", table_name="cancellation_records")
    op.drop_table("cancellation_records")

    op.drop_index("ix_bookings_practitioner_scheduled", table_name="bookings")
    op.drop_index("ix_bookings_client_status", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_table("bookings")

    for table in ("waiver_policies", "cancellation_policies"):
        op.drop_index(f"uq_{table}_single_active", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_processed_purchases_client_id", table_name="processed_purchases")
    op.drop_table("processed_purchases")
    op.drop_table("client_ledger_accounts")

    op.drop_index("ix_credit_grants_owner_redeemable", table_name="credit_grants")
    op.drop_index("ix_credit_grants_owner_id", table_name="credit_grants")
    op.drop_table("credit_grants")

    op.drop_table("session_packages")
    op.drop_table("session_types")
    op.drop_table("practitioners")

    print("Session ledger schema dropped")
