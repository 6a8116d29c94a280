"""baseline schema: users, vendors, payouts, payout_audits

Revision ID: 0001_baseline_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

from alembic import op


revision = "0001_baseline_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
            email varchar(255) NOT NULL,
            password_hash varchar(255) NOT NULL,
            role varchar(20) NOT NULL,
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now(),
            CONSTRAINT users_email_key UNIQUE (email),
            CONSTRAINT users_role_check CHECK (role IN ('OPS', 'FINANCE'))
        );
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS vendors (
            id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
            name varchar(255) NOT NULL,
            upi_id varchar(255) NOT NULL DEFAULT '',
            bank_account varchar(255) NOT NULL DEFAULT '',
            ifsc varchar(100) NOT NULL DEFAULT '',
            is_active boolean NOT NULL DEFAULT true,
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now()
        );
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS payouts (
            id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
            vendor_id uuid NOT NULL,
            amount numeric(12, 2) NOT NULL,
            mode varchar(20) NOT NULL,
            note varchar(500) NOT NULL DEFAULT '',
            status varchar(20) NOT NULL DEFAULT 'Draft',
            decision_reason varchar(500) NOT NULL DEFAULT '',
            created_at timestamptz NOT NULL DEFAULT now(),
            updated_at timestamptz NOT NULL DEFAULT now(),
            CONSTRAINT payouts_vendor_id_fkey FOREIGN KEY (vendor_id) REFERENCES vendors (id),
            CONSTRAINT payouts_amount_check CHECK (amount > 0),
            CONSTRAINT payouts_mode_check CHECK (mode IN ('UPI', 'IMPS', 'NEFT')),
            CONSTRAINT payouts_status_check CHECK (status IN ('Draft', 'Submitted', 'Approved', 'Rejected')),
            CONSTRAINT payouts_decision_reason_check CHECK ((status = 'Rejected') = (decision_reason <> ''))
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS payouts_status_idx ON payouts (status);")
    op.execute("CREATE INDEX IF NOT EXISTS payouts_vendor_id_idx ON payouts (vendor_id);")
    op.execute("CREATE INDEX IF NOT EXISTS payouts_updated_at_idx ON payouts (updated_at DESC);")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS payout_audits (
            id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
            seq bigserial NOT NULL,
            payout_id uuid NOT NULL REFERENCES payouts (id),
            action varchar(20) NOT NULL,
            performed_by uuid NOT NULL REFERENCES users (id),
            performed_by_email varchar(255) NOT NULL,
            metadata jsonb NOT NULL DEFAULT '{}'::jsonb,
            created_at timestamptz NOT NULL DEFAULT clock_timestamp(),
            CONSTRAINT payout_audits_action_check CHECK (action IN ('CREATED', 'SUBMITTED', 'APPROVED', 'REJECTED'))
        );
        """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS payout_audits_payout_idx ON payout_audits (payout_id, created_at, seq);"
    )

    # append-only
    op.execute(
        """
        CREATE OR REPLACE FUNCTION payout_audits_immutable() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'payout_audits is append-only';
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute("DROP TRIGGER IF EXISTS payout_audits_no_mutation ON payout_audits;")
    op.execute(
        """
        CREATE TRIGGER payout_audits_no_mutation
        BEFORE UPDATE OR DELETE ON payout_audits
        FOR EACH ROW EXECUTE FUNCTION payout_audits_immutable();
        """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payout_audits;")
    op.execute("DROP FUNCTION IF EXISTS payout_audits_immutable();")
    op.execute("DROP TABLE IF EXISTS payouts;")
    op.execute("DROP TABLE IF EXISTS vendors;")
    op.execute("DROP TABLE IF EXISTS users;")
