"""001 – Initial schema: employees, leave policies, requests, adjustments, audit log.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-03-02 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                     UUID PRIMARY KEY,
            employee_code          VARCHAR(30) UNIQUE,
            name                   VARCHAR(150) NOT NULL,
            email                  VARCHAR(255) NOT NULL UNIQUE,
            role                   VARCHAR(20)  NOT NULL DEFAULT 'employee',
            department             VARCHAR(100),
            manager_id             UUID REFERENCES employees(id),
            join_date              DATE NOT NULL,
            employee_type          VARCHAR(20),
            probation_status       VARCHAR(20),
            probation_start_date   DATE,
            probation_end_date     DATE,
            probation_duration     INTEGER,
            probation_completed_at TIMESTAMPTZ,
            is_active              BOOLEAN DEFAULT TRUE,
            created_at             TIMESTAMPTZ DEFAULT NOW(),
            updated_at             TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_employees_manager    ON employees(manager_id)")
    op.execute("CREATE INDEX idx_employees_probation  ON employees(probation_status, probation_end_date)")

    # ── 2. leave_policies ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_policies (
            id                     UUID PRIMARY KEY,
            leave_type             VARCHAR(20) NOT NULL,
            employee_type          VARCHAR(20),
            total_days_per_year    NUMERIC(5,2) NOT NULL,
            is_paid                BOOLEAN DEFAULT TRUE,
            requires_approval      BOOLEAN DEFAULT TRUE,
            allow_half_day         BOOLEAN DEFAULT TRUE,
            description            TEXT,
            is_active              BOOLEAN DEFAULT TRUE,
            created_by             UUID REFERENCES employees(id),
            created_at             TIMESTAMPTZ DEFAULT NOW(),
            updated_at             TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_leave_policy_type_employee_type UNIQUE (leave_type, employee_type)
        )
    """)

    # ── 3. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                UUID PRIMARY KEY,
            employee_id       UUID NOT NULL REFERENCES employees(id),
            leave_type        VARCHAR(20) NOT NULL,
            start_date        DATE NOT NULL,
            end_date          DATE NOT NULL,
            total_days        NUMERIC(5,2) NOT NULL,
            reason            TEXT,
            status            VARCHAR(20) NOT NULL DEFAULT 'pending',
            is_half_day       BOOLEAN DEFAULT FALSE,
            half_day_period   VARCHAR(20),
            short_leave_hours NUMERIC(4,2),
            is_paid           BOOLEAN DEFAULT TRUE,
            submitted_at      TIMESTAMPTZ DEFAULT NOW(),
            reviewed_by       UUID REFERENCES employees(id),
            reviewed_at       TIMESTAMPTZ,
            reviewer_comments TEXT,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_requests_positive_days CHECK (total_days > 0)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_employee_dates "
        "ON leave_requests(employee_id, start_date, end_date)"
    )
    op.execute("CREATE INDEX idx_leave_req_status ON leave_requests(status)")

    # ── 4. leave_balance_adjustments ──────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_balance_adjustments (
            id            UUID PRIMARY KEY,
            employee_id   UUID NOT NULL REFERENCES employees(id),
            leave_type    VARCHAR(20) NOT NULL,
            year          INTEGER NOT NULL,
            adjusted_days NUMERIC(6,2) NOT NULL DEFAULT 0,
            updated_by    UUID REFERENCES employees(id),
            updated_at    TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_leave_balance_adjustment UNIQUE (employee_id, leave_type, year)
        )
    """)

    # ── 5. audit_logs ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_logs (
            id          UUID PRIMARY KEY,
            actor_id    UUID REFERENCES employees(id),
            actor_name  VARCHAR(150) NOT NULL,
            action      VARCHAR(50)  NOT NULL,
            target_type VARCHAR(50)  NOT NULL,
            target_id   UUID,
            details     JSON,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_logs_target ON audit_logs(target_type, target_id)")
    op.execute("CREATE INDEX ix_audit_logs_action ON audit_logs(action)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_logs",
        "leave_balance_adjustments",
        "leave_requests",
        "leave_policies",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
