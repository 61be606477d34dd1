"""001 – Initial schema: organisation, absences, work hours, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["admin", "user"]),
    ("absence_status", ["approved", "pending", "rejected"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(sa.text(f"CREATE TYPE {name} AS ENUM ({vals})"))


def _drop_enum(name: str) -> None:
    op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL UNIQUE,
            address     TEXT,
            phone       VARCHAR(50),
            email       VARCHAR(255),
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. departments ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE departments (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id  UUID NOT NULL REFERENCES companies(id),
            name        VARCHAR(150) NOT NULL,
            description TEXT,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_dept_company_name UNIQUE (company_id, name)
        )
    """)

    # ── 3. work_groups ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE work_groups (
            id           SERIAL PRIMARY KEY,
            name         VARCHAR(100) NOT NULL,
            start_time   TIME NOT NULL,
            end_time     TIME NOT NULL,
            has_rest_day BOOLEAN DEFAULT FALSE,
            company_id   UUID REFERENCES companies(id),
            CONSTRAINT ck_work_group_times CHECK (end_time > start_time)
        )
    """)

    # ── 4. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id       UUID UNIQUE,
            first_name    VARCHAR(100) NOT NULL,
            last_name     VARCHAR(100) NOT NULL,
            email         VARCHAR(255) NOT NULL UNIQUE,
            work_group    INTEGER NOT NULL REFERENCES work_groups(id),
            company_id    UUID REFERENCES companies(id),
            department_id UUID REFERENCES departments(id),
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_employees_company    ON employees(company_id)")
    op.execute("CREATE INDEX idx_employees_department ON employees(department_id)")

    # ── 5. user_roles ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE user_roles (
            user_id    UUID PRIMARY KEY,
            role       user_role NOT NULL DEFAULT 'user',
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 6. absence_types ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE absence_types (
            id         VARCHAR(10) PRIMARY KEY,
            name       VARCHAR(100) NOT NULL,
            color      VARCHAR(20) NOT NULL DEFAULT '#9ca3af',
            is_active  BOOLEAN DEFAULT TRUE,
            company_id UUID REFERENCES companies(id)
        )
    """)

    # ── 7. absence_records ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE absence_records (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            absence_type_id VARCHAR(10) NOT NULL REFERENCES absence_types(id),
            date            DATE NOT NULL,
            hours           NUMERIC(5,2) NOT NULL DEFAULT 8,
            status          absence_status NOT NULL DEFAULT 'approved',
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_absence_employee_date UNIQUE (employee_id, date),
            CONSTRAINT ck_absence_hours_non_negative CHECK (hours >= 0)
        )
    """)
    op.execute("CREATE INDEX ix_absence_records_date ON absence_records(date)")

    # ── 8. work_hours ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE work_hours (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            work_date    DATE NOT NULL,
            hours_input  VARCHAR(10) NOT NULL,
            hours_worked NUMERIC(5,2) NOT NULL,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_work_hours_employee_date UNIQUE (employee_id, work_date),
            CONSTRAINT ck_work_hours_non_negative CHECK (hours_worked >= 0)
        )
    """)

    # ── 9. monthly_hours_summary ──────────────────────────────────────────
    op.execute("""
        CREATE TABLE monthly_hours_summary (
            id                         UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id                UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            year                       INTEGER NOT NULL,
            month                      INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
            total_normal_hours         NUMERIC(7,2) NOT NULL DEFAULT 0,
            total_redistribution_hours NUMERIC(7,2) NOT NULL DEFAULT 0,
            total_overtime_hours       NUMERIC(7,2) NOT NULL DEFAULT 0,
            created_at                 TIMESTAMPTZ DEFAULT NOW(),
            updated_at                 TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_monthly_summary UNIQUE (employee_id, year, month)
        )
    """)

    # ── 10. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   VARCHAR(64) NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_entity   ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail(actor_id)")

    # ── Seed data ─────────────────────────────────────────────────────────
    # Work group 1 is the default for new employees.
    op.execute("""
        INSERT INTO work_groups (id, name, start_time, end_time, has_rest_day)
        VALUES (1, 'Standard shift', '07:00', '15:00', FALSE)
    """)
    op.execute("SELECT setval('work_groups_id_seq', 1)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "monthly_hours_summary",
        "work_hours",
        "absence_records",
        "absence_types",
        "user_roles",
        "employees",
        "work_groups",
        "departments",
        "companies",
    ]
    for t in tables:
        op.execute(sa.text(f"DROP TABLE IF EXISTS {t} CASCADE"))

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
