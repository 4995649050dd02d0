"""
Initial schema: per-kind measurement tables and the hive registry.

Creates beehive_flow, beehive_humidity, beehive_temperature and
beehive_weight, each with composite primary key (hive_id, date), and the
beehives registry table. Humidity and weight carry CHECK constraints for
their valid ranges.

Revision ID: 001
Revises: None
Create Date: 2026-10-12

CHANGELOG:
- 2026-10-12: Initial creation
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# Revision identifiers used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_MEASUREMENT_TABLES: dict[str, str] = {
    "beehive_flow": "flow",
    "beehive_humidity": "humidity",
    "beehive_temperature": "temperature",
    "beehive_weight": "weight",
}

_CHECKS: dict[str, tuple[str, str]] = {
    "beehive_humidity": (
        "ck_beehive_humidity_range",
        "humidity >= 0 AND humidity <= 100",
    ),
    "beehive_weight": ("ck_beehive_weight_non_negative", "weight >= 0"),
}


def upgrade() -> None:
    """Create the four measurement tables and the beehives table."""
    for table, column in _MEASUREMENT_TABLES.items():
        constraints: list[sa.Constraint] = [
            sa.PrimaryKeyConstraint("hive_id", "date"),
        ]
        if table in _CHECKS:
            name, condition = _CHECKS[table]
            constraints.append(sa.CheckConstraint(condition, name=name))

        op.create_table(
            table,
            sa.Column("hive_id", sa.Integer(), nullable=False),
            sa.Column("date", sa.DateTime(timezone=True), nullable=False),
            sa.Column(column, sa.Double(), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
            *constraints,
        )

    op.create_table(
        "beehives",
        sa.Column("hive_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("registered_by_id", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("hive_id"),
    )


def downgrade() -> None:
    op.drop_table("beehives")
    for table in reversed(list(_MEASUREMENT_TABLES)):
        op.drop_table(table)
