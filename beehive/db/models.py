"""
SQLAlchemy ORM models for the beehive database.

One table per measurement kind (flow, humidity, temperature, weight), each
keyed by the composite primary key (hive_id, date) so re-importing the same
file is idempotent. Range rules are enforced by CHECK constraints so the
store rejects out-of-range rows at write time.

CHANGELOG:
- 2026-10-13: Add Beehive registry table for hive status location
- 2026-10-12: Initial creation
"""

import datetime

from sqlalchemy import CheckConstraint, DateTime, Double, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all beehive ORM models."""

    pass


class MeasurementMixin:
    """Columns shared by every per-kind measurement table.

    Attributes:
        hive_id: Identifier of the hive the reading belongs to.
        date: Reading timestamp in UTC.
        created_at: Row insertion time, set by the database.
    """

    hive_id: Mapped[int] = mapped_column(Integer, primary_key=True, nullable=False)
    date: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        primary_key=True,
        nullable=False,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(hive_id={self.hive_id!r}, "
            f"date={self.date!r})"
        )


class BeehiveFlow(MeasurementMixin, Base):
    """Bee traffic at the hive entrance (unbounded, signed)."""

    __tablename__ = "beehive_flow"

    flow: Mapped[float] = mapped_column(Double, nullable=False)


class BeehiveHumidity(MeasurementMixin, Base):
    """Relative humidity inside the hive, in percent (0-100)."""

    __tablename__ = "beehive_humidity"
    __table_args__ = (
        CheckConstraint(
            "humidity >= 0 AND humidity <= 100",
            name="ck_beehive_humidity_range",
        ),
    )

    humidity: Mapped[float] = mapped_column(Double, nullable=False)


class BeehiveTemperature(MeasurementMixin, Base):
    """Temperature inside the hive in degrees Celsius."""

    __tablename__ = "beehive_temperature"

    temperature: Mapped[float] = mapped_column(Double, nullable=False)


class BeehiveWeight(MeasurementMixin, Base):
    """Hive weight; never negative."""

    __tablename__ = "beehive_weight"
    __table_args__ = (
        CheckConstraint("weight >= 0", name="ck_beehive_weight_non_negative"),
    )

    weight: Mapped[float] = mapped_column(Double, nullable=False)


class Beehive(Base):
    """Registered hive.

    Attributes:
        hive_id: Numeric hive identifier used by the measurement tables.
        name: Display name.
        location: Free-form location description.
        registered_by_id: Identifier of the user who registered the hive.
        created_at: Registration time, set by the database.
    """

    __tablename__ = "beehives"

    hive_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    registered_by_id: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation of the Beehive."""
        return f"Beehive(hive_id={self.hive_id!r}, name={self.name!r})"
