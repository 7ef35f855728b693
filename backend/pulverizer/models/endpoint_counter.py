"""
Payload Pulverizer — EndpointCounter SQLAlchemy Model
=======================================================

What:  ORM model representing the `endpoint_counters` table.
Why:   Maps endpoint usage totals to database rows for type-safe queries.
How:   Inherits from the shared DeclarativeBase; created by CounterStore.open().
Who:   Written by CounterStore.increment(); read by the snapshot methods.

Table Design Rationale:
    - endpoint as primary key: Exactly one row per endpoint name, which is
      what makes INSERT ... ON CONFLICT(endpoint) DO UPDATE an atomic upsert
    - count: Number of handled requests; only ever incremented
    - total_bytes / total_runtime_us: Running sums, so averages can be
      derived at query time without keeping one row per request
    - updated_at: When the endpoint was last hit (UTC)
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from pulverizer.database import Base


class EndpointCounter(Base):
    """
    Usage totals for a single endpoint.

    Lifecycle:
        1. Seeded with zeros at startup for every known endpoint
           (or created by the first increment for an unseen name)
        2. Incremented once per handled request
        3. Never deleted
    """

    __tablename__ = "endpoint_counters"

    endpoint: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Endpoint name, e.g. 'pulverize'",
    )

    count: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Number of requests handled by this endpoint",
    )

    total_bytes: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Sum of payload sizes in bytes",
    )

    total_runtime_us: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Sum of handler runtimes in microseconds",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this counter last changed (UTC)",
    )

    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_endpoint_counters_count_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<EndpointCounter(endpoint='{self.endpoint}', count={self.count})>"
