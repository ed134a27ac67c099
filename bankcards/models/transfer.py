"""
Transfer model: the immutable record of money moved between two cards.

Only the Ledger creates Transfers, inside the same database transaction that
debits the source card and credits the target card. Once flushed, a Transfer
is never updated or deleted; the before_update hook below enforces that at
the ORM level.

Key fields:
  - amount_kopecks: always positive (CHECK constraint)
  - currency: fixed "RUB"; there is no multi-currency support
  - transferred_at: assigned by the server, never by the client
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, BigInteger, DateTime, ForeignKey, CheckConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base
from bankcards.money import to_rubles


class Transfer(Base):
    __tablename__ = "transfers"

    __table_args__ = (
        CheckConstraint("amount_kopecks > 0", name="ck_transfers_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    source_card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cards.id"),
        nullable=False,
        index=True,
    )

    target_card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cards.id"),
        nullable=False,
        index=True,
    )

    amount_kopecks: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # ISO 4217 currency code
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="RUB",
    )

    transferred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    @property
    def amount(self) -> float:
        return to_rubles(self.amount_kopecks)


@event.listens_for(Transfer, "before_update")
def _reject_transfer_update(mapper, connection, target):
    raise ValueError(f"Transfer {target.id} is immutable")
