"""
Card model: a bank card owned by exactly one User.

Card number storage:
  - card_number_encrypted: AES-GCM ciphertext of the full number (base64 text)
  - card_number_digest: keyed HMAC of the number. UNIQUE, so the database
    rejects a second card with the same number even though every ciphertext
    is different.
  - card_number_last_four: plaintext last four digits for masked display

The model never encrypts or decrypts anything itself. CardRepository encodes
the number before a write and decodes it into the transient `card_number`
attribute after a read.

Balance:
  balance_kopecks is an integer amount in kopecks. A CHECK constraint keeps
  it non-negative at the database level as a last line of defence behind the
  Ledger's own balance check.

Concurrency:
  `version` is SQLAlchemy's version_id_col. Every UPDATE is issued as
  "... WHERE id = ? AND version = ?", so a write based on a stale read
  matches zero rows and fails instead of silently overwriting a newer balance.

Status changes go through services/card_lifecycle.py only.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, BigInteger, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankcards.card_numbers import mask_card_number
from bankcards.database import Base
from bankcards.money import to_rubles


class CardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"  # terminal; set by an external expiry job, never by this API


class Card(Base):
    __tablename__ = "cards"

    __table_args__ = (
        CheckConstraint(
            "balance_kopecks >= 0",
            name="ck_cards_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Set once at issuance; nothing reassigns it
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    card_number_encrypted: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    card_number_digest: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )

    card_number_last_four: Mapped[str] = mapped_column(
        String(4),
        nullable=False,
    )

    expiration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    balance_kopecks: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus),
        nullable=False,
        default=CardStatus.ACTIVE,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    # --- Relationships ---
    # selectin: loaded eagerly in a second query, which stays compatible with
    # SELECT ... FOR UPDATE on the cards row and avoids async lazy loads.
    owner: Mapped["User"] = relationship(lazy="selectin")

    # Plaintext number, populated by CardRepository after a read. Not mapped.
    card_number = None

    @property
    def balance(self) -> float:
        return to_rubles(self.balance_kopecks)

    @property
    def masked_number(self) -> str:
        return mask_card_number(self.card_number_last_four)

    @property
    def owner_name(self) -> str:
        return self.owner.full_name

    # Two Card objects are equal when they carry the same card number. The
    # digest is a deterministic function of the number, so comparing digests
    # compares numbers without needing the plaintext loaded.
    def __eq__(self, other):
        if not isinstance(other, Card):
            return NotImplemented
        if self.card_number_digest is None or other.card_number_digest is None:
            return self is other
        return self.card_number_digest == other.card_number_digest

    def __hash__(self):
        if self.card_number_digest is None:
            return id(self)
        return hash(self.card_number_digest)
