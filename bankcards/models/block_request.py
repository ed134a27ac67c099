"""
CardBlockRequest model: a cardholder's request to have a card blocked.

Workflow (see services/block_request_service.py):

    PENDING ──approve──> APPROVED
       └────decline───> REJECTED

The cardholder submits; an administrator approves or declines. Approving a
request records the decision only: it does not change the card's status.
Blocking the card is a separate admin action.

processed_by is set to the requesting user, not to the admin who made the
decision. Existing clients read it that way, so it is kept.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankcards.database import Base


class BlockRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CardBlockRequest(Base):
    __tablename__ = "card_block_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cards.id"),
        nullable=False,
        index=True,
    )

    requested_by_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    status: Mapped[BlockRequestStatus] = mapped_column(
        Enum(BlockRequestStatus),
        nullable=False,
        default=BlockRequestStatus.PENDING,
    )

    processed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Optimistic lock: two admins approving at once can't both succeed
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # --- Relationships ---
    card: Mapped["Card"] = relationship(lazy="selectin")
    requested_by: Mapped["User"] = relationship(
        foreign_keys=[requested_by_id],
        lazy="selectin",
    )
    processed_by: Mapped[Optional["User"]] = relationship(
        foreign_keys=[processed_by_id],
        lazy="selectin",
    )

    @property
    def requested_by_username(self) -> str:
        return self.requested_by.username

    @property
    def masked_card_number(self) -> str:
        return self.card.masked_number
