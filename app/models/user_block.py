"""
UserBlock model for user blocking functionality.

A block is a directed edge: "blocker has blocked blocked". The reverse
edge is an independent row.
"""
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class UserBlock(Base, UUIDMixin, TimestampMixin):
    """
    UserBlock model - tracks which users have blocked which.

    While an active edge exists in either direction between two users:
    - requests naming the other user as target are rejected
    - entities owned by the other user are removed from read responses

    Deactivated edges (is_active=False) are kept only so that a later
    block of the same user reactivates the row instead of inserting.
    """

    __tablename__ = "user_blocks"

    blocker_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who is blocking"
    )

    blocked_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who is being blocked"
    )

    reason: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        doc="Optional free-text reason given by the blocker"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
        doc="Whether the block is currently in force"
    )

    __table_args__ = (
        # One edge per ordered pair; concurrent inserts rely on this
        UniqueConstraint("blocker_id", "blocked_id", name="uq_user_blocks_pair"),
        CheckConstraint("blocker_id <> blocked_id", name="ck_user_blocks_not_self"),
        Index("idx_user_blocks_blocker", "blocker_id", "is_active"),
        Index("idx_user_blocks_blocked", "blocked_id", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserBlock(blocker_id={self.blocker_id}, blocked_id={self.blocked_id}, "
            f"is_active={self.is_active})>"
        )
