"""
Submission and Feedback models.

A Submission is one version in a (student, step, reference image) chain.
Only its status changes after insert; feedback rows are append-only.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from atelier.kernel.models.base import Base, generate_id

if TYPE_CHECKING:
    from atelier.kernel.models.profile import Profile


class SubmissionStatus(str, Enum):
    """Review status of one submission version."""

    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FeedbackType(str, Enum):
    """Kind of feedback entry."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    COMMENT = "COMMENT"


class Submission(Base):
    """One submitted render for a curriculum step."""

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    student_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_message: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    reference_image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    render_image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    # Track tag recorded at submit time; NULL on rows predating it
    track: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=SubmissionStatus.PENDING.value,
        nullable=False,
    )
    submission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    student: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="submissions",
    )
    feedback: Mapped[List["Feedback"]] = relationship(
        "Feedback",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Feedback.created_at",
    )

    __table_args__ = (
        Index("ix_submissions_chain", "student_id", "category", "reference_image"),
    )

    def __repr__(self) -> str:
        return f"<Submission {self.id} {self.category} week={self.week} {self.status}>"


class Feedback(Base):
    """Reviewer feedback attached to exactly one submission."""

    __tablename__ = "feedback"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    submission_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    submission: Mapped["Submission"] = relationship(
        "Submission",
        back_populates="feedback",
    )

    def __repr__(self) -> str:
        return f"<Feedback {self.type} on {self.submission_id}>"
