"""
Profile model - identity attributes, track references and unlock progress.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from atelier.kernel.models.base import Base, TimestampMixin, generate_id

if TYPE_CHECKING:
    from atelier.kernel.models.submission import Submission


class UserRole(str, Enum):
    """Roles in the studio."""
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class Track(str, Enum):
    """The two parallel projects every student works through."""
    INTERIOR = "INTERIOR"
    EXTERIOR = "EXTERIOR"


class Profile(Base, TimestampMixin):
    """Student or teacher profile."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.STUDENT.value,
        nullable=False,
    )
    avatar_url: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    class_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    # Reference image per track, set once during onboarding
    interior_ref_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    exterior_ref_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # {"INTERIOR": [step, ...], "EXTERIOR": [step, ...]}
    progress: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )

    submissions: Mapped[List["Submission"]] = relationship(
        "Submission",
        back_populates="student",
    )

    def __repr__(self) -> str:
        return f"<Profile {self.email} {self.role}>"
