# research_service/infrastructure/models.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, String, Text, TIMESTAMP
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )


class UserORM(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    firebase_uid: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    role: Mapped[str] = mapped_column(String(32), default="student", index=True)
    university: Mapped[str | None] = mapped_column(String(255), nullable=True)
    research_interests: Mapped[list[str]] = mapped_column(JSON, default=list)
    citations: Mapped[int | None] = mapped_column(Integer, nullable=True)
    __table_args__ = (
        CheckConstraint("role IN ('student', 'professor', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"UserORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class ResearchORM(TimestampMixin, Base):
    __tablename__ = "research"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    professor_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    university: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # {"degree": str, "year": [str], "skills_required": [str]}
    eligibility: Mapped[dict] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(16), default="open")
    applicants: Mapped[list[str]] = mapped_column(JSON, default=list)

    professor: Mapped["UserORM"] = relationship("UserORM", lazy="joined")
    __table_args__ = (
        CheckConstraint("status IN ('open', 'closed')", name="ck_research_status"),
    )

    def __repr__(self) -> str:
        return f"ResearchORM(id={self.id!r}, title={self.title!r}, status={self.status!r})"


class ApplicationORM(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # identity subject id of the applying student
    student_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    # not a foreign key: the referenced posting is not checked for existence
    research_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    application_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"ApplicationORM(id={self.id!r}, student_id={self.student_id!r}, research_id={self.research_id!r})"


class DiscussionORM(Base):
    __tablename__ = "discussions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)

    created_by: Mapped["UserORM"] = relationship("UserORM", lazy="joined")

    def __repr__(self) -> str:
        return f"DiscussionORM(id={self.id!r}, title={self.title!r})"

