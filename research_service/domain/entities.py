from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    PROFESSOR = "professor"
    ADMIN = "admin"


class ResearchStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Identity:
    """Verified claim set returned by the token verifier."""
    uid: str
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class UserRef:
    id: str
    full_name: str | None
    email: str | None


@dataclass(frozen=True)
class User:
    id: str | None
    firebase_uid: str
    email: str | None
    full_name: str | None = None
    role: Role = Role.STUDENT
    university: str | None = None
    research_interests: list[str] = field(default_factory=list)
    citations: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Eligibility:
    degree: str | None = None
    year: list[str] = field(default_factory=list)
    skills_required: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Research:
    id: str | None
    title: str
    professor_id: str | None
    description: str | None = None
    university: str | None = None
    eligibility: Eligibility = field(default_factory=Eligibility)
    status: ResearchStatus = ResearchStatus.OPEN
    applicants: list[str] = field(default_factory=list)
    professor: UserRef | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Application:
    id: str | None
    student_id: str
    research_id: str
    application_text: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class Discussion:
    id: str | None
    title: str | None
    content: str | None
    created_by: UserRef | None = None
    created_at: datetime | None = None
