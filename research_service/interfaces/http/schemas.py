from datetime import datetime

from pydantic import BaseModel, Field

from ...domain.entities import ResearchStatus, Role


class UserRefOut(BaseModel):
    id: str
    full_name: str | None = None
    email: str | None = None
    class Config: from_attributes = True


class UserOut(BaseModel):
    """Public user view; never carries the identity subject id."""
    id: str
    full_name: str | None = None
    email: str | None = None
    role: Role
    university: str | None = None
    research_interests: list[str] = []
    citations: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    class Config: from_attributes = True


class UserProfileOut(UserOut):
    firebase_uid: str


class LoginResp(BaseModel):
    message: str = "Login successful"
    user: UserProfileOut


class EligibilityIn(BaseModel):
    degree: str | None = None
    year: list[str] = []
    skills_required: list[str] = []


class EligibilityOut(EligibilityIn):
    class Config: from_attributes = True


class ResearchCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    university: str | None = None
    eligibility: EligibilityIn = EligibilityIn()
    status: ResearchStatus = ResearchStatus.OPEN


class ResearchOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    professor_id: str | None = None
    professor: UserRefOut | None = None
    university: str | None = None
    eligibility: EligibilityOut
    status: ResearchStatus
    applicants: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
    class Config: from_attributes = True


class ApplyReq(BaseModel):
    research_id: str = Field(min_length=1)
    application_text: str


class ApplicationOut(BaseModel):
    id: str
    student_id: str
    research_id: str
    application_text: str
    created_at: datetime | None = None
    class Config: from_attributes = True


class ApplyResp(BaseModel):
    message: str = "Application submitted"
    application: ApplicationOut


class DiscussionOut(BaseModel):
    id: str
    title: str | None = None
    content: str | None = None
    created_by: UserRefOut | None = None
    created_at: datetime | None = None
    class Config: from_attributes = True
