from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....application.errors import PersistenceError
from ....domain.entities import Role, User
from ....infrastructure.db import get_db
from ....infrastructure.repositories import ApplicationRepository, ResearchRepository
from ..authz import require_role
from ..errors import PersistenceFailure
from ..schemas import ApplicationOut, ApplyReq, ApplyResp, ResearchCreate, ResearchOut

router = APIRouter(prefix="/api", tags=["research"])

require_research_owner = require_role(Role.PROFESSOR, detail="Only professors can post research")
require_applicant = require_role(Role.STUDENT, detail="Only students can apply")


@router.get("/research", response_model=list[ResearchOut])
def list_research(db: Session = Depends(get_db)):
    try:
        rows = ResearchRepository(db).list_all()
    except PersistenceError as e:
        raise PersistenceFailure("Error fetching research", e)
    return [ResearchOut.model_validate(r) for r in rows]


@router.post("/research", response_model=ResearchOut, status_code=status.HTTP_201_CREATED)
def create_research(
    payload: ResearchCreate,
    professor: User = Depends(require_research_owner),
    db: Session = Depends(get_db),
):
    # the posting is always owned by the calling professor
    try:
        row = ResearchRepository(db).create(
            professor_id=professor.id,
            title=payload.title,
            description=payload.description,
            university=payload.university,
            eligibility=payload.eligibility.model_dump(),
            status=payload.status,
        )
    except PersistenceError as e:
        raise PersistenceFailure("Error creating research", e)
    return ResearchOut.model_validate(row)


@router.post("/apply", response_model=ApplyResp, status_code=status.HTTP_201_CREATED)
def apply(
    payload: ApplyReq,
    student: User = Depends(require_applicant),
    db: Session = Depends(get_db),
):
    try:
        row = ApplicationRepository(db).create(
            student_id=student.firebase_uid,
            research_id=payload.research_id,
            application_text=payload.application_text,
        )
    except PersistenceError as e:
        raise PersistenceFailure("Error submitting application", e)
    return ApplyResp(application=ApplicationOut.model_validate(row))
