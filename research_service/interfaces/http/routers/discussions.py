from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.errors import PersistenceError
from ....infrastructure.db import get_db
from ....infrastructure.repositories import DiscussionRepository
from ..errors import PersistenceFailure
from ..schemas import DiscussionOut

router = APIRouter(prefix="/api/discussions", tags=["discussions"])


@router.get("", response_model=list[DiscussionOut])
def list_discussions(db: Session = Depends(get_db)):
    try:
        rows = DiscussionRepository(db).list_all()
    except PersistenceError as e:
        raise PersistenceFailure("Error fetching discussions", e)
    return [DiscussionOut.model_validate(r) for r in rows]
