from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.errors import PersistenceError
from ....domain.entities import Role, User
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..authz import get_current_user, require_professor, require_student
from ..errors import PersistenceFailure
from ..schemas import UserOut

router = APIRouter(prefix="/api/users", tags=["users"])

# role each caller is allowed to browse; None means every user
VISIBLE_ROLE = {
    Role.STUDENT: Role.PROFESSOR,
    Role.PROFESSOR: Role.STUDENT,
    Role.ADMIN: None,
}


def _list_users(db: Session, role: Role | None, error_message: str) -> list[UserOut]:
    try:
        users = UserRepository(db).list_by_role(role)
    except PersistenceError as e:
        raise PersistenceFailure(error_message, e)
    return [UserOut.model_validate(u) for u in users]


@router.get("/professors", response_model=list[UserOut])
def list_professors(
    _: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    return _list_users(db, Role.PROFESSOR, "Error fetching professors")


@router.get("/students", response_model=list[UserOut])
def list_students(
    _: User = Depends(require_professor),
    db: Session = Depends(get_db),
):
    return _list_users(db, Role.STUDENT, "Error fetching students")


@router.get("", response_model=list[UserOut])
def list_users(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Students see professors, professors see students, admins see everyone."""
    return _list_users(db, VISIBLE_ROLE[user.role], "Error fetching users")
