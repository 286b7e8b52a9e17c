from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.errors import PersistenceError
from ....application.use_cases.login_user import LoginUser
from ....domain.entities import Identity
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..authz import get_identity
from ..errors import PersistenceFailure
from ..schemas import LoginResp, UserProfileOut

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResp)
def login(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    # first successful login creates the account
    try:
        user = LoginUser(repo=UserRepository(db)).execute(identity)
    except PersistenceError as e:
        raise PersistenceFailure("Error logging in", e)
    return LoginResp(user=UserProfileOut.model_validate(user))
