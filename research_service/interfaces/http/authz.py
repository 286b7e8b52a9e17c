import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .errors import PersistenceFailure
from ...application.errors import PersistenceError
from ...domain.entities import Identity, Role, User
from ...infrastructure.db import get_db
from ...infrastructure.metrics import auth_rejections_total
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import InvalidTokenError

logger = structlog.get_logger()

# auto_error=False: a missing header must be a 401, not HTTPBearer's default 403
bearer = HTTPBearer(auto_error=False)

NO_TOKEN = "Unauthorized: No token provided"
INVALID_TOKEN = "Unauthorized: Invalid token"
ACCESS_DENIED = "Access denied"


def _unauthorized(reason: str, detail: str) -> HTTPException:
    auth_rejections_total.labels(reason=reason).inc()
    logger.info("token_rejected", reason=reason)
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_verifier(request: Request):
    return request.app.state.verifier


def get_identity(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    verifier=Depends(get_verifier),
) -> Identity:
    if creds is None or not creds.credentials:
        raise _unauthorized("no_token", NO_TOKEN)
    try:
        return verifier.verify(creds.credentials)
    except InvalidTokenError as e:
        logger.debug("token_verification_failed", error=str(e))
        raise _unauthorized("invalid_token", INVALID_TOKEN)


def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> User:
    """Stored user for the verified identity; its role is the only one trusted."""
    try:
        user = UserRepository(db).get_by_uid(identity.uid)
    except PersistenceError as e:
        raise PersistenceFailure("Error loading user", e)
    if user is None:
        auth_rejections_total.labels(reason="unknown_user").inc()
        logger.info("access_denied", uid=identity.uid, reason="unknown_user")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ACCESS_DENIED)
    return user


def require_role(*roles: Role, detail: str = ACCESS_DENIED):
    allowed = frozenset(roles)

    def check_role(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            auth_rejections_total.labels(reason="role_mismatch").inc()
            logger.info(
                "access_denied",
                user_id=user.id,
                role=user.role.value,
                required=sorted(r.value for r in allowed),
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return check_role


require_student = require_role(Role.STUDENT)
require_professor = require_role(Role.PROFESSOR)
