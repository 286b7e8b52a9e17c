import structlog

from ..errors import DuplicateRecordError
from ...domain.entities import Identity, Role, User

logger = structlog.get_logger()


class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_uid(self, uid: str) -> User | None: ...
    def create(self, identity: Identity, role: Role = Role.STUDENT) -> User: ...


class LoginUser:
    """Returns the stored user for a verified identity, creating it on first login."""

    def __init__(self, repo: IUserRepository):
        self.repo = repo

    def _lookup(self, identity: Identity) -> User | None:
        if identity.email:
            user = self.repo.get_by_email(identity.email)
            if user:
                return user
        # subject id is the join key; the provider email may have changed
        return self.repo.get_by_uid(identity.uid)

    def execute(self, identity: Identity) -> User:
        user = self._lookup(identity)
        if user:
            return user
        try:
            user = self.repo.create(identity)
        except DuplicateRecordError:
            # a concurrent login created the record first
            user = self._lookup(identity)
            if user is None:
                raise
            return user
        logger.info("user_created", user_id=user.id, uid=identity.uid, role=user.role.value)
        return user
