from contextlib import contextmanager

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .metrics import db_errors_total, db_queries_total
from .models import ApplicationORM, DiscussionORM, ResearchORM, UserORM
from ..domain.entities import (
    Application,
    Discussion,
    Eligibility,
    Identity,
    Research,
    ResearchStatus,
    Role,
    User,
    UserRef,
)
from ..application.errors import DuplicateRecordError, PersistenceError
from ..application.use_cases.login_user import IUserRepository

logger = structlog.get_logger()


def user_to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        firebase_uid=u.firebase_uid,
        email=u.email,
        full_name=u.full_name,
        role=Role(u.role),
        university=u.university,
        research_interests=list(u.research_interests or []),
        citations=u.citations,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


def user_ref(u: UserORM | None) -> UserRef | None:
    if u is None:
        return None
    return UserRef(id=u.id, full_name=u.full_name, email=u.email)


def research_to_domain(r: ResearchORM) -> Research:
    eligibility = r.eligibility or {}
    return Research(
        id=r.id,
        title=r.title,
        professor_id=r.professor_id,
        description=r.description,
        university=r.university,
        eligibility=Eligibility(
            degree=eligibility.get("degree"),
            year=list(eligibility.get("year") or []),
            skills_required=list(eligibility.get("skills_required") or []),
        ),
        status=ResearchStatus(r.status),
        applicants=list(r.applicants or []),
        professor=user_ref(r.professor),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def application_to_domain(a: ApplicationORM) -> Application:
    return Application(
        id=a.id,
        student_id=a.student_id,
        research_id=a.research_id,
        application_text=a.application_text,
        created_at=a.created_at,
    )


def discussion_to_domain(d: DiscussionORM) -> Discussion:
    return Discussion(
        id=d.id,
        title=d.title,
        content=d.content,
        created_by=user_ref(d.created_by),
        created_at=d.created_at,
    )


class SQLRepository:
    def __init__(self, db: Session): self.db = db

    @contextmanager
    def _operation(self, name: str):
        db_queries_total.labels(operation=name).inc()
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            db_errors_total.labels(operation=name).inc()
            logger.warning("persistence_conflict", operation=name, error=str(e.orig))
            raise DuplicateRecordError(name, e) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            db_errors_total.labels(operation=name).inc()
            logger.error("persistence_error", operation=name, error=str(e))
            raise PersistenceError(name, e) from e
        except ValueError as e:
            # stored value outside the Role or ResearchStatus enums
            self.db.rollback()
            db_errors_total.labels(operation=name).inc()
            logger.error("persistence_invalid_record", operation=name, error=str(e))
            raise PersistenceError(name, e) from e


class UserRepository(SQLRepository, IUserRepository):
    def get_by_email(self, email: str) -> User | None:
        with self._operation("users.get_by_email"):
            row = self.db.query(UserORM).filter(UserORM.email == email).first()
            return user_to_domain(row) if row else None

    def get_by_uid(self, uid: str) -> User | None:
        with self._operation("users.get_by_uid"):
            row = self.db.query(UserORM).filter(UserORM.firebase_uid == uid).first()
            return user_to_domain(row) if row else None

    def create(self, identity: Identity, role: Role = Role.STUDENT) -> User:
        with self._operation("users.create"):
            row = UserORM(
                firebase_uid=identity.uid,
                full_name=identity.name,
                email=identity.email,
                role=role.value,
            )
            self.db.add(row); self.db.commit(); self.db.refresh(row)
            return user_to_domain(row)

    def list_by_role(self, role: Role | None = None) -> list[User]:
        """Users with the given role, or every user when role is None."""
        with self._operation("users.list"):
            q = self.db.query(UserORM)
            if role is not None:
                q = q.filter(UserORM.role == role.value)
            return [user_to_domain(row) for row in q.order_by(UserORM.created_at).all()]


class ResearchRepository(SQLRepository):
    def create(
        self,
        professor_id: str,
        title: str,
        description: str | None = None,
        university: str | None = None,
        eligibility: dict | None = None,
        status: ResearchStatus = ResearchStatus.OPEN,
    ) -> Research:
        with self._operation("research.create"):
            row = ResearchORM(
                professor_id=professor_id,
                title=title,
                description=description,
                university=university,
                eligibility=eligibility or {},
                status=status.value,
                applicants=[],
            )
            self.db.add(row); self.db.commit(); self.db.refresh(row)
            return research_to_domain(row)

    def list_all(self) -> list[Research]:
        with self._operation("research.list"):
            rows = self.db.query(ResearchORM).order_by(ResearchORM.created_at).all()
            return [research_to_domain(row) for row in rows]


class ApplicationRepository(SQLRepository):
    def create(self, student_id: str, research_id: str, application_text: str) -> Application:
        # Research.applicants is left untouched: one insert per application
        with self._operation("applications.create"):
            row = ApplicationORM(
                student_id=student_id,
                research_id=research_id,
                application_text=application_text,
            )
            self.db.add(row); self.db.commit(); self.db.refresh(row)
            return application_to_domain(row)


class DiscussionRepository(SQLRepository):
    def list_all(self) -> list[Discussion]:
        with self._operation("discussions.list"):
            rows = self.db.query(DiscussionORM).order_by(DiscussionORM.created_at).all()
            return [discussion_to_domain(row) for row in rows]
