import json
from threading import RLock

import cachecontrol
import google.auth.transport.requests
import google.oauth2.id_token
import requests
import structlog
from google.auth import exceptions as google_exceptions

from ..domain.entities import Identity

logger = structlog.get_logger()


class InvalidTokenError(Exception):
    """The bearer credential could not be verified."""


class VerifierConfigurationError(RuntimeError):
    """No Firebase project could be resolved from settings."""


def load_project_id(project_id: str | None, credentials_path: str | None) -> str:
    """Project id from settings, else from the service account JSON bundle."""
    if project_id:
        return project_id
    if not credentials_path:
        raise VerifierConfigurationError("FIREBASE_PROJECT_ID or FIREBASE_CREDENTIALS must be set")
    try:
        with open(credentials_path, encoding="utf-8") as fh:
            bundle = json.load(fh)
    except (OSError, ValueError) as e:
        raise VerifierConfigurationError(f"cannot read credentials {credentials_path}: {e}") from e
    project_id = bundle.get("project_id")
    if not project_id:
        raise VerifierConfigurationError(f"no project_id in {credentials_path}")
    return project_id


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens against Google's public certificates."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self._session: requests.Session | None = None
        self._lock = RLock()

    @classmethod
    def from_settings(cls, settings) -> "FirebaseTokenVerifier":
        return cls(load_project_id(settings.FIREBASE_PROJECT_ID, settings.FIREBASE_CREDENTIALS))

    def _get_session(self) -> requests.Session:
        # lock covers creation only; certificate fetches run unlocked
        with self._lock:
            if self._session is None:
                self._session = cachecontrol.CacheControl(requests.session())
            return self._session

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def verify(self, token: str) -> Identity:
        request = google.auth.transport.requests.Request(session=self._get_session())
        try:
            claims = google.oauth2.id_token.verify_firebase_token(
                token, request, audience=self.project_id
            )
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise InvalidTokenError(str(e)) from e
        if not claims:
            raise InvalidTokenError("empty claim set")
        uid = claims.get("user_id") or claims.get("sub")
        if not uid:
            raise InvalidTokenError("token has no subject")
        return Identity(uid=uid, email=claims.get("email"), name=claims.get("name"))
