from datetime import datetime
from passlib.context import CryptContext

from talentrank.services.db import BaseStore, CREDENTIALS
from talentrank.utils.exceptions import AuthenticationError
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

CANDIDATE = "candidate"
RECRUITER = "recruiter"


class CredentialStore:
    """Password hashes kept apart from candidate and posting records."""

    def __init__(self, store: BaseStore):
        self.store = store

    def exists(self, role: str, identity: str) -> bool:
        return self.store.get(CREDENTIALS, role, identity) is not None

    def create(self, role: str, identity: str, password: str) -> None:
        self.store.put(
            CREDENTIALS, role, identity,
            record={"hash": pwd_context.hash(password), "created_at": datetime.utcnow().isoformat()},
        )
        logger.info(f"Created {role} credential for {identity}")

    def verify(self, role: str, identity: str, password: str) -> None:
        """Raise AuthenticationError unless the password matches.

        Unknown identities and wrong passwords fail the same way.
        """
        record = self.store.get(CREDENTIALS, role, identity) or {}
        hashed = record.get("hash")
        if not hashed or not password or not pwd_context.verify(password, hashed):
            logger.warning(f"Failed {role} authentication for {identity}")
            raise AuthenticationError()

    def ensure(self, role: str, identity: str, password: str) -> bool:
        """Verify an existing credential or create a new one. Returns True if created."""
        with self.store.locked(CREDENTIALS):
            if self.exists(role, identity):
                self.verify(role, identity, password)
                return False
            self.create(role, identity, password)
            return True
