"""Account records and per-user data on top of the key/value store.

This is a convenience login for a single-machine app, not a security
boundary: anyone with access to the data directory can read user data.
Passwords are at least kept as salted PBKDF2 hashes.
"""

import hashlib
import hmac
import logging
import re
import secrets
import time

from pydantic import ValidationError

from .models import AuthResult, UserData, UserProfile, UserRecord
from .store import JsonFileStore

logger = logging.getLogger(__name__)

USERS_DB_KEY = "cp_users_v2"
DATA_PREFIX = "cp_data_v2_"

MIN_PASSWORD_LENGTH = 6
_PBKDF2_ITERATIONS = 200_000
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), bytes.fromhex(salt), _PBKDF2_ITERATIONS)
    return digest.hex()


class AuthService:
    """Signup, login and whole-aggregate persistence for each user."""

    def __init__(self, store: JsonFileStore):
        self.store = store

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def is_valid_email(email: str) -> bool:
        return bool(_EMAIL_RE.match(email))

    @staticmethod
    def is_valid_password(password: str) -> bool:
        return len(password) >= MIN_PASSWORD_LENGTH

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _load_users(self) -> dict[str, dict]:
        return self.store.get(USERS_DB_KEY) or {}

    def signup(self, email: str, password: str) -> AuthResult:
        """Register *email* and initialize an empty aggregate for it."""
        users = self._load_users()
        if email in users:
            return AuthResult(success=False, message="User already exists. Please login.")

        salt = secrets.token_hex(16)
        record = UserRecord(
            email=email,
            password_hash=_hash_password(password, salt),
            salt=salt,
            name=email.split("@")[0],
            created_at=int(time.time() * 1000),
        )
        users[email] = record.model_dump()
        self.store.put(USERS_DB_KEY, users)

        self.save_user_data(email, UserData(user_profile=UserProfile(name=record.name)))
        logger.info("Created account for %s", email)
        return AuthResult(success=True, name=record.name)

    def login(self, email: str, password: str) -> AuthResult:
        raw = self._load_users().get(email)
        if raw is None:
            return AuthResult(success=False, message="User not found. Please sign up.")

        record = UserRecord.model_validate(raw)
        if not hmac.compare_digest(_hash_password(password, record.salt), record.password_hash):
            return AuthResult(success=False, message="Incorrect password.")

        return AuthResult(success=True, name=record.name)

    # ------------------------------------------------------------------
    # Per-user data
    # ------------------------------------------------------------------

    def save_user_data(self, email: str, data: UserData) -> None:
        """Overwrite the stored aggregate for *email*."""
        self.store.put(DATA_PREFIX + email, data.model_dump(mode="json"))

    def get_user_data(self, email: str) -> UserData | None:
        raw = self.store.get(DATA_PREFIX + email)
        if raw is None:
            return None
        try:
            return UserData.model_validate(raw)
        except ValidationError:
            logger.exception("Stored data for %s does not match the current schema", email)
            return None
