"""
In-Memory Identity Provider

Local accounts for development and the test suite. Applies the same
rules users hit against Firebase (unique e-mail, 6+ character password)
so flows behave the same in both.
"""

import hashlib
import secrets
from typing import Optional
from uuid import uuid4

from cash_manager.models.ledger import AuthUser
from cash_manager.services.identity.interface import (
    AccountExistsError,
    IdentityError,
    IdentityProviderInterface,
    InvalidCredentialsError,
    WeakPasswordError,
)


MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 100_000


def _digest(salt: str, password: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    ).hex()


class InMemoryIdentityProvider(IdentityProviderInterface):
    """Accounts keyed by lower-cased e-mail; passwords kept as PBKDF2 digests."""

    def __init__(self):
        super().__init__()
        # email -> (uid, salt, digest)
        self._accounts: dict[str, tuple[str, str, str]] = {}

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    async def create_account(self, email: str, password: str) -> AuthUser:
        key = self._key(email)
        if "@" not in key:
            raise IdentityError("The email address is badly formatted.", code="INVALID_EMAIL")
        if key in self._accounts:
            raise AccountExistsError(
                "An account with this email already exists.", code="EMAIL_EXISTS"
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(
                "Password should be at least 6 characters.", code="WEAK_PASSWORD"
            )

        uid = uuid4().hex
        salt = secrets.token_hex(8)
        self._accounts[key] = (uid, salt, _digest(salt, password))

        user = AuthUser(uid=uid, email=key)
        self._set_current_user(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        key = self._key(email)
        account: Optional[tuple[str, str, str]] = self._accounts.get(key)
        if account is None or not secrets.compare_digest(_digest(account[1], password), account[2]):
            raise InvalidCredentialsError(
                "Invalid email or password.", code="INVALID_LOGIN_CREDENTIALS"
            )

        user = AuthUser(uid=account[0], email=key)
        self._set_current_user(user)
        return user
