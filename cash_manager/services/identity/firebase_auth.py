"""
Firebase Authentication (E-mail/Password)

The Admin SDK can create users but cannot verify a password, so sign-up and
sign-in go through the public Identity Toolkit REST API, exactly as the web
client SDK does, authenticated with the project's web API key.

Provider errors come back as {"error": {"message": "CODE : detail"}}.
The CODE part is mapped onto our typed exceptions; the message shown to the
user is a plain-language version of it.
"""

from typing import Optional

import requests
import structlog

from cash_manager.config import FirebaseSettings, get_settings
from cash_manager.models.ledger import AuthUser
from cash_manager.services.identity.interface import (
    AccountExistsError,
    IdentityConnectionError,
    IdentityError,
    IdentityProviderInterface,
    InvalidCredentialsError,
    WeakPasswordError,
)


IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{action}"

# Identity Toolkit error code -> (exception class, user-facing message)
ERROR_CODES: dict[str, tuple[type[IdentityError], str]] = {
    "EMAIL_EXISTS": (AccountExistsError, "An account with this email already exists."),
    "EMAIL_NOT_FOUND": (InvalidCredentialsError, "Invalid email or password."),
    "INVALID_PASSWORD": (InvalidCredentialsError, "Invalid email or password."),
    "INVALID_LOGIN_CREDENTIALS": (InvalidCredentialsError, "Invalid email or password."),
    "USER_DISABLED": (InvalidCredentialsError, "This account has been disabled."),
    "WEAK_PASSWORD": (WeakPasswordError, "Password should be at least 6 characters."),
    "INVALID_EMAIL": (IdentityError, "The email address is badly formatted."),
    "MISSING_PASSWORD": (IdentityError, "A password is required."),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (IdentityError, "Too many attempts. Please try again later."),
    "OPERATION_NOT_ALLOWED": (IdentityError, "Email/password sign-in is not enabled for this project."),
}


def error_from_response(response: requests.Response, fallback: str) -> IdentityError:
    """Build the typed exception for a failed Identity Toolkit response."""
    try:
        raw_message = response.json().get("error", {}).get("message", "")
    except ValueError:
        raw_message = ""

    code = raw_message.split(":", 1)[0].strip() if raw_message else ""
    if code in ERROR_CODES:
        error_class, message = ERROR_CODES[code]
        return error_class(message, code=code)
    return IdentityError(raw_message or fallback, code=code or None)


class FirebaseIdentityProvider(IdentityProviderInterface):
    """
    Firebase Auth over the Identity Toolkit REST API.

    Sign-out is local: the tokens are dropped and listeners notified.
    """

    def __init__(
        self,
        settings: Optional[FirebaseSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__()
        self._settings = settings or get_settings().firebase
        self._session = session or requests.Session()
        self._logger = structlog.get_logger(__name__)

    def _post(self, action: str, email: str, password: str, fallback: str) -> dict:
        url = IDENTITY_TOOLKIT_URL.format(action=action)
        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            response = self._session.post(
                url,
                params={"key": self._settings.web_api_key},
                json=payload,
                timeout=self._settings.auth_request_timeout_seconds,
            )
        except requests.RequestException as e:
            raise IdentityConnectionError(
                f"Could not reach the authentication service: {e}"
            )

        if response.status_code != 200:
            error = error_from_response(response, fallback)
            self._logger.warning(
                "identity_request_rejected",
                action=action,
                status_code=response.status_code,
                code=error.code,
            )
            raise error

        return response.json()

    @staticmethod
    def _user_from_payload(data: dict) -> AuthUser:
        return AuthUser(
            uid=data["localId"],
            email=data.get("email", ""),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    async def create_account(self, email: str, password: str) -> AuthUser:
        """Register with accounts:signUp; the new account is signed in."""
        data = self._post("signUp", email, password, fallback="Sign up failed")
        user = self._user_from_payload(data)
        self._set_current_user(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """Authenticate with accounts:signInWithPassword."""
        data = self._post("signInWithPassword", email, password, fallback="Login failed")
        user = self._user_from_payload(data)
        self._set_current_user(user)
        return user
