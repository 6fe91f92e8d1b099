"""
Abstract Identity Provider Interface

DESIGN DECISION: Authentication is delegated entirely to an external
provider. The ledger only needs three things from it:
1. A stable user ID after account creation or sign-in
2. A way to forget the session (sign-out)
3. A notification whenever the current user changes

The listener bookkeeping is the same for every provider, so it lives here;
subclasses only talk to their backend and call _set_current_user().
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from cash_manager.models.ledger import AuthUser


AuthStateListener = Callable[[Optional[AuthUser]], None]


class IdentityProviderInterface(ABC):
    """
    Abstract interface for identity provider operations.

    Any provider (Firebase Auth, in-memory) must implement
    create_account and sign_in.
    """

    def __init__(self):
        self._current_user: Optional[AuthUser] = None
        self._listeners: list[AuthStateListener] = []

    @property
    def current_user(self) -> Optional[AuthUser]:
        """The signed-in user, or None."""
        return self._current_user

    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        """
        Subscribe to current-user changes.

        The listener is called immediately with the current state, then
        again after every sign-in, account creation and sign-out.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)
        listener(self._current_user)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current_user(self, user: Optional[AuthUser]) -> None:
        self._current_user = user
        for listener in list(self._listeners):
            listener(user)

    @abstractmethod
    async def create_account(self, email: str, password: str) -> AuthUser:
        """
        Create an account and sign it in.

        Returns:
            The new user

        Raises:
            AccountExistsError: If the e-mail is already registered
            WeakPasswordError: If the provider rejects the password
            IdentityError: For any other provider failure
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Sign in with e-mail and password.

        Raises:
            InvalidCredentialsError: If the e-mail/password pair is wrong
            IdentityError: For any other provider failure
        """
        pass

    async def sign_out(self) -> None:
        """Forget the current session."""
        self._set_current_user(None)


class IdentityError(Exception):
    """Base exception for identity provider operations."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class AccountExistsError(IdentityError):
    """An account with this e-mail already exists."""
    pass


class InvalidCredentialsError(IdentityError):
    """Unknown e-mail or wrong password."""
    pass


class WeakPasswordError(IdentityError):
    """Password rejected by the provider's strength rules."""
    pass


class IdentityConnectionError(IdentityError):
    """Could not reach the identity provider."""
    pass
