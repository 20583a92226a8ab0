"""SessionStore - authentication and session lifecycle"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from teller_client.config import settings
from teller_client.domain.exceptions import BankAPIError, InvalidCredentialsError, NotAuthenticatedError, ValidationError
from teller_client.domain.models import ClassifiedError, ErrorKind, Session
from teller_client.infrastructure.clients.bank import BankClient
from teller_client.infrastructure.database.repositories import LocalStorageRepository
from teller_client.infrastructure.database.session import session_scope

logger = logging.getLogger(__name__)

REGISTRATION_FIELDS = (
    "firstName",
    "lastName",
    "username",
    "email",
    "phoneNumber",
    "nationalId",
    "dateOfBirth",
    "password",
)


def _stored_value(value: Any, types: tuple) -> str:
    if isinstance(value, bool) or not isinstance(value, types):
        raise TypeError(f"unexpected persisted value {value!r}")
    return str(value).strip()


class SessionStore:
    """
    Owns the one active Session of the process.

    The session is created by `login` or `restore_from_persistence` and destroyed
    by `logout`. Every outbound call reads its bearer credential through
    `current_auth_header`.
    """

    def __init__(
        self,
        client: BankClient,
        session_factory: sessionmaker,
        storage_key: str | None = None,
    ):
        self.client = client
        self.session_factory = session_factory
        self.storage_key = storage_key or settings.session_storage_key
        self._session: Optional[Session] = None
        self._logout_listeners: List[Callable[[], None]] = []

    @property
    def current(self) -> Optional[Session]:
        return self._session

    def add_logout_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run after the session is destroyed (e.g. cache invalidation)"""
        self._logout_listeners.append(listener)

    def current_auth_header(self) -> Dict[str, str]:
        """Bearer header of the current session, or an empty mapping"""
        session = self._session
        return session.auth_header if session else {}

    def require_session(self) -> Session:
        session = self._session
        if session is None:
            raise NotAuthenticatedError("No active session. Please log in.")
        return session

    async def login(self, identifier: str, password: str) -> Session:
        """
        Authenticate against the backend and make the result the current session.

        Raises:
            ValidationError: Identifier or password missing
            InvalidCredentialsError: Backend rejected the pair
            BankAPIError: Network or server failure
        """
        if not identifier or not password:
            raise ValidationError("username/email and password are required")

        try:
            session = await self.client.login(identifier.strip(), password)
        except BankAPIError as e:
            if e.kind in (ErrorKind.AUTH_EXPIRED, ErrorKind.VALIDATION):
                raise InvalidCredentialsError(
                    ClassifiedError(
                        kind=ErrorKind.VALIDATION,
                        message="Login failed. Check credentials.",
                        http_status=e.error.http_status,
                    )
                ) from e
            raise

        if self._session is not None and self._session != session:
            # Accounts cached for the previous customer must not outlive it
            self._run_logout_listeners()
        self._persist(session)
        self._session = session
        logger.info("Login succeeded", extra={"customer_id": session.customer_id})
        return session

    def logout(self) -> None:
        """Destroy the current session; calling it with no session is a no-op"""
        had_session = self._session is not None
        self._session = None
        try:
            with session_scope(self.session_factory) as db:
                LocalStorageRepository(db).remove_item(self.storage_key)
        except SQLAlchemyError as e:
            logger.error(f"Failed to clear persisted session: {e}")
        finally:
            self._run_logout_listeners()
        if had_session:
            logger.info("Logged out")

    def _run_logout_listeners(self) -> None:
        for listener in self._logout_listeners:
            listener()

    def restore_from_persistence(self) -> Optional[Session]:
        """Reload the persisted session; missing or corrupt data means no session"""
        try:
            with session_scope(self.session_factory) as db:
                raw = LocalStorageRepository(db).get_item(self.storage_key)
        except SQLAlchemyError as e:
            logger.warning(f"Local storage unavailable, starting without a session: {e}")
            return None

        if raw is None:
            return None

        try:
            stored = json.loads(raw)
            session = Session(
                customer_id=_stored_value(stored["customerId"], (str, int)),
                token=_stored_value(stored["token"], (str,)),
            )
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding corrupt persisted session: {e}")
            return None

        self._session = session
        logger.info("Session restored", extra={"customer_id": session.customer_id})
        return session

    def _persist(self, session: Session) -> None:
        value = json.dumps({"customerId": session.customer_id, "token": session.token})
        with session_scope(self.session_factory) as db:
            LocalStorageRepository(db).set_item(self.storage_key, value)

    def expire_if_rejected(self, error: ClassifiedError) -> None:
        """A token the backend rejected must not be reused"""
        if error.kind is ErrorKind.AUTH_EXPIRED:
            logger.warning("Backend rejected the session token, logging out")
            self.logout()

    # ------------------------------------------------------------------
    # Registration and credential recovery
    # ------------------------------------------------------------------

    async def register(self, profile: Dict[str, Any], confirm_password: str) -> str:
        missing = [name for name in REGISTRATION_FIELDS if not profile.get(name)]
        if missing:
            raise ValidationError(f"missing fields: {', '.join(missing)}")
        if profile["password"] != confirm_password:
            raise ValidationError("passwords do not match")
        return await self.client.register({name: profile[name] for name in REGISTRATION_FIELDS})

    async def forgot_password(self, email: str | None = None, phone_number: str | None = None) -> str:
        if not email and not phone_number:
            raise ValidationError("email or phone number is required")
        return await self.client.forgot_password(email=email or None, phone_number=phone_number or None)

    async def reset_password(
        self,
        new_password: str,
        email: str | None = None,
        phone_number: str | None = None,
        token: str | None = None,
        otp: str | None = None,
    ) -> str:
        if not new_password:
            raise ValidationError("new password is required")
        if email and not token:
            raise ValidationError("token from email is required")
        if phone_number and not otp:
            raise ValidationError("OTP from SMS is required")
        if not email and not phone_number:
            raise ValidationError("email or phone number is required")
        return await self.client.reset_password(
            new_password,
            email=email or None,
            phone_number=phone_number or None,
            token=token or None,
            otp=otp or None,
        )

    async def update_password(
        self,
        username_or_email: str,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> str:
        self.require_session()
        if not username_or_email or not old_password or not new_password or not confirm_password:
            raise ValidationError("all password fields are required")
        if new_password != confirm_password:
            raise ValidationError("new password and confirmation do not match")
        try:
            return await self.client.update_password(username_or_email, old_password, new_password, confirm_password)
        except BankAPIError as e:
            self.expire_if_rejected(e.error)
            raise
