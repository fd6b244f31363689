"""Authentication service: accounts, sessions and session-change subscriptions."""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from types import TracebackType

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext
from pydantic import ValidationError

from src.core import db_client
from src.core.config import Constants, settings
from src.core.db_client import DatabaseError, sanitize_param
from src.core.errors import AuthError
from src.core.logging import span
from src.domain.user import Credentials, Session, User


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"

SessionListener = Callable[[Session | None], Awaitable[None]]

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class Subscription:
    """Handle returned by AuthService.on_session_change.

    Calling unsubscribe() more than once is harmless. The handle can be used
    as a context manager to guarantee the unsubscribe on exit.
    """

    def __init__(self, listeners: list[SessionListener], callback: SessionListener) -> None:
        self._listeners = listeners
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unsubscribe()


def _parse_credentials(email: str, password: str) -> Credentials:
    try:
        return Credentials(email=email, password=password)
    except ValidationError as e:
        reasons = "; ".join(str(err["msg"]).removeprefix("Value error, ") for err in e.errors())
        raise AuthError(reasons) from e


class AuthService:
    """Holds the current session and tells subscribers when it changes."""

    def __init__(self, *, secret: str | None = None, max_age_seconds: int | None = None) -> None:
        signing_secret = secret or settings.require_credential("session_secret", "Session signing")
        self._serializer = URLSafeTimedSerializer(signing_secret, salt=Constants.SESSION_TOKEN_SALT)
        self._max_age = max_age_seconds if max_age_seconds is not None else settings.session_max_age_seconds
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []

    def on_session_change(self, callback: SessionListener) -> Subscription:
        """Register an async callback invoked with the new session (or None)."""
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    async def _set_session(self, session: Session | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                await listener(session)
            except Exception:
                logger.exception("session_listener_failed")

    def _issue_session(self, user: User) -> Session:
        token = self._serializer.dumps({"uid": user.id})
        return Session(user_id=user.id, email=user.email, access_token=token, created_at=datetime.now(UTC))

    async def sign_up(self, email: str, password: str) -> Session:
        """Create an account and sign it in.

        Raises:
            AuthError: If the credentials are malformed or the email is taken
        """
        credentials = _parse_credentials(email, password)

        with span("auth_service.sign_up"):
            try:
                existing = await db_client.get_first_record(
                    collection=USERS_COLLECTION,
                    filter_query=f'email = "{sanitize_param(credentials.email)}"',
                )
            except DatabaseError as e:
                logger.error("sign_up_lookup_failed", extra={"error": str(e)})
                raise AuthError("Unable to create the account") from e

            if existing:
                raise AuthError("Email already registered")

            try:
                record = await db_client.create_record(
                    collection=USERS_COLLECTION,
                    data={"email": credentials.email, "password_hash": pwd_context.hash(credentials.password)},
                )
            except DatabaseError as e:
                logger.error("sign_up_failed", extra={"error": str(e)})
                raise AuthError("Unable to create the account") from e

            user = User(id=record["id"], email=record["email"])
            logger.info("user_signed_up", extra={"user_id": user.id})
            session = self._issue_session(user)
            await self._set_session(session)
            return session

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password.

        Raises:
            AuthError: If the credentials do not match an account
        """
        with span("auth_service.sign_in"):
            try:
                record = await db_client.get_first_record(
                    collection=USERS_COLLECTION,
                    filter_query=f'email = "{sanitize_param(email.strip().lower())}"',
                )
            except DatabaseError as e:
                logger.error("sign_in_lookup_failed", extra={"error": str(e)})
                raise AuthError("Invalid email or password") from e

            if not record or not pwd_context.verify(password, record["password_hash"]):
                logger.warning("sign_in_rejected")
                raise AuthError("Invalid email or password")

            user = User(id=record["id"], email=record["email"])
            logger.info("user_signed_in", extra={"user_id": user.id})
            session = self._issue_session(user)
            await self._set_session(session)
            return session

    async def sign_out(self) -> None:
        """Drop the current session."""
        if self._session is None:
            return
        logger.info("user_signed_out", extra={"user_id": self._session.user_id})
        await self._set_session(None)

    async def get_session(self) -> Session | None:
        """Return the current session if its token is still valid.

        An expired or tampered token ends the session.
        """
        session = self._session
        if session is None:
            return None

        try:
            payload = self._serializer.loads(session.access_token, max_age=self._max_age)
        except SignatureExpired:
            logger.info("session_expired", extra={"user_id": session.user_id})
            await self._set_session(None)
            return None
        except BadSignature:
            logger.warning("session_token_invalid", extra={"user_id": session.user_id})
            await self._set_session(None)
            return None

        if payload.get("uid") != session.user_id:
            logger.warning("session_token_mismatch", extra={"user_id": session.user_id})
            await self._set_session(None)
            return None
        return session
