"""ecodispensa - pantry and shopping list with an anti-waste recipe assistant."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from src.core.db_client import close_connection, init_db
from src.core.logging import configure_logfire, instrument_pydantic_ai
from src.domain.user import Session
from src.services.auth_service import AuthService, Subscription
from src.services.notification_service import ExpiryNotifier, NotificationSender
from src.services.recipe_service import RecipeService
from src.services.remote_store import RemoteStore
from src.services.sync_engine import SyncEngine


logger = logging.getLogger(__name__)


async def log_notification(title: str, body: str) -> None:
    """Default notification sender: write the notification to the log."""
    logger.info("notification", extra={"title": title, "body": body})


@dataclass
class AppContext:
    """Everything the app holds for the signed-in user.

    The sync engine is replaced whenever the session changes and is None
    while nobody is signed in.
    """

    auth: AuthService
    recipes: RecipeService
    notifier: ExpiryNotifier
    engine: SyncEngine | None = None
    subscriptions: list[Subscription] = field(default_factory=list)

    @property
    def signed_in(self) -> bool:
        return self.engine is not None

    async def handle_session_change(self, session: Session | None) -> None:
        """Swap the sync engine for the new session and load its collections."""
        if self.engine is not None:
            self.engine.close()
            self.engine = None

        if session is None:
            logger.info("session_cleared")
            return

        engine = SyncEngine(RemoteStore(user_id=session.user_id))
        self.engine = engine
        await engine.reload_all()
        if self.engine is engine:
            await self.notifier.check_and_notify(engine.pantry_items)

    def close(self) -> None:
        for subscription in self.subscriptions:
            subscription.unsubscribe()
        self.subscriptions.clear()
        if self.engine is not None:
            self.engine.close()
            self.engine = None


@asynccontextmanager
async def open_app(
    *,
    notify: NotificationSender | None = None,
    configure_logging: bool = True,
    auth: AuthService | None = None,
) -> AsyncIterator[AppContext]:
    """Open the application context.

    Startup configures logging, creates the schema and wires the session
    subscription; shutdown unsubscribes, detaches the sync engine and closes
    the database connection.
    """
    # Configure logging first so startup logs are captured
    if configure_logging:
        configure_logfire()
        instrument_pydantic_ai()

    await init_db()
    logger.info("Database initialized")

    context = AppContext(
        auth=auth or AuthService(),
        recipes=RecipeService(),
        notifier=ExpiryNotifier(notify or log_notification),
    )
    context.subscriptions.append(context.auth.on_session_change(context.handle_session_change))

    try:
        yield context
    finally:
        context.close()
        await close_connection()
        logger.info("Application closed")
