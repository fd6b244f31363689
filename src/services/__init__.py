from src.services import (
    auth_service,
    consumption,
    notification_service,
    pantry_service,
    recipe_service,
    sync_engine,
)


__all__ = [
    "auth_service",
    "consumption",
    "notification_service",
    "pantry_service",
    "recipe_service",
    "sync_engine",
]
