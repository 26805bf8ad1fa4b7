import os
from dataclasses import dataclass


def _get_bool(env_name: str, default: bool = False) -> bool:
    val = os.getenv(env_name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass
class Settings:
    # App
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    INSTANCE_ID: str = os.getenv("INSTANCE_ID", "unknown")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Database (SQLite by default in a Docker volume)
    DB_URL: str = os.getenv("DB_URL", "sqlite+aiosqlite:////data/data.db")

    # Redis
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_USERNAME: str = os.getenv("REDIS_USERNAME", "")
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
    REDIS_SSL: bool = _get_bool("REDIS_SSL", False)

    # Notification bus: "memory" keeps fan-out in-process, "redis" relays across instances
    EVENTS_BACKEND: str = os.getenv("EVENTS_BACKEND", "memory")
    EVENTS_CHANNEL: str = os.getenv("EVENTS_CHANNEL", "dineflow-events")

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY: str = os.getenv("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET: str = os.getenv("CLOUDINARY_API_SECRET", "")
    MEDIA_FOLDER: str = os.getenv("MEDIA_FOLDER", "foods")

    # Identity
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ENFORCE_ADMIN: bool = _get_bool("ENFORCE_ADMIN", False)
    IDENTITY_HEADER: str = os.getenv("IDENTITY_HEADER", "X-User-Email")

    # Dining room size used by the table availability view (not enforced on orders)
    TOTAL_TABLES: int = int(os.getenv("TOTAL_TABLES", "40"))


settings = Settings()
