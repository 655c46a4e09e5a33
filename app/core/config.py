from functools import lru_cache
import json
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


class Settings(BaseSettings):
    app_name: str = "Dispute Packet Assistant"
    environment: str = "development"
    api_prefix: str = "/api"
    port: int = 4000
    log_level: str = "INFO"

    # Stripe. A missing key degrades dispute/packet endpoints to 503.
    stripe_secret_key: Optional[str] = None
    stripe_api_base: Optional[str] = None

    # Database
    database_url: str = "sqlite:///./disputes.db"
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True
    auto_create_tables: bool = False

    # Uploaded originals live in <storage_root>/uploads, packets in <storage_root>/packets.
    storage_root: str = "storage"
    max_upload_bytes: int = 2 * 1024 * 1024

    # Rate limits (slowapi syntax), per client address.
    rate_limit_enabled: bool = True
    upload_rate_limit: str = "20/minute"
    packet_rate_limit: str = "10/minute"

    # Stub identity until real auth lands.
    demo_user_id: str = "demo-user"
    demo_user_email: str = "demo@example.com"
    demo_user_name: str = "Demo User"

    # Frontend / CORS
    app_base_url: str = "http://localhost:5173"
    cors_origins: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def stripe_configured(self) -> bool:
        return bool((self.stripe_secret_key or "").strip())

    @property
    def uploads_dir(self) -> Path:
        return Path(self.storage_root) / "uploads"

    @property
    def packets_dir(self) -> Path:
        return Path(self.storage_root) / "packets"


@lru_cache
def get_settings() -> Settings:
    return Settings()
