"""Process configuration read from environment variables.

Secrets are not part of settings; they are resolved per use through
``delvind_payments.services.secrets``.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://www.delvind.com"


class Settings(BaseModel):
    """Runtime settings for the payments service."""

    environment: str = "dev"
    base_url: str = DEFAULT_BASE_URL
    currency: str = "brl"
    secrets_dir: str = "/etc/secrets"
    table_prefix: str = "delvind-dev"
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )
    boleto_grace_days: int = Field(default=3, ge=1)
    shipping_countries: list[str] = Field(default_factory=lambda: ["BR"])

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Returns:
            Settings with defaults for anything not set.
        """
        environment = os.getenv("ENVIRONMENT", "dev")
        base_url = (
            os.getenv("BASE_URL")
            or os.getenv("NEXT_PUBLIC_BASE_URL")
            or DEFAULT_BASE_URL
        )
        origins = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000")
        return cls(
            environment=environment,
            base_url=base_url.rstrip("/"),
            currency=os.getenv("STRIPE_CURRENCY", "brl").lower(),
            secrets_dir=os.getenv("SECRETS_DIR", "/etc/secrets"),
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"delvind-{environment}"),
            cors_allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            boleto_grace_days=int(os.getenv("BOLETO_GRACE_DAYS", "3")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings (read once).

    Returns:
        Settings: Shared settings instance.
    """
    return Settings.from_env()
