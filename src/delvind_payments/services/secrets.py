"""Layered secret resolution for Stripe credentials.

Secrets are read from a mounted secrets directory first (one file per
secret, named after it) and fall back to process environment variables.
"""

import logging
import os
from pathlib import Path

from delvind_payments.models.errors import ConfigurationError

logger = logging.getLogger(__name__)

STRIPE_SECRET_KEY = "STRIPE_SECRET_KEY"
STRIPE_WEBHOOK_SECRET = "STRIPE_WEBHOOK_SECRET"


class SecretResolver:
    """Resolve named secrets from a mounted directory or the environment.

    Usage:
        secrets = SecretResolver("/etc/secrets")
        api_key = secrets.require(STRIPE_SECRET_KEY)
    """

    def __init__(self, secrets_dir: str | Path) -> None:
        """Initialize the resolver.

        Args:
            secrets_dir: Directory holding one file per secret.
        """
        self._secrets_dir = Path(secrets_dir)

    def _read_file(self, name: str) -> str | None:
        path = self._secrets_dir / name
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.debug("Secret file %s not readable (%s), trying environment", path, e)
            return None
        return value or None

    def resolve(self, name: str) -> str | None:
        """Resolve a secret by name.

        Args:
            name: Secret name (file name and environment variable name).

        Returns:
            The secret value, or None if no source has it.
        """
        value = self._read_file(name)
        if value is not None:
            return value
        value = os.environ.get(name, "").strip()
        return value or None

    def require(self, name: str) -> str:
        """Resolve a secret that must be present.

        Args:
            name: Secret name.

        Returns:
            The secret value.

        Raises:
            ConfigurationError: If the secret is missing from every source.
        """
        value = self.resolve(name)
        if value is None:
            logger.error("Required secret %s is not configured", name)
            raise ConfigurationError(name)
        return value
