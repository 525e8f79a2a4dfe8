"""API key storage backed by environment variables and the YAML config."""

import os
import logging
from typing import Dict, Any, Optional, Mapping, Set

from blocktrans.storage.base import CredentialStore
from blocktrans.utils.config_loader import save_config

logger = logging.getLogger(__name__)

ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}


class ConfigCredentialStore(CredentialStore):
    """
    Resolves keys from the environment first, then the ``api_keys`` config section.

    Deleting a key removes it from the config and revokes the environment
    value for the lifetime of this store; ``set_key`` lifts the revocation.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        self.config = config
        self.config_path = config_path
        self.environ = os.environ if environ is None else environ
        self._revoked: Set[str] = set()
        self.config.setdefault("api_keys", {})

    def providers(self):
        return tuple(ENV_VARS)

    def get_key(self, provider: str) -> Optional[str]:
        if provider in self._revoked:
            return None

        env_var = ENV_VARS.get(provider)
        if env_var:
            value = (self.environ.get(env_var) or "").strip()
            if value:
                return value

        value = self.config["api_keys"].get(provider) or ""
        value = str(value).strip()
        return value or None

    def set_key(self, provider: str, api_key: str) -> None:
        self._revoked.discard(provider)
        self.config["api_keys"][provider] = api_key.strip()
        self._persist()
        logger.info(f"API key stored for {provider}")

    def delete_key(self, provider: str) -> None:
        self.config["api_keys"].pop(provider, None)
        self._revoked.add(provider)
        self._persist()
        logger.info(f"API key deleted for {provider}")

    def revoke(self, provider: str) -> None:
        self._revoked.add(provider)

    def delete_all(self) -> None:
        for provider in ENV_VARS:
            self.config["api_keys"].pop(provider, None)
            self._revoked.add(provider)
        self._persist()
        logger.warning("All API keys deleted")

    def masked_key(self, provider: str) -> Optional[str]:
        """Key with everything but the first and last four characters hidden."""
        key = self.get_key(provider)
        if not key:
            return None
        if len(key) <= 8:
            return "*" * len(key)
        return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"

    def _persist(self) -> None:
        if self.config_path:
            save_config(self.config, self.config_path)
