"""
Credential lookup keyed by provider name.

Keys entered through the settings screen are held in memory and take precedence over
the environment. A missing key is a normal state and is reported as None.
"""

from typing import Dict, List, Optional

from .config import HostedConfig
from .env_loader import get_env_value


class CredentialStore:
    """Key-value credential source for generative backends."""

    def __init__(self, env_keys: Optional[Dict[str, List[str]]] = None):
        self._env_keys: Dict[str, List[str]] = {
            name: list(keys) for name, keys in (env_keys or {}).items()
        }
        self._overrides: Dict[str, str] = {}

    @classmethod
    def from_hosted_config(cls, hosted: HostedConfig) -> "CredentialStore":
        """Build a store that knows the environment variables for the hosted provider."""
        return cls({hosted.provider_name: [hosted.api_key_env, *hosted.alt_api_key_envs]})

    def env_keys_for(self, provider: str) -> List[str]:
        """Environment variable names consulted for a provider."""
        provider = provider.lower()
        return self._env_keys.get(provider, [f"{provider.upper()}_API_KEY"])

    def get_api_key(self, provider: str) -> Optional[str]:
        provider = provider.lower()
        key = self._overrides.get(provider)
        if key:
            return key
        names = self.env_keys_for(provider)
        return get_env_value(names[0], names[1:])

    def has_api_key(self, provider: str) -> bool:
        return self.get_api_key(provider) is not None

    def set_api_key(self, provider: str, key: Optional[str]) -> None:
        """Store a key for this process; an empty value clears it."""
        provider = provider.lower()
        if key and key.strip():
            self._overrides[provider] = key.strip()
        else:
            self._overrides.pop(provider, None)
