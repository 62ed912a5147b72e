"""
Shotwright Configuration Management

Centralized configuration system with JSON loading and validation.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .constants import (
    DEFAULT_LOCAL_MODEL,
    DEFAULT_LOCAL_TASK,
    DEFAULT_MODEL_CANDIDATES,
    GEMINI_BASE_URL,
    HOSTED_PROVIDER_NAME,
    ProviderPreference,
)
from .exceptions import ConfigurationError, InvalidConfigError

PREFERENCE_ENV = "SHOTWRIGHT_PROVIDER"


@dataclass
class HostedConfig:
    """Configuration for the hosted (networked, credential-gated) backend."""
    provider_name: str = HOSTED_PROVIDER_NAME
    api_key_env: str = "GEMINI_API_KEY"
    alt_api_key_envs: List[str] = field(default_factory=lambda: ["GOOGLE_API_KEY", "API_KEY"])
    base_url: str = GEMINI_BASE_URL
    model_candidates: List[str] = field(default_factory=lambda: list(DEFAULT_MODEL_CANDIDATES))
    temperature: float = 0.7
    max_output_tokens: int = 8192
    request_timeout: float = 120.0
    probe_timeout: float = 20.0

    @classmethod
    def from_dict(cls, data: dict) -> 'HostedConfig':
        """Create HostedConfig from dictionary."""
        defaults = cls()
        candidates = data.get('model_candidates', defaults.model_candidates)
        if not isinstance(candidates, list) or not candidates:
            raise InvalidConfigError("hosted.model_candidates must be a non-empty list")
        return cls(
            provider_name=data.get('provider_name', defaults.provider_name),
            api_key_env=data.get('api_key_env', defaults.api_key_env),
            alt_api_key_envs=list(data.get('alt_api_key_envs', defaults.alt_api_key_envs)),
            base_url=data.get('base_url', defaults.base_url),
            model_candidates=[str(c) for c in candidates],
            temperature=float(data.get('temperature', defaults.temperature)),
            max_output_tokens=int(data.get('max_output_tokens', defaults.max_output_tokens)),
            request_timeout=float(data.get('request_timeout', defaults.request_timeout)),
            probe_timeout=float(data.get('probe_timeout', defaults.probe_timeout)),
        )

    def to_dict(self) -> dict:
        return {
            "provider_name": self.provider_name,
            "api_key_env": self.api_key_env,
            "alt_api_key_envs": list(self.alt_api_key_envs),
            "base_url": self.base_url,
            "model_candidates": list(self.model_candidates),
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
            "request_timeout": self.request_timeout,
            "probe_timeout": self.probe_timeout,
        }


@dataclass
class LocalConfig:
    """Configuration for the in-process model."""
    model_id: str = DEFAULT_LOCAL_MODEL
    task: str = DEFAULT_LOCAL_TASK
    max_new_tokens: int = 800
    temperature: float = 0.7
    top_p: float = 0.9
    inference_timeout: float = 300.0

    @classmethod
    def from_dict(cls, data: dict) -> 'LocalConfig':
        """Create LocalConfig from dictionary."""
        defaults = cls()
        return cls(
            model_id=data.get('model_id', defaults.model_id),
            task=data.get('task', defaults.task),
            max_new_tokens=int(data.get('max_new_tokens', defaults.max_new_tokens)),
            temperature=float(data.get('temperature', defaults.temperature)),
            top_p=float(data.get('top_p', defaults.top_p)),
            inference_timeout=float(data.get('inference_timeout', defaults.inference_timeout)),
        )

    def to_dict(self) -> dict:
        return {
            "model_id": self.model_id,
            "task": self.task,
            "max_new_tokens": self.max_new_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "inference_timeout": self.inference_timeout,
        }


@dataclass
class ShotwrightConfig:
    """Main configuration class for Shotwright."""

    app_name: str = "Shotwright"
    version: str = "1.0.0"

    preference: ProviderPreference = ProviderPreference.AUTO
    hosted: HostedConfig = field(default_factory=HostedConfig)
    local: LocalConfig = field(default_factory=LocalConfig)

    verbose_logging: bool = False
    logs_dir: Path = field(default_factory=lambda: Path("logs"))

    @classmethod
    def from_dict(cls, data: dict) -> 'ShotwrightConfig':
        """Create ShotwrightConfig from dictionary."""
        config = cls()

        config.app_name = data.get('app_name', config.app_name)
        config.version = data.get('version', config.version)
        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)
        if 'logs_dir' in data:
            config.logs_dir = Path(data['logs_dir'])

        if 'preference' in data:
            config.preference = parse_preference(data['preference'])

        if 'hosted' in data:
            config.hosted = HostedConfig.from_dict(data['hosted'])

        if 'local' in data:
            config.local = LocalConfig.from_dict(data['local'])

        return config

    def to_dict(self) -> dict:
        return {
            "app_name": self.app_name,
            "version": self.version,
            "preference": self.preference.value,
            "hosted": self.hosted.to_dict(),
            "local": self.local.to_dict(),
            "verbose_logging": self.verbose_logging,
            "logs_dir": str(self.logs_dir),
        }


def parse_preference(value: str) -> ProviderPreference:
    """Parse a stored preference value ("hosted", "local", "auto")."""
    try:
        return ProviderPreference(str(value).strip().lower())
    except ValueError:
        options = ", ".join(p.value for p in ProviderPreference)
        raise InvalidConfigError(f"Unknown provider preference '{value}' (expected one of: {options})")


def get_default_config() -> ShotwrightConfig:
    """Return a fresh default configuration."""
    return ShotwrightConfig()


def load_config(config_path: Path = None) -> ShotwrightConfig:
    """
    Load configuration from JSON file.

    The SHOTWRIGHT_PROVIDER environment variable overrides the stored preference.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded ShotwrightConfig instance
    """
    config_path = Path(config_path) if config_path else Path("config/shotwright_config.json")

    if not config_path.exists():
        config = ShotwrightConfig()
    else:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigError(f"Invalid JSON in config file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load config: {e}")
        if not isinstance(data, dict):
            raise InvalidConfigError("Config file must contain a JSON object")
        config = ShotwrightConfig.from_dict(data)

    env_preference = os.getenv(PREFERENCE_ENV)
    if env_preference:
        config.preference = parse_preference(env_preference)

    return config


def save_config(config: ShotwrightConfig, config_path: Path) -> None:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)


# Global config instance
_config: Optional[ShotwrightConfig] = None


def get_config() -> ShotwrightConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ShotwrightConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
