"""
Configuration Management
Loads settings from YAML files and environment variables
"""
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Call Center Auto-Dialer"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Single active agent per process
    agent_id: str = "current-user"

    # Seed the in-memory order source with demo orders on startup
    seed_demo_orders: bool = True


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


# ${VAR} or ${VAR:-fallback}
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class ConfigManager:
    """
    Layered YAML configuration.

    Layers, later ones winning key by key:
        1. default.yaml
        2. <env>.yaml

    String values may reference the environment as ${VAR} or
    ${VAR:-fallback}. An unset variable without fallback is left verbatim.
    """

    DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"

    def __init__(self, env: str = "development", config_dir: Optional[Path] = None):
        self.env = env
        self.config_dir = Path(config_dir) if config_dir else self.DEFAULT_CONFIG_DIR
        self._config: Dict[str, Any] = {}
        self.loaded_files: List[Path] = []
        self._load_config()

    def _layer_files(self) -> List[Path]:
        return [self.config_dir / "default.yaml", self.config_dir / f"{self.env}.yaml"]

    def _load_config(self) -> None:
        merged: Dict[str, Any] = {}
        for path in self._layer_files():
            if not path.exists():
                continue
            with open(path, "r") as f:
                layer = yaml.safe_load(f) or {}
            if not isinstance(layer, dict):
                raise ValueError(f"Config file {path} must contain a mapping at the top level")
            self._merge_into(merged, layer)
            self.loaded_files.append(path)

        self._config = self._expand(merged)
        logger.debug(
            f"Configuration '{self.env}' loaded from {[p.name for p in self.loaded_files] or 'defaults only'}"
        )

    @classmethod
    def _merge_into(cls, base: Dict, override: Dict) -> None:
        for key, value in override.items():
            current = base.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                cls._merge_into(current, value)
            else:
                base[key] = value

    @classmethod
    def _expand(cls, value: Any) -> Any:
        """Resolve ${VAR} references in strings, recursing into dicts and lists"""
        if isinstance(value, dict):
            return {key: cls._expand(item) for key, item in value.items()}
        if isinstance(value, list):
            return [cls._expand(item) for item in value]
        if isinstance(value, str):
            return _ENV_PATTERN.sub(cls._env_value, value)
        return value

    @staticmethod
    def _env_value(match: "re.Match") -> str:
        name, fallback = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        return fallback if fallback is not None else match.group(0)

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation
        Example: config.get("dialer.dial_delay_seconds") -> 1.5
        """
        node: Any = self._config
        for key in key_path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_section(self, section: str) -> Dict:
        """Get a whole top-level section (empty dict if missing)"""
        value = self.get(section, {})
        return dict(value) if isinstance(value, dict) else {}
