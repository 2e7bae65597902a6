"""
Configuration management for services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv


class ServiceConfig:
    """Configuration management for services using environment variables."""

    def __init__(self) -> None:
        """Initialize configuration by loading environment variables."""
        # .env lives next to app.py
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=False)
        self.config: dict[str, Any] = {}
        self.settings: dict[str, Any] = {}
        self.settings_path = os.getenv(
            "APP_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "../config/app.yaml"),
        )
        self.load_from_env()
        self.load_settings()

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.config = {
            "database_url": os.getenv("DATABASE_URL"),
            "jwt_secret_key": os.getenv("JWT_SECRET_KEY", "change-me"),
            "email_user": os.getenv("EMAIL_USER"),
            "email_pass": os.getenv("EMAIL_PASS"),
            "smtp_host": os.getenv("SMTP_HOST", "smtp.gmail.com"),
            "smtp_port": int(os.getenv("SMTP_PORT", "587")),
            "tmdb_link": os.getenv("TMDB_LINK", "https://api.themoviedb.org/3"),
            "tmdb_api_key": os.getenv("TMDB_API_KEY"),
            "tmdb_image_link": os.getenv("TMDB_IMAGE_LINK", "https://image.tmdb.org/t/p/"),
            "google_client_id": os.getenv("GOOGLE_CLIENT_ID"),
            "google_client_secret": os.getenv("GOOGLE_CLIENT_SECRET"),
            "server_address": os.getenv("SERVER_ADDRESS", "http://localhost:8000"),
            "client_address": os.getenv("CLIENT_ADDRESS", "http://localhost:5173"),
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["http://localhost:5173"]')),
            "media_root": os.getenv("MEDIA_ROOT", "./media"),
            "public_media_url": os.getenv("PUBLIC_MEDIA_URL"),
            "avatar_storage_driver": os.getenv("AVATAR_STORAGE_DRIVER", "local"),
            "auto_sync_enabled": os.getenv("AUTO_SYNC_ENABLED", "true").lower() == "true",
            "debug": os.getenv("DEBUG", "false").lower() == "true",
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config.get(key, default)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def reload(self) -> None:
        """Reload configuration from environment variables."""
        self.load_from_env()
        self.load_settings()

    def load_settings(self) -> None:
        """Load tunable settings from the YAML file."""
        path = os.path.abspath(self.settings_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.settings = data

    def get_setting(self, path: str, default: Any = None) -> Any:
        """Retrieve a settings value via dotted path."""
        env_override_key = f"APP_FLAG_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.settings
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    def set_settings(self, settings: dict[str, Any]) -> None:
        """Override settings (useful for tests)."""
        self.settings = settings

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()
