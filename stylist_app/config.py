"""Configuration helpers for the wardrobe stylist service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_USER_ID = 1


@dataclass
class StylistConfig:
    """Configuration values for the stylist service.

    Secrets (the Gemini API key) come from the process environment or a local
    ``.env`` file. Everything else has a local-development default so the
    service starts without any configuration at all.
    """

    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL
    database_path: str = "data/wardrobe.db"
    pool_size: int = 10
    pool_timeout: float = 5.0
    upload_dir: str = "uploads"
    default_user_id: int = DEFAULT_USER_ID
    ai_timeout_seconds: Optional[float] = 60.0
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "StylistConfig":
        """Build a config from ``.env``, environment variables or a YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default. Values from the process environment always win over the file so
        that secrets can be injected by the runtime.
        """

        load_dotenv(find_dotenv(usecwd=True))

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("STYLIST_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        timeout = get_value("ai_timeout_seconds", "60")

        return cls(
            api_key=get_value("gemini_api_key") or None,
            model=str(get_value("gemini_model", DEFAULT_GEMINI_MODEL) or DEFAULT_GEMINI_MODEL),
            database_path=str(get_value("database_path", "data/wardrobe.db")),
            pool_size=int(get_value("db_pool_size", "10")),
            pool_timeout=float(get_value("db_pool_timeout", "5")),
            upload_dir=str(get_value("upload_dir", "uploads")),
            default_user_id=int(get_value("default_user_id", str(DEFAULT_USER_ID))),
            ai_timeout_seconds=float(timeout) if timeout else None,
            host=str(get_value("host", "0.0.0.0")),
            port=int(get_value("port", "5000")),
            log_level=str(get_value("log_level", "INFO")),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["StylistConfig", "DEFAULT_GEMINI_MODEL", "DEFAULT_USER_ID"]
