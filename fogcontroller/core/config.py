import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_PORT = 54421

_ENV_LOADED = False


def _load_env_file(path: str, allow_override: bool = False) -> None:
    """
    Minimal .env loader: loads KEY=VALUE pairs into os.environ.
    - Ignores empty lines and lines starting with '#'
    - Supports values wrapped in single or double quotes
    - By default, does not override existing environment variables
    """
    if not path or not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].strip()
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]
                if allow_override or key not in os.environ:
                    os.environ[key] = value
    except PermissionError as e:
        print(f"FATAL: Permission denied reading environment file {path}: {e}", file=sys.stderr)
        raise


def load_env_if_present(force_reload: bool = False) -> None:
    """
    Load environment variables from .env files in order of precedence:
    1. FOGCONTROLLER_ENV_FILE when set (only that file)
    2. .env.local
    3. .env.{ENVIRONMENT}
    4. .env
    """
    global _ENV_LOADED
    if _ENV_LOADED and not force_reload:
        return

    custom = os.environ.get("FOGCONTROLLER_ENV_FILE")
    if custom:
        _load_env_file(custom)
    else:
        env_files = ['.env.local', '.env']
        environment = os.environ.get('ENVIRONMENT', '').strip()
        if environment:
            env_files.insert(1, f'.env.{environment}')
        for env_file in env_files:
            _load_env_file(env_file)

    _ENV_LOADED = True


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Read the file-based configuration fallback (YAML or JSON, JSON being a YAML subset).

    Recognized keys: port, ssl_key, ssl_cert, intermediate_cert. A missing
    path or file yields an empty mapping.
    """
    if not path:
        return {}
    config_path = Path(path).expanduser()
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping, got {type(data).__name__}")
    return data


MANDATORY_ENV_VARS = [
    'POSTGRES_USER', 'POSTGRES_PASSWORD', 'POSTGRES_DB', 'POSTGRES_HOST', 'POSTGRES_PORT',
]


def validate_mandatory_env_vars(env: Optional[Dict[str, str]] = None) -> None:
    """
    Validate that all mandatory environment variables are present and not empty.
    Exit immediately if any are missing.
    """
    env = os.environ if env is None else env
    missing_vars = [var for var in MANDATORY_ENV_VARS if var not in env]
    empty_vars = [var for var in MANDATORY_ENV_VARS if var in env and not env[var].strip()]

    if missing_vars or empty_vars:
        error_msg = []
        if missing_vars:
            error_msg.append(f"Missing environment variables: {', '.join(missing_vars)}")
        if empty_vars:
            error_msg.append(f"Empty environment variables: {', '.join(empty_vars)}")
        print(f"FATAL: {' | '.join(error_msg)}", file=sys.stderr)
        for var in MANDATORY_ENV_VARS:
            value = env.get(var, '')
            if value and value.strip():
                shown = '*' * len(value) if 'PASSWORD' in var else value
                print(f"  {var}={shown}", file=sys.stderr)
            else:
                print(f"  {var}=<MISSING OR EMPTY>", file=sys.stderr)
        sys.exit(1)


class Settings(BaseModel):
    """
    Fog controller settings from environment variables.
    """
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    app_name: str = "Fog Controller"
    app_version: str = "1.0.0"

    host: str = Field("0.0.0.0", alias="FOGCONTROLLER_HOST")
    port: int = Field(DEFAULT_PORT, alias="FOGCONTROLLER_PORT")
    debug: bool = Field(False, alias="FOGCONTROLLER_DEBUG")

    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: str = Field(..., alias="POSTGRES_PASSWORD")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    postgres_host: str = Field(..., alias="POSTGRES_HOST")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")

    # TLS material; overridden by the config store when set there
    ssl_key: Optional[str] = Field(None, alias="FOGCONTROLLER_SSL_KEY")
    ssl_cert: Optional[str] = Field(None, alias="FOGCONTROLLER_SSL_CERT")
    intermediate_cert: Optional[str] = Field(None, alias="FOGCONTROLLER_INTERMEDIATE_CERT")

    config_file: Optional[str] = Field(None, alias="FOGCONTROLLER_CONFIG_FILE")

    @field_validator('postgres_user', 'postgres_password', 'postgres_db', 'postgres_host', 'host', mode='before')
    def validate_not_empty_str(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Value cannot be empty or whitespace only")
        return v.strip()

    @field_validator('debug', mode='before')
    def coerce_bool(cls, v):
        if isinstance(v, bool):
            return v
        if not isinstance(v, str):
            raise ValueError("Expected string for boolean field")
        val = v.strip().lower()
        if val in ("true", "1", "yes", "y", "on"):
            return True
        if val in ("false", "0", "no", "n", "off", ""):
            return False
        raise ValueError(f"Invalid boolean value: {v}")

    @field_validator('ssl_key', 'ssl_cert', 'intermediate_cert', 'config_file', mode='before')
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def validate_ports(self):
        for name in ("port", "postgres_port"):
            value = getattr(self, name)
            if value < 1 or value > 65535:
                raise ValueError(f"Invalid {name} number: {value}")
        return self

    @property
    def conn_string(self) -> str:
        """Connection string for the controller database."""
        return (
            f"dbname={self.postgres_db} user={self.postgres_user} password={self.postgres_password} "
            f"host={self.postgres_host} port={self.postgres_port}"
        )

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> "Settings":
        env = dict(os.environ if env is None else env)
        known = {field.alias for field in cls.model_fields.values() if field.alias}
        return cls(**{key: value for key, value in env.items() if key in known})


_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Get application settings. Validates environment variables on first call.
    Set reload=True to force reloading from current environment.
    """
    global _settings
    if _settings is None or reload:
        load_env_if_present(force_reload=reload)
        validate_mandatory_env_vars()
        try:
            _settings = Settings.from_env()
        except Exception as e:
            print(f"FATAL: Failed to initialize settings: {e}", file=sys.stderr)
            sys.exit(1)
    return _settings
