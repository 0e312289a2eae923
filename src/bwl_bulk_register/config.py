"""Configuration management for bulk registration runs."""

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .roles import Role, UnknownRoleError, normalize_role

DEFAULT_SERVER = "https://www.blueworkslive.com"
AUTH_API_PATH = "/api/Auth"
AUTH_API_VERSION = "20110917"
PROVISION_API_PATH = "/scr/api/provision/user/"
PROVISION_API_VERSION = "1.0"


class Settings(BaseSettings):
    """Defaults read from the environment, a ``.env`` file or a YAML file."""

    model_config = SettingsConfigDict(
        env_prefix="BWL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: str = Field(default=DEFAULT_SERVER, description="Blueworks Live server URL")
    default_role: str = Field(default=Role.VIEWER.value, description="Role for entries without one")
    default_admin: bool = Field(default=False, description="Admin flag for entries without one")
    log_dir: Path | None = Field(default=None, description="Directory for per-run log files")

    @field_validator("log_dir")
    @classmethod
    def expand_log_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v else v

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file, falling back to env/defaults."""
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"could not read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a mapping")

        return cls(**data)


class RunConfig(BaseModel):
    """Immutable configuration of a single run."""

    username: str
    password: SecretStr
    account: str
    user_list_file: Path
    default_role: Role = Role.VIEWER
    default_admin: bool = False
    check_only: bool = False
    server: str = DEFAULT_SERVER

    model_config = ConfigDict(frozen=True)


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from environment and an optional YAML file."""
    try:
        if config_path:
            return Settings.from_yaml(config_path)
        return Settings()
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e


def build_run_config(
    settings: Settings,
    username: str,
    password: str,
    account: str,
    user_list_file: Path,
    role: str | None = None,
    admin: bool | None = None,
    check_only: bool = False,
    server: str | None = None,
) -> RunConfig:
    """Combine command line values with settings into a :class:`RunConfig`.

    Explicit arguments win over settings.

    Raises:
        ConfigError: the default role is unknown or a required value is empty
    """
    for name, value in (("user", username), ("password", password), ("account", account)):
        if not value:
            raise ConfigError(f"missing {name}")

    proposed_role = role if role is not None else settings.default_role
    try:
        default_role = normalize_role(proposed_role)
    except UnknownRoleError:
        raise ConfigError(f"role '{proposed_role}' given with option -r is unknown") from None

    return RunConfig(
        username=username,
        password=SecretStr(password),
        account=account,
        user_list_file=user_list_file,
        default_role=default_role,
        default_admin=settings.default_admin if admin is None else admin,
        check_only=check_only,
        server=(server or settings.server).rstrip("/"),
    )
