"""Client configuration.

Options come from an optional ``mcrep.json`` in the data directory and
from ``MCREP_*`` environment variables. Environment variables have the
highest priority.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import bittensor as bt
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from mcrep.errors import ConfigurationError

CONFIG_FILENAME = "mcrep.json"

_ENV_FIELDS = {
    "MCREP_ENDPOINT": "endpoint",
    "MCREP_PASSPHRASE": "passphrase",
    "MCREP_WAIT_SECONDS": "wait_seconds",
    "MCREP_SERVER_NAME": "server_name",
    "MCREP_DATA_DIR": "data_dir",
    "MCREP_TIMEOUT_SECONDS": "timeout_seconds",
}


class UserID(BaseModel):
    """Identity embedded in the generated OpenPGP key."""

    name: str
    email: str = ""
    comment: str = ""


class ClientConfig(BaseModel):
    """Options threaded through every flow."""

    endpoint: str = ""
    user_ids: list[UserID] = Field(default_factory=list)
    passphrase: str = ""
    wait_seconds: float = Field(default=1.0, ge=0)
    server_name: str = ""
    data_dir: str = "."
    timeout_seconds: float = Field(default=30.0, gt=0)

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def base_url(self) -> str:
        if self.endpoint.startswith(("http://", "https://")):
            return self.endpoint.rstrip("/")
        return f"https://{self.endpoint}:443"

    def require(self, operation: str, *names: str) -> None:
        """Raise ConfigurationError if any of ``names`` is unset."""
        missing = [n for n in names if not getattr(self, n)]
        if missing:
            raise ConfigurationError(
                operation, f"missing config option(s): {', '.join(missing)}"
            )


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, field in _ENV_FIELDS.items():
        value = environ.get(env_name)
        if value:
            overrides[field] = value

    user_name = environ.get("MCREP_USER__NAME")
    if user_name:
        overrides["user_ids"] = [{
            "name": user_name,
            "email": environ.get("MCREP_USER__EMAIL", ""),
        }]
    return overrides


def load_config(
    data_dir: str | None = None,
    environ: dict[str, str] | None = None,
    **cli_overrides: Any,
) -> ClientConfig:
    """Build a ClientConfig from file, environment and CLI overrides.

    Precedence, lowest first: ``mcrep.json``, CLI flags, environment.
    """
    environ = dict(os.environ) if environ is None else environ
    data_dir = environ.get("MCREP_DATA_DIR") or data_dir or "."

    settings: dict[str, Any] = {}
    config_path = Path(data_dir).expanduser() / CONFIG_FILENAME
    if config_path.exists():
        try:
            with open(config_path) as f:
                settings = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError("config", f"cannot read {config_path}: {e}") from e
        if not isinstance(settings, dict):
            raise ConfigurationError("config", f"{config_path} must hold a JSON object")

    settings.update({k: v for k, v in cli_overrides.items() if v is not None})
    settings.update(_env_overrides(environ))
    settings["data_dir"] = data_dir

    try:
        config = ClientConfig(**settings)
    except PydanticValidationError as e:
        raise ConfigurationError("config", str(e)) from e

    bt.logging.debug({
        "mcrep_config": {
            "endpoint": config.endpoint,
            "data_dir": config.data_dir,
            "wait_seconds": config.wait_seconds,
            "server_name": config.server_name,
            "passphrase_set": bool(config.passphrase),
        }
    })
    return config


__all__ = ["CONFIG_FILENAME", "ClientConfig", "UserID", "load_config"]
