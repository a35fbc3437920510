"""Runtime settings for the TagCheck service."""

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, field_validator


ENV_PREFIX = "TAGCHECK_"


class Settings(BaseModel):
    session_timeout_minutes: int = 30
    data_dir: Optional[str] = None  # directory with deprecated.json, nsi_*.json
    rule_ids: Optional[List[str]] = None  # None = all rules
    log_level: str = "INFO"
    log_json: bool = False
    allowed_origins: List[str] = ["*"]

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from TAGCHECK_* environment variables."""
    environ = os.environ if environ is None else environ
    values = {}

    if environ.get(ENV_PREFIX + "SESSION_TIMEOUT_MINUTES"):
        values["session_timeout_minutes"] = environ[ENV_PREFIX + "SESSION_TIMEOUT_MINUTES"]
    if environ.get(ENV_PREFIX + "DATA_DIR"):
        values["data_dir"] = environ[ENV_PREFIX + "DATA_DIR"]
    if environ.get(ENV_PREFIX + "RULE_IDS"):
        values["rule_ids"] = _split(environ[ENV_PREFIX + "RULE_IDS"])
    if environ.get(ENV_PREFIX + "LOG_LEVEL"):
        values["log_level"] = environ[ENV_PREFIX + "LOG_LEVEL"]
    if environ.get(ENV_PREFIX + "LOG_JSON"):
        values["log_json"] = environ[ENV_PREFIX + "LOG_JSON"].lower() in ("1", "true", "yes")
    if environ.get(ENV_PREFIX + "ALLOWED_ORIGINS"):
        values["allowed_origins"] = _split(environ[ENV_PREFIX + "ALLOWED_ORIGINS"])

    return Settings(**values)
