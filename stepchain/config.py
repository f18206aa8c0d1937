"""Engine configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "STEPCHAIN_"


class EngineConfig(BaseModel):
    """Settings shared by a chain class and the sub-chains compiled from it.

    Attributes:
        validate_operations: Check that every named operation referenced by
            a declaration exists when the chain class is defined (default: True).
        step_log_level: Level used for per-step engine logging (default: "DEBUG").
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    validate_operations: bool = Field(
        default=True,
        description="Resolve named operations at class definition time",
    )
    step_log_level: Literal["DEBUG", "INFO", "WARNING"] = Field(
        default="DEBUG",
        description="Logging level for dispatch and mode transitions",
    )

    @property
    def log_level(self) -> int:
        return getattr(logging, self.step_log_level)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "EngineConfig":
        """Build a config from ``STEPCHAIN_*`` environment variables.

        When *env_file* is given and exists it is loaded first with
        python-dotenv; variables already set in the environment win.
        """
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)

        raw = {}
        for name in cls.model_fields:
            value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                raw[name] = value.strip()
        if "step_log_level" in raw:
            raw["step_log_level"] = raw["step_log_level"].upper()
        return cls.model_validate(raw)
