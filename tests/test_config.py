"""Tests for EngineConfig: defaults, environment loading and per-chain logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from stepchain import Chain, EngineConfig, Steps
from stepchain.config import ENV_PREFIX

ENV_NAMES = [f"{ENV_PREFIX}VALIDATE_OPERATIONS", f"{ENV_PREFIX}STEP_LOG_LEVEL"]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove STEPCHAIN_* variables and drop any that a test loads from .env."""
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.validate_operations is True
        assert config.step_log_level == "DEBUG"
        assert config.log_level == logging.DEBUG

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.validate_operations = False

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            EngineConfig(trace=True)

    def test_rejects_unknown_level(self):
        with pytest.raises(ValidationError):
            EngineConfig(step_log_level="VERBOSE")


class TestFromEnv:
    def test_defaults_without_variables(self, clean_env):
        assert EngineConfig.from_env() == EngineConfig()

    def test_reads_and_coerces_variables(self, clean_env):
        clean_env.setenv(f"{ENV_PREFIX}VALIDATE_OPERATIONS", "false")
        clean_env.setenv(f"{ENV_PREFIX}STEP_LOG_LEVEL", " info ")

        config = EngineConfig.from_env()
        assert config.validate_operations is False
        assert config.step_log_level == "INFO"
        assert config.log_level == logging.INFO

    def test_invalid_variable_raises(self, clean_env):
        clean_env.setenv(f"{ENV_PREFIX}VALIDATE_OPERATIONS", "sometimes")
        with pytest.raises(ValidationError):
            EngineConfig.from_env()

    def test_loads_env_file(self, clean_env, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(f"{ENV_PREFIX}STEP_LOG_LEVEL=WARNING\n")

        config = EngineConfig.from_env(env_file)
        assert config.step_log_level == "WARNING"

    def test_environment_wins_over_env_file(self, clean_env, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(f"{ENV_PREFIX}STEP_LOG_LEVEL=WARNING\n")
        clean_env.setenv(f"{ENV_PREFIX}STEP_LOG_LEVEL", "INFO")

        assert EngineConfig.from_env(env_file).step_log_level == "INFO"

    def test_missing_env_file_ignored(self, clean_env, tmp_path: Path):
        assert EngineConfig.from_env(tmp_path / "absent.env") == EngineConfig()


class TestChainConfig:
    def test_step_log_level_applies_to_chain(self, caplog):
        class Loud(Chain):
            config = EngineConfig(step_log_level="INFO")
            steps = Steps().step(lambda ctx: False)

        with caplog.at_level(logging.INFO, logger="stepchain.engine"):
            Loud.call()

        messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
        assert any("entering fail-mode" in m for m in messages)
        assert any("finished with Failure" in m for m in messages)

    def test_sub_chains_inherit_config(self):
        config = EngineConfig(step_log_level="WARNING")

        class Outer(Chain):
            steps = Steps().wrap(lambda ctx, proceed: proceed(), [lambda ctx: True])

        Outer.config = config
        assert Outer.sub_chains[0].config is config
