"""Tests for config.py."""

import dataclasses

import pytest

from method_insight.src.method_insight.config import (
    DEFAULT_ANNOTATION_RULES,
    MAX_DEPTH_ENV,
    ConfigError,
    ReportConfig,
)


class TestReportConfig:
    def test_defaults(self):
        config = ReportConfig()
        assert config.max_depth == 5
        assert config.annotation_rules == DEFAULT_ANNOTATION_RULES
        assert config.default_language_tag == "text"

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ReportConfig().max_depth = 3

    def test_with_max_depth_returns_copy(self):
        base = ReportConfig()
        changed = base.with_max_depth(2)
        assert changed.max_depth == 2
        assert base.max_depth == 5

    def test_negative_depth_rejected(self):
        with pytest.raises(ConfigError):
            ReportConfig(max_depth=-1)

    def test_default_rules_are_ranked(self):
        frameworks = [r.framework for r in DEFAULT_ANNOTATION_RULES if r.framework]
        assert frameworks == ["TestNG", "JUnit 5", "JUnit 5", "JUnit 4"]


class TestFromEnv:
    def test_unset(self):
        assert ReportConfig.from_env({}).max_depth == 5

    def test_blank(self):
        assert ReportConfig.from_env({MAX_DEPTH_ENV: "  "}).max_depth == 5

    def test_override(self):
        assert ReportConfig.from_env({MAX_DEPTH_ENV: "3"}).max_depth == 3

    @pytest.mark.parametrize("value", ["deep", "1.5", "-2"])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            ReportConfig.from_env({MAX_DEPTH_ENV: value})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv(MAX_DEPTH_ENV, "7")
        assert ReportConfig.from_env().max_depth == 7
