# --- Report configuration -----------------------------------------------------
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

MAX_DEPTH_ENV = "METHOD_INSIGHT_MAX_DEPTH"


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


@dataclass(frozen=True)
class AnnotationRule:
    """
    Maps an annotation identifier to what it tells us about a test method.
    A rule with `framework` marks a test; a rule with `display_name_attribute`
    names the attribute holding a human readable test name.
    """
    annotation: str
    framework: Optional[str] = None
    display_name_attribute: Optional[str] = None


# Ranked: the first framework rule that matches wins.
DEFAULT_ANNOTATION_RULES: tuple[AnnotationRule, ...] = (
    AnnotationRule("org.testng.annotations.Test", framework="TestNG"),
    AnnotationRule("org.junit.jupiter.params.ParameterizedTest", framework="JUnit 5"),
    AnnotationRule("org.junit.jupiter.api.Test", framework="JUnit 5"),
    AnnotationRule("org.junit.Test", framework="JUnit 4"),
    AnnotationRule("org.junit.jupiter.api.DisplayName", display_name_attribute="value"),
)


@dataclass(frozen=True)
class ReportConfig:
    """Settings for one report run. Pass it in; nothing reads globals."""
    max_depth: int = 5
    annotation_rules: tuple[AnnotationRule, ...] = DEFAULT_ANNOTATION_RULES
    # fnmatch globs, matched against "/"-separated paths
    test_source_patterns: tuple[str, ...] = ("*/src/test/*", "*/test/*", "*/tests/*")
    excluded_content_patterns: tuple[str, ...] = ("*/build/*", "*/target/*", "*/generated/*")
    default_language_tag: str = "text"
    markdown_suffix: str = "sequence-report"
    markdown_extension: str = "md"
    mermaid_suffix: str = "sequence"
    mermaid_extension: str = "mmd"
    export_extension: str = "tests.json"

    def __post_init__(self):
        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {self.max_depth}")

    def with_max_depth(self, max_depth: int) -> "ReportConfig":
        return replace(self, max_depth=max_depth)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReportConfig":
        """
        Builds the default configuration, taking the depth bound from
        METHOD_INSIGHT_MAX_DEPTH when it is set.
        """
        env = os.environ if environ is None else environ
        raw = env.get(MAX_DEPTH_ENV)
        if raw is None or not raw.strip():
            return cls()
        try:
            depth = int(raw)
        except ValueError:
            raise ConfigError(f"{MAX_DEPTH_ENV} must be an integer, got {raw!r}") from None
        return cls(max_depth=depth)
