"""Locations of the external conversion tools.

Values come from environment variables so that batch jobs can point at a
specific Java runtime or juicer_tools jar without code changes:

- HICTABLE_JAVA: Java executable (default: java)
- HICTABLE_JUICER_TOOLS: path to juicer_tools.jar (no default)
- HICTABLE_HICCONVERTFORMAT: hicConvertFormat executable (default: hicConvertFormat)
- HICTABLE_TOOL_TIMEOUT: timeout in seconds for each tool run (default: none)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ValidationError


@dataclass(frozen=True)
class ToolSettings:
    java: str = "java"
    juicer_tools: str | None = None
    hic_convert_format: str = "hicConvertFormat"
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if not self.java:
            raise ValidationError("HICTABLE_JAVA must not be empty")
        if not self.hic_convert_format:
            raise ValidationError("HICTABLE_HICCONVERTFORMAT must not be empty")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValidationError(
                f"HICTABLE_TOOL_TIMEOUT must be positive; got {self.timeout_seconds}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ToolSettings":
        env = os.environ if environ is None else environ

        timeout = env.get("HICTABLE_TOOL_TIMEOUT")
        if timeout:
            try:
                timeout_s: float | None = float(timeout)
            except ValueError:
                raise ValidationError(
                    f"HICTABLE_TOOL_TIMEOUT must be a number of seconds; got {timeout!r}"
                ) from None
        else:
            timeout_s = None

        return cls(
            java=env.get("HICTABLE_JAVA", "java"),
            juicer_tools=env.get("HICTABLE_JUICER_TOOLS") or None,
            hic_convert_format=env.get("HICTABLE_HICCONVERTFORMAT", "hicConvertFormat"),
            timeout_seconds=timeout_s,
        )


def get_settings() -> ToolSettings:
    return ToolSettings.from_env()
