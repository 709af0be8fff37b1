from __future__ import annotations

import logging
import subprocess
from typing import Protocol, Sequence

from .errors import SubprocessError

logger = logging.getLogger(__name__)


class Converter(Protocol):
    """Runs an external command and reports its exit status."""

    def run(self, args: Sequence[str]) -> int: ...


class SubprocessConverter:
    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> int:
        cmd = [str(a) for a in args]
        logger.info("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, check=False, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SubprocessError(cmd, None, f"Executable not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise SubprocessError(cmd, None, f"Timed out after {self.timeout}s") from e
        return int(result.returncode)


def run_checked(converter: Converter, args: Sequence[str]) -> None:
    """Run `args` through `converter`; a non-zero exit status raises SubprocessError."""
    cmd = [str(a) for a in args]
    ret = converter.run(cmd)
    if ret != 0:
        logger.error("Command exited with %s: %s", ret, " ".join(cmd))
        raise SubprocessError(cmd, ret)
