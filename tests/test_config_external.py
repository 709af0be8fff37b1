import sys

import pytest

from hictable.config import ToolSettings
from hictable.errors import SubprocessError, ValidationError
from hictable.external import SubprocessConverter, run_checked


def test_settings_defaults():
    s = ToolSettings.from_env({})
    assert s.java == "java"
    assert s.juicer_tools is None
    assert s.hic_convert_format == "hicConvertFormat"
    assert s.timeout_seconds is None


def test_settings_from_env():
    s = ToolSettings.from_env(
        {
            "HICTABLE_JAVA": "/opt/java",
            "HICTABLE_JUICER_TOOLS": "/opt/jt.jar",
            "HICTABLE_HICCONVERTFORMAT": "/opt/hicConvertFormat",
            "HICTABLE_TOOL_TIMEOUT": "90",
        }
    )
    assert s == ToolSettings("/opt/java", "/opt/jt.jar", "/opt/hicConvertFormat", 90.0)


@pytest.mark.parametrize("env", [{"HICTABLE_TOOL_TIMEOUT": "soon"}, {"HICTABLE_TOOL_TIMEOUT": "-1"}, {"HICTABLE_JAVA": ""}])
def test_settings_invalid(env):
    with pytest.raises(ValidationError):
        ToolSettings.from_env(env)


def test_subprocess_converter_returns_exit_status():
    conv = SubprocessConverter()
    assert conv.run([sys.executable, "-c", "import sys; sys.exit(3)"]) == 3
    assert conv.run([sys.executable, "-c", "pass"]) == 0


def test_subprocess_converter_missing_executable():
    with pytest.raises(SubprocessError, match="not found"):
        SubprocessConverter().run(["hictable-no-such-tool-xyz"])


def test_run_checked_raises_with_command_and_code():
    class Failing:
        def run(self, args):
            return 2

    with pytest.raises(SubprocessError) as exc:
        run_checked(Failing(), ["tool", "--flag"])
    assert exc.value.cmd == ["tool", "--flag"]
    assert exc.value.returncode == 2
    assert "tool --flag" in str(exc.value)
