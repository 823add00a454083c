from pathlib import Path

import yaml
from typer.testing import CliRunner

from tools.ptpctl.cli import __version__, app


runner = CliRunner()

PROJECT_ROOT = Path(__file__).parent.parent
EXAMPLE = PROJECT_ROOT / "examples" / "gnss_single_card.yaml"
PLUGINS_DIR = PROJECT_ROOT / "plugins"


def test_version():
    for flag in ("--version", "-v"):
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert result.output.strip() == f"ptp-config-parser v{__version__}"


def test_no_arguments_prints_usage():
    result = runner.invoke(app, [])
    assert result.exit_code == 1
    assert "PTP Hardware Configuration Parser" in result.output
    assert "Usage" in result.output


def test_parse_example():
    result = runner.invoke(app, [str(EXAMPLE), "--plugins-dir", str(PLUGINS_DIR)])
    assert result.exit_code == 0, result.output
    assert "Loaded 1 hardware plugins: ['e810']" in result.output
    assert "MERGED CONFIGURATION (User Config + Plugin Defaults)" in result.output
    assert f"Successfully parsed and validated: {EXAMPLE}" in result.output
    assert "  1. Subsystem Leader (Plugin: e810, Clock ID: 0x112233, Ethernet Ports: 1)" in result.output


def test_no_show_merged():
    result = runner.invoke(app, [str(EXAMPLE), "--plugins-dir", str(PLUGINS_DIR), "--no-show-merged"])
    assert result.exit_code == 0, result.output
    assert "MERGED CONFIGURATION" not in result.output
    assert "Successfully parsed and validated" in result.output


def test_plugins_dir_from_environment():
    result = runner.invoke(app, [str(EXAMPLE)], env={"PTP_PLUGINS_DIR": str(PLUGINS_DIR)})
    assert result.exit_code == 0, result.output
    assert "['e810']" in result.output


def test_output_file(tmp_path: Path):
    out_file = tmp_path / "merged.yaml"
    result = runner.invoke(
        app, [str(EXAMPLE), "--plugins-dir", str(PLUGINS_DIR), "--no-show-merged", "--output", str(out_file)]
    )
    assert result.exit_code == 0, result.output
    with open(out_file) as f:
        merged = yaml.safe_load(f)
    default_states = merged["behavior"]["conditions"][0]["desiredStates"]
    assert [ds["boardLabel"] for ds in default_states] == ["SMA1", "GNSS_1PPS", "SMA2/U.FL2"]


def test_invalid_document_exits_1(tmp_path: Path):
    config_file = tmp_path / "chain.yaml"
    config_file.write_text("structure: []\n")
    result = runner.invoke(app, [str(config_file), "--plugins-dir", str(tmp_path / "plugins")])
    assert result.exit_code == 1
    assert "structure must contain at least one subsystem" in result.output


def test_missing_file_exits_1(tmp_path: Path):
    result = runner.invoke(app, [str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1
    assert "configuration file not found" in result.output


def test_broken_plugins_warn_and_continue(tmp_path: Path):
    plugins_dir = tmp_path / "plugins"
    plugins_dir.mkdir()
    (plugins_dir / "bad.yaml").write_text("pluginInfo: [\n")
    result = runner.invoke(app, [str(EXAMPLE), "--plugins-dir", str(plugins_dir)])
    assert result.exit_code == 0, result.output
    assert "Warning: Failed to load plugins" in result.output
    assert "Continuing without plugin defaults..." in result.output
    assert "Successfully parsed and validated" in result.output


def test_list_plugins():
    result = runner.invoke(app, ["--list-plugins", "--plugins-dir", str(PLUGINS_DIR)])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("e810 | Intel | 1.0")
    assert str(PLUGINS_DIR / "e810.yaml") in result.output


def test_list_plugins_empty(tmp_path: Path):
    result = runner.invoke(app, ["--list-plugins", "--plugins-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "No hardware plugins found" in result.output


def test_bad_log_level():
    result = runner.invoke(app, [str(EXAMPLE), "--log-level", "CHATTY"])
    assert result.exit_code == 1
    assert "Unknown log level: CHATTY" in result.output
