"""Tests for CLI commands that do not need a browser."""

from pathlib import Path

from typer.testing import CliRunner

from site_monitor.cli import app

runner = CliRunner()


def write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"paths:\n  storage_dir: {tmp_path / 'store'}\n", encoding="utf-8")
    return config_path


def test_add_target_rule_and_status(tmp_path: Path) -> None:
    """Test registering a target and rule shows up in status."""
    config = str(write_config(tmp_path))

    result = runner.invoke(app, ["add-target", "https://example.com/?utm_source=x", "--id", "t1", "--config", config])
    assert result.exit_code == 0, result.output
    assert "https://example.com/" in result.output

    result = runner.invoke(
        app,
        ["add-rule", "t1", "--recipient", "r@example.com", "--kind", "keyword", "--keyword", "launch", "--config", config],
    )
    assert result.exit_code == 0, result.output
    assert "keyword" in result.output

    result = runner.invoke(app, ["status", "--config", config])
    assert result.exit_code == 0, result.output
    assert "Targets: 1" in result.output
    assert "Rules: 1" in result.output


def test_add_rule_unknown_target(tmp_path: Path) -> None:
    """Test rules for unknown targets are refused."""
    config = str(write_config(tmp_path))

    result = runner.invoke(app, ["add-rule", "nope", "--recipient", "r@example.com", "--config", config])

    assert result.exit_code == 1
    assert "Unknown target" in result.output


def test_add_rule_validation_error(tmp_path: Path) -> None:
    """Test invalid rules are reported instead of saved."""
    config = str(write_config(tmp_path))
    runner.invoke(app, ["add-target", "https://example.com/", "--id", "t1", "--config", config])

    result = runner.invoke(app, ["add-rule", "t1", "--recipient", "r@example.com", "--kind", "keyword", "--config", config])

    assert result.exit_code == 1
    assert "requires a keyword" in result.output
