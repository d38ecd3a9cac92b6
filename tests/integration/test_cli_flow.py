import pytest
from typer.testing import CliRunner
from unittest.mock import MagicMock

# Import the app instance from main
from memocache.main import app

# runner: CliRunner is defined in tests/conftest.py


@pytest.fixture(autouse=True)
def quiet_cli(mocker, monkeypatch, tmp_path):
    """Keeps the CLI away from real logging handlers and any .env in the checkout."""
    monkeypatch.chdir(tmp_path)
    return mocker.patch("memocache.main.setup_logging")


def test_simulate_command_flow(runner: CliRunner):
    """Runs a small workload end to end with the real store and console."""
    result = runner.invoke(app, [
        "simulate",
        "--keys", "3",
        "--reads", "5",
        "--latency-ms", "0",
        "--seed", "1",
        "--show-entries",
    ])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert "Cache Stats" in result.stdout
    assert "5 reads over 3 keys" in result.stdout
    assert "Cache Entries" in result.stdout
    assert "events:id:0" in result.stdout


def test_simulate_with_invalidation(runner: CliRunner):
    result = runner.invoke(app, [
        "simulate", "--keys", "5", "--reads", "0", "--latency-ms", "0", "--invalidate", "clients",
    ])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    # keys 0..4 spread over five namespaces, one of them in 'clients'
    assert "4 / 100" in result.stdout


def test_simulate_unknown_namespace_exits_with_error(runner: CliRunner):
    result = runner.invoke(app, ["simulate", "--latency-ms", "0", "--invalidate", "orders"])

    assert result.exit_code == 1
    assert "Unknown namespace 'orders'" in result.stdout


def test_simulate_rejects_out_of_range_option(runner: CliRunner):
    result = runner.invoke(app, ["simulate", "--failure-rate", "2"])
    assert result.exit_code != 0


def test_show_config_uses_environment(runner: CliRunner, monkeypatch):
    monkeypatch.setenv("MEMOCACHE_CACHE_MAX_SIZE", "42")
    monkeypatch.setenv("MEMOCACHE_CACHE_COALESCE_LOADS", "true")

    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert "Cache Configuration" in result.stdout
    assert "42" in result.stdout


def test_invalid_configuration_fails_initialization(runner: CliRunner, monkeypatch):
    monkeypatch.setenv("MEMOCACHE_CACHE_MAX_SIZE", "0")

    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 1
    assert "Application Initialization Failed" in result.stdout


def test_logging_is_configured_from_settings(runner: CliRunner, quiet_cli: MagicMock, monkeypatch):
    monkeypatch.setenv("MEMOCACHE_LOGGING_LEVEL", "debug")

    runner.invoke(app, ["show-config"])

    quiet_cli.assert_called_once()
    assert quiet_cli.call_args.kwargs["log_level"] == "DEBUG"
