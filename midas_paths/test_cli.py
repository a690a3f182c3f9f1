"""Tests for the ``midas tools`` commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from midas_paths import cli as cli_module
from midas_paths.testing.fake_ledger import FakeLedger
from midas_paths.tools.registry import ToolContext, build_registry


@pytest.fixture
def registry():
    return build_registry(ToolContext.from_ledger(FakeLedger(), chain_id=34443))


@pytest.fixture
def runner(monkeypatch, registry):
    monkeypatch.setattr(cli_module, "_registry", lambda: registry)
    monkeypatch.setattr(cli_module, "_configure_logging", lambda _level: None)
    monkeypatch.setattr(cli_module, "load_config", lambda *_a, **_kw: None)
    return CliRunner()


def test_list(runner, registry):
    result = runner.invoke(cli_module.cli, ["tools", "list"])

    assert result.exit_code == 0, result.output
    listed = json.loads(result.stdout)
    assert [t["name"] for t in listed] == registry.names()
    assert all(t["description"] for t in listed)


def test_describe(runner):
    result = runner.invoke(cli_module.cli, ["tools", "describe", "ironclad_loop_deposit"])

    assert result.exit_code == 0, result.output
    described = json.loads(result.stdout)
    assert described["name"] == "ironclad_loop_deposit"
    assert "num_loops" in described["parameters"]["properties"]


def test_describe_unknown(runner):
    result = runner.invoke(cli_module.cli, ["tools", "describe", "nope"])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "unknown_tool"


def test_run(runner, registry):
    result = runner.invoke(cli_module.cli, ["tools", "run", "kim_get_swap_router_address"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ok"] is True
    assert payload["result"].startswith("0x")


def test_run_reports_validation_errors(runner):
    result = runner.invoke(
        cli_module.cli,
        ["tools", "run", "ironclad_loop_deposit", "--params", '{"asset": "0x12"}'],
    )

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "validation_error"


@pytest.mark.parametrize("params", ["{not json", "[1, 2]"])
def test_run_rejects_bad_params(runner, params):
    result = runner.invoke(
        cli_module.cli, ["tools", "run", "kim_get_swap_router_address", "--params", params]
    )

    assert result.exit_code == 2
    assert "--params" in result.output


def test_missing_config_file(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_module, "_configure_logging", lambda _level: None)
    missing = tmp_path / "absent.json"

    result = CliRunner().invoke(
        cli_module.cli, ["tools", "list", "--config", str(missing)]
    )

    assert result.exit_code == 1
    assert "Config file not found" in result.output
