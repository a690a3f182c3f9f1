from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
from loguru import logger

from midas_paths.core.config import (
    CONFIG,
    get_chain_id,
    get_private_key,
    get_wallet_address,
    load_config,
)
from midas_paths.core.constants.base import ZERO_ADDRESS
from midas_paths.core.ledger import Web3LedgerClient
from midas_paths.tools.registry import ToolContext, ToolRegistry, build_registry

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _configure_logging(log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())


def _ledger() -> Web3LedgerClient:
    chain_id = get_chain_id()
    private_key = get_private_key()
    if private_key:
        return Web3LedgerClient(chain_id=chain_id, private_key=private_key)
    logger.info("No private key configured; tools run read-only")
    return Web3LedgerClient(chain_id=chain_id, address=get_wallet_address() or ZERO_ADDRESS)


def _registry() -> ToolRegistry:
    ledger = _ledger()
    return build_registry(ToolContext.from_ledger(ledger, CONFIG, chain_id=ledger.chain_id))


def _setup(config_path: str | None, log_level: str) -> None:
    _configure_logging(log_level)
    try:
        load_config(config_path, require_exists=config_path is not None)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc


def common_options(fn):
    fn = click.option("--log-level", type=LOG_LEVELS, default="WARNING", show_default=True)(fn)
    return click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Path to config.json (defaults to MIDAS_CONFIG_PATH or the project root).",
    )(fn)


@click.group(name="midas", help="DeFi position tools for the Mode network.")
def cli() -> None:
    pass


@cli.group(name="tools", help="Inspect and run tools.")
def tools_cli() -> None:
    pass


@tools_cli.command(name="list", help="List tool names and descriptions.")
@common_options
def list_cmd(config_path: str | None, log_level: str) -> None:
    _setup(config_path, log_level)
    _echo_json(
        [
            {"name": t["name"], "description": t["description"]}
            for t in _registry().describe()
        ]
    )


@tools_cli.command(name="describe", help="Show a tool's parameter schema.")
@click.argument("name")
@common_options
def describe_cmd(name: str, config_path: str | None, log_level: str) -> None:
    _setup(config_path, log_level)
    tool = _registry().get(name)
    if tool is None:
        _echo_json({"ok": False, "error": {"code": "unknown_tool", "message": name}})
        sys.exit(1)
    _echo_json(tool.describe())


@tools_cli.command(name="run", help="Run a tool with JSON parameters.")
@click.argument("name")
@click.option("--params", "params_json", default="{}", show_default=True)
@common_options
def run_cmd(
    name: str, params_json: str, config_path: str | None, log_level: str
) -> None:
    _setup(config_path, log_level)
    try:
        params = json.loads(params_json)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"--params is not valid JSON: {exc}") from exc
    if not isinstance(params, dict):
        raise click.BadParameter("--params must be a JSON object")

    result = asyncio.run(_registry().execute(name, params))
    _echo_json(result)
    if not result.get("ok"):
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
