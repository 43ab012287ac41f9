"""Command-line interface for Blockfill."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.markup import escape

from blockfill import __version__
from blockfill.config import (
    BlockfillConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from blockfill.exceptions import BlockfillError, ConfigError, MalformedRecordError
from blockfill.ui.console import Console

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root

    root = find_project_root()
    if root is None:
        console.error(
            "No Blockfill project found. Run 'blockfill init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_run_config(path: str | None) -> tuple[Path, BlockfillConfig]:
    """Load project config if there is one, defaults otherwise."""
    if path:
        root = _get_project_root(path)
    else:
        root = find_project_root() or Path.cwd()
    try:
        return root, load_config(root)
    except ConfigError as e:
        console.error(escape(str(e)))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="blockfill")
@click.option("--verbose", "-v", is_flag=True, help="Log every selection decision.")
def main(verbose: bool):
    """Blockfill - pick the most profitable transactions that fit in a block."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--capacity", "-c", default=None, type=click.IntRange(min=1), help="Block capacity.")
@click.option("--time-ms", "-t", default=None, type=click.IntRange(min=0), help="Time budget in ms.")
def init(path: str | None, capacity: int | None, time_ms: int | None):
    """Create .blockfill/config.json for a project directory."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing Blockfill for: {root}")

    _, config = _load_run_config(str(root))
    config.name = root.name
    config.root_path = str(root)

    if capacity is not None:
        config.block.capacity = capacity
    if time_ms is not None:
        config.run.time_budget_ms = time_ms

    save_config(root, config)
    console.success("Configuration saved to .blockfill/")


@main.command("select")
@click.option("--file", "-f", "file_path", default=None, help="Delimited file of id,size,fee records.")
@click.option("--time-ms", "-t", default=None, type=click.IntRange(min=0), help="Time budget in ms.")
@click.option("--capacity", "-c", default=None, type=click.IntRange(min=1), help="Block capacity.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def select_cmd(
    file_path: str | None, time_ms: int | None, capacity: int | None,
    path: str | None, as_json: bool,
):
    """Build a block template from candidate transactions.

    Reads records until the file ends or the time budget runs out, and prints
    whatever the block holds at that point. Prompts for the file and the time
    budget when they are not given.

    Examples:

        blockfill select -f transactions.csv -t 1000

        blockfill select -f mempool.csv -t 50 --capacity 1000000 --json
    """
    from blockfill.runner import select_from_file

    root, config = _load_run_config(path)

    if file_path is None:
        file_path = click.prompt("Transactions file", default=config.run.input_file)
    if time_ms is None:
        time_ms = click.prompt(
            "Time budget (ms)", default=config.run.time_budget_ms, type=click.IntRange(min=0)
        )

    config.run.time_budget_ms = time_ms
    if capacity is not None:
        config.block.capacity = capacity

    source_path = Path(file_path)
    if not source_path.is_absolute() and not source_path.exists():
        source_path = root / source_path

    try:
        result = select_from_file(source_path, config)
    except MalformedRecordError as e:
        console.error(f"Malformed input: {escape(str(e))}")
        if e.result is not None and not as_json:
            console.warning("Partial block before the malformed record:")
            console.show_result(e.result)
        sys.exit(1)
    except BlockfillError as e:
        console.error(escape(str(e)))
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        console.show_result(result)


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage Blockfill configuration."""
    root = _get_project_root(path)
    _, config = _load_run_config(str(root))

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: blockfill config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: blockfill config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            save_config(root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            console.error(escape(str(e)))
            sys.exit(1)


if __name__ == "__main__":
    main()
