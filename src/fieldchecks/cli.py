"""CLI interface for fieldchecks using Typer framework."""

import importlib
import json as jsonlib
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from fieldchecks import __description__, __version__
from fieldchecks.checker import Checker
from fieldchecks.config import LogLevel, Mode, load_config
from fieldchecks.errors import CheckError, ErrorClass, error_class
from fieldchecks.walker import walk

app = typer.Typer(
    name="fieldchecks",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()
err_console = Console(stderr=True)


class TargetError(Exception):
    """The validation target could not be loaded."""


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"fieldchecks version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """fieldchecks - declarative field validation for nested Python values."""


def _setup_logging(level: LogLevel | str) -> None:
    level_name = level.value if isinstance(level, LogLevel) else str(level)
    logging.basicConfig(
        level=level_name.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_target(target: str, data_file: Path | None = None, app_dir: Path | None = None) -> Any:
    """Resolve a ``module:attribute`` target to the value to check.

    Classes are instantiated from the JSON data file (or without arguments),
    other callables are called without arguments, anything else is returned
    as is.

    Raises:
        TargetError: If the module, attribute or data cannot be loaded
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise TargetError(f"Target must look like 'module:attribute', got: {target}")

    if app_dir is not None:
        app_path = str(app_dir.resolve())
        if app_path not in sys.path:
            sys.path.insert(0, app_path)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetError(f"Cannot import module '{module_name}': {e}")

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise TargetError(f"Attribute '{attr_path}' not found in module '{module_name}'")

    data: dict[str, Any] = {}
    if data_file is not None:
        try:
            with open(data_file, encoding="utf-8") as f:
                data = jsonlib.load(f)
        except (OSError, jsonlib.JSONDecodeError) as e:
            raise TargetError(f"Cannot read data file {data_file}: {e}")
        if not isinstance(data, dict):
            raise TargetError(f"Data file {data_file} must contain a JSON object")

    if isinstance(obj, type):
        try:
            if issubclass(obj, BaseModel):
                return obj.model_validate(data)
            return obj(**data)
        except Exception as e:
            raise TargetError(f"Cannot build {obj.__name__} from data: {e}")
    if data_file is not None:
        raise TargetError(f"--data requires a class target, '{attr_path}' is not a class")
    if callable(obj):
        try:
            return obj()
        except Exception as e:
            raise TargetError(f"Cannot call {attr_path}: {e}")
    return obj


def _error_to_dict(error: BaseException) -> dict[str, Any]:
    if isinstance(error, CheckError):
        return error.to_dict()
    return {
        "kind": type(error).__name__,
        "cause": None,
        "field": None,
        "value": None,
        "severity": "error",
        "path": None,
        "message": str(error),
    }


def _status(errors: list[BaseException]) -> str:
    if any(error_class(e) == ErrorClass.ERROR for e in errors):
        return "fail"
    if errors:
        return "warn"
    return "pass"


@app.command()
def check(
    target: Annotated[
        str,
        typer.Argument(help="Value to check as 'module:attribute'")
    ],
    data: Annotated[
        Path | None,
        typer.Option("--data", "-d", help="JSON file used to build the target class")
    ] = None,
    mode: Annotated[
        Mode | None,
        typer.Option("--mode", "-m", help="Stop at the first error or collect all (default: from config)")
    ] = None,
    warnings: Annotated[
        bool | None,
        typer.Option("--warnings/--no-warnings", help="Report WARNING-class results such as deprecations")
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file path (default: search for .fieldchecks.json)")
    ] = None,
    app_dir: Annotated[
        Path,
        typer.Option("--app-dir", help="Directory added to the import path")
    ] = Path("."),
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", help="Logging level (default: from config)")
    ] = None,
) -> None:
    """Check a value and report rule violations."""
    valid_formats = ["table", "json"]
    if format not in valid_formats:
        console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: {', '.join(valid_formats)}")
        raise typer.Exit(1)

    try:
        file_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if mode is not None:
        file_config.mode = mode
    if warnings is not None:
        file_config.warnings = warnings
    _setup_logging(log_level or file_config.logging.level)

    try:
        value = load_target(target, data, app_dir)
    except TargetError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    errors = Checker(file_config.to_checker_config()).check(value)
    status = _status(errors)
    failed = status == "fail" or (status == "warn" and file_config.fail_on_warnings)
    exit_code = 1 if failed else 0

    if format == "json":
        console.print_json(jsonlib.dumps({
            "target": target,
            "status": status,
            "exit_code": exit_code,
            "errors": [_error_to_dict(e) for e in errors],
        }))
        raise typer.Exit(exit_code)

    if not errors:
        console.print(f"[green]✓ {escape(target)}: no issues found[/green]")
        raise typer.Exit(exit_code)

    table = Table(title=f"Issues in {escape(target)}")
    table.add_column("Severity", style="white")
    table.add_column("Field", style="cyan")
    table.add_column("Message", style="white")
    table.add_column("Location", style="dim")

    for error in errors:
        entry = _error_to_dict(error)
        color = "yellow" if entry["severity"] == "warning" else "red"
        table.add_row(
            f"[{color}]{entry['severity'].upper()}[/{color}]",
            escape(entry["field"] or ""),
            escape(entry["message"]),
            escape(entry["path"] or ""),
        )

    console.print(table)
    status_color = "red" if status == "fail" else "yellow"
    console.print(f"[{status_color}]Status: {status.upper()}[/{status_color}] ({len(errors)} issues)")
    raise typer.Exit(exit_code)


@app.command()
def nodes(
    target: Annotated[
        str,
        typer.Argument(help="Value to walk as 'module:attribute'")
    ],
    data: Annotated[
        Path | None,
        typer.Option("--data", "-d", help="JSON file used to build the target class")
    ] = None,
    app_dir: Annotated[
        Path,
        typer.Option("--app-dir", help="Directory added to the import path")
    ] = Path("."),
) -> None:
    """List the nodes visited when checking a value."""
    try:
        value = load_target(target, data, app_dir)
        visited = walk(value)
    except (TargetError, CheckError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title=f"Nodes of {escape(target)}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path", style="cyan")
    table.add_column("Shape", style="white")
    table.add_column("Directive", style="green")
    table.add_column("Parent", style="dim")

    for index, node in enumerate(visited):
        table.add_row(
            str(index),
            escape(node.path),
            node.shape.value,
            escape(node.directive or ""),
            escape(node.parent.path) if node.parent is not None else "",
        )

    console.print(table)
    console.print(f"[dim]{len(visited)} nodes[/dim]")


if __name__ == "__main__":
    app()
