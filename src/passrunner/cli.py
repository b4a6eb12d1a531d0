"""Command line interface for passrunner."""

from __future__ import annotations

import difflib
import logging
import threading
from typing import Any, NoReturn, Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from passrunner.config import (
    ConfigError,
    ConfigManager,
    PassRunnerConfig,
    deep_merge,
    flatten_for_env,
    resolve_with_precedence,
)
from passrunner.config.resolver import expand_dotted
from passrunner.index import IndexSnapshot
from passrunner.notify import build_notifier
from passrunner.retrieval import RetrievalReason
from passrunner.runner import PassRunner
from passrunner.watch import RebuildCallback

console = Console()
err_console = Console(stderr=True)


def _abort(
    message: str,
    *,
    code: str,
    json_output: bool,
    cause: Exception | None = None,
) -> NoReturn:
    """Report ``message`` and stop the command.

    In JSON mode the error is printed as ``{"error": {"code", "message"}}`` on
    stdout and the process exits with status 1; otherwise a
    :class:`click.ClickException` is raised.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Whether the command runs in JSON mode.
        cause: Exception to chain onto the raised error.

    Raises:
        SystemExit: In JSON mode.
        click.ClickException: Otherwise.
    """
    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from cause


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich at the configured level."""
    level = "DEBUG"
    if not verbose:
        try:
            level = ConfigManager().load(ensure_file=False).logging.level
        except ConfigError:
            level = "WARNING"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _open_runner(
    *,
    json_output: bool,
    watch: bool = False,
    notify: Optional[str] = None,
    on_rebuild: Optional[RebuildCallback] = None,
) -> PassRunner:
    """Return an initialized runner; configuration errors end the command."""
    notifier = build_notifier(notify, console=err_console) if notify else None
    runner = PassRunner(ConfigManager(), notifier=notifier, watch=watch, on_rebuild=on_rebuild)
    try:
        runner.init()
    except ConfigError as exc:
        _abort(str(exc), code="config_error", json_output=json_output, cause=exc)
    return runner


def _load_config(manager: ConfigManager, *, include_env: bool = True) -> PassRunnerConfig:
    try:
        return manager.load(include_env=include_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="passrunner")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Find entries in a pass password store and copy secrets to the clipboard."""
    _configure_logging(verbose)


@cli.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit entries as JSON.")
def list_entries(json_output: bool) -> None:
    """List every entry in the password store."""
    runner = _open_runner(json_output=json_output)
    try:
        snapshot = runner.index.snapshot()
    finally:
        runner.teardown()

    if json_output:
        console.print_json(data={"root": str(snapshot.root), "entries": list(snapshot.entries)})
        return
    if not snapshot.entries:
        console.print(f"[yellow]No entries found under {escape(str(snapshot.root))}.[/yellow]")
        return
    for entry in snapshot.entries:
        console.print(entry, highlight=False, markup=False)


@cli.command()
@click.argument("query", nargs=-1, required=True)
@click.option(
    "--single",
    "single_runner",
    is_flag=True,
    help="Query only the password store (skips the minimum length check).",
)
@click.option("--json", "json_output", is_flag=True, help="Emit matches as JSON.")
def query(query: tuple[str, ...], single_runner: bool, json_output: bool) -> None:
    """Show entries whose name contains QUERY."""
    runner = _open_runner(json_output=json_output)
    try:
        matches = runner.match(" ".join(query), single_runner_query=single_runner)
        offered = runner.actions_for_match(matches[0]) if matches else ()
    finally:
        runner.teardown()

    if json_output:
        console.print_json(
            data={
                "matches": [
                    {"entry": match.text, "relevance": match.relevance.value, "icon": match.icon}
                    for match in matches
                ],
                "actions": [action.name for action in offered],
            }
        )
        return

    if not matches:
        console.print("[yellow]No matching entries.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Entry")
    table.add_column("Relevance")
    for match in matches:
        table.add_row(Text(match.text), match.relevance.value)
    console.print(table)
    if offered:
        names = ", ".join(action.name for action in offered)
        console.print(Text(f"Actions: {names}", style="dim"))


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit actions as JSON.")
def actions(json_output: bool) -> None:
    """List the configured actions in presentation order."""
    runner = _open_runner(json_output=json_output)
    try:
        descriptors = runner.actions
    finally:
        runner.teardown()

    if json_output:
        console.print_json(
            data={
                "actions": [
                    {"name": action.name, "icon": action.icon, "pattern": action.pattern}
                    for action in descriptors
                ]
            }
        )
        return

    if not descriptors:
        console.print("[yellow]No actions are enabled.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Icon")
    table.add_column("Pattern")
    for action in descriptors:
        table.add_row(Text(action.name), Text(action.icon), Text(action.pattern))
    console.print(table)


@cli.command()
@click.argument("entry")
@click.option("--action", "action_name", type=str, help="Name of the action to apply.")
@click.option(
    "--notify",
    type=click.Choice(["console", "desktop", "none"]),
    default="console",
    show_default=True,
    help="Where to report the result.",
)
def show(entry: str, action_name: Optional[str], notify: str) -> None:
    """Copy the secret of ENTRY to the clipboard and clear it after the timeout.

    The command stays in the foreground until the clipboard has been cleared;
    Ctrl+C clears it immediately.
    """
    runner = _open_runner(json_output=False, notify=notify)
    try:
        action = None
        if action_name is not None:
            action = runner.find_action(action_name)
            if action is None:
                raise click.ClickException(f"Unknown or disabled action: {action_name}")

        outcome = runner.run(entry, action).result()
        if not outcome.succeeded:
            reason = outcome.reason.value.replace("_", " ")
            raise click.ClickException(f"Could not retrieve {entry}: {reason}.")
        if outcome.reason is RetrievalReason.COPIED:
            timeout = runner.settings.clip_timeout
            err_console.print(f"[cyan]Clearing the clipboard in {timeout} seconds.[/cyan]")
            try:
                runner.wait_for_clipboard_clear()
            except KeyboardInterrupt:
                err_console.print("[yellow]Interrupted; clearing the clipboard now.[/yellow]")
    finally:
        runner.teardown()


@cli.command()
def watch() -> None:
    """Watch the password store and report every index rebuild."""

    def _report(snapshot: IndexSnapshot) -> None:
        console.print(
            f"[green]Reindexed {escape(str(snapshot.root))}: entries={len(snapshot.entries)}, "
            f"directories={len(snapshot.directories)}.[/green]"
        )

    runner = _open_runner(json_output=False, watch=True, on_rebuild=_report)
    snapshot = runner.index.snapshot()
    console.print(
        f"[cyan]Watching {escape(str(snapshot.root))} ({len(snapshot.entries)} entries). "
        "Press Ctrl+C to stop.[/cyan]"
    )
    stop = threading.Event()
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        console.print("[yellow]Watch stopped by user request.[/yellow]")
    finally:
        runner.teardown()


@cli.group()
def config() -> None:
    """Inspect and change the passrunner configuration."""


@config.command("path")
def config_path() -> None:
    """Print the location of the configuration file."""
    console.print(str(ConfigManager().config_path), highlight=False, soft_wrap=True)


@config.command("view")
@click.option("--no-env", is_flag=True, help="Show the file and defaults only.")
@click.option("--json", "json_output", is_flag=True, help="Emit the configuration as JSON.")
def config_view(no_env: bool, json_output: bool) -> None:
    """Show the effective configuration after all overrides are applied."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
    except OSError as exc:
        raise click.ClickException(f"Cannot create {manager.config_path}: {exc}") from exc
    data = _load_config(manager, include_env=not no_env).model_dump(mode="json")

    if json_output:
        console.print_json(data=data)
        return
    console.print(Syntax(yaml.safe_dump(data, sort_keys=False), "yaml", word_wrap=True))


@config.command("env")
def config_env() -> None:
    """Print the effective configuration as PASSRUNNER__ environment assignments."""
    for name, value in flatten_for_env(_load_config(ConfigManager())).items():
        console.print(f"{name}={value}", highlight=False, markup=False, soft_wrap=True)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store VALUE (a YAML literal) under the dotted KEY, e.g. `store.command gopass`."""
    if not all(part.strip() for part in key.split(".")):
        raise click.ClickException("KEY must be a dotted path such as 'store.command'.")

    manager = ConfigManager()
    manager.ensure_exists()
    try:
        parsed: Any = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        current = manager.load_file_overrides()
        updated = deep_merge(current, expand_dotted({key: parsed}, origin="cli"))
        resolve_with_precedence(defaults=PassRunnerConfig(), file_overrides=updated)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    before = manager.read_text().splitlines()
    manager.save(updated)
    after = manager.read_text().splitlines()

    diff = difflib.unified_diff(before, after, "config.yaml", "config.yaml", lineterm="")
    changes = [line for line in diff if not line.startswith(("---", "+++", "@@"))]
    changes = [line for line in changes if "Last updated:" not in line]
    if changes:
        console.print(Syntax("\n".join(changes), "diff", word_wrap=False))
    console.print(f"[green]Updated {escape(key)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Edit the configuration file in $EDITOR and validate the result."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=PassRunnerConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print(f"[green]Saved {manager.config_path}.[/green]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
