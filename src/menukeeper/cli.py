"""Command line interface for menukeeper."""

from __future__ import annotations

import contextlib
import difflib
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterator

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from menukeeper.archive import create_snapshot_archive, prune_archives
from menukeeper.config import (
    ConfigError,
    ConfigManager,
    MenuKeeperConfig,
    expand_path,
    parse_override_pairs,
    resolve_with_precedence,
)
from menukeeper.layout import (
    LayoutError,
    LayoutModel,
    LayoutStore,
    MissingLayoutError,
)
from menukeeper.logs import configure_logging, detach_logging
from menukeeper.naming import NameNormalizer
from menukeeper.organization import (
    ActionPlan,
    DeleteDuplicateAction,
    DeleteEmptyFolderAction,
    ExecutionReport,
    MoveAction,
    PlanExecutor,
    QuarantineAction,
    Reconciler,
    RecreateAction,
)
from menukeeper.scanning import ShortcutScanner, default_backend

console = Console()
LOGGER = logging.getLogger(__name__)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """
    LOGGER.error("%s", message)
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: One of `detail`, `summary`, `warning` or `error`.
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _load_settings(ctx: click.Context) -> MenuKeeperConfig:
    overrides = parse_override_pairs((ctx.obj or {}).get("overrides", ()))
    return ConfigManager().load(cli_overrides=overrides or None)


def _output_modes(
    ctx: click.Context,
    settings: MenuKeeperConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else settings.cli.quiet_default
    summary_only = summary_mode if explicit_summary else settings.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _resolve_root(root: str | None, settings: MenuKeeperConfig) -> Path:
    value = root or settings.paths.root
    if not value:
        raise click.ClickException(
            "No shortcut root given. Pass ROOT or set paths.root in the configuration."
        )
    path = expand_path(value)
    if not path.is_dir():
        raise click.ClickException(f"Shortcut root does not exist: {path}")
    return path.resolve()


def _layout_store(layout: str | None, settings: MenuKeeperConfig) -> LayoutStore:
    return LayoutStore(expand_path(layout or settings.paths.layout_file))


def _scanner(settings: MenuKeeperConfig) -> ShortcutScanner:
    return ShortcutScanner(
        default_backend(settings.scanning.backend),
        suffix=settings.scanning.item_suffix,
        workers=settings.scanning.workers,
        ignored_files=settings.organization.ignored_files,
    )


@contextlib.contextmanager
def _action_log(settings: MenuKeeperConfig) -> Iterator[Path]:
    log_path = expand_path(settings.paths.log_file)
    handler = configure_logging(settings.logging, log_path)
    try:
        yield log_path
    finally:
        detach_logging(handler)


def _layout_tree(layout: LayoutModel, title: str) -> Tree:
    tree = Tree(f"[bold]{title}[/bold]")
    for folder, items in layout.folders.items():
        branch = tree.add(f"[cyan]{folder}[/cyan] ({len(items)})")
        for name, metadata in items.items():
            target = f" [dim]→ {metadata.target_path}[/dim]" if metadata.target_path else ""
            branch.add(f"{name}{target}")
    return tree


def _plan_table(plan: ActionPlan, root: Path) -> Table:
    table = Table(title=f"Planned changes for {root}")
    table.add_column("Action")
    table.add_column("Shortcut", overflow="fold")
    table.add_column("From", overflow="fold")
    table.add_column("To", overflow="fold")
    for action in plan.actions():
        if isinstance(action, MoveAction):
            table.add_row("move", action.name, action.source_folder, action.target_folder)
        elif isinstance(action, RecreateAction):
            table.add_row(
                "recreate", action.name, action.metadata.target_path or "-", action.folder
            )
        elif isinstance(action, QuarantineAction):
            destination = action.target_folder
            if action.rename_to:
                destination = f"{destination} (as {action.rename_to})"
            table.add_row("quarantine", action.name, action.source_folder, destination)
        elif isinstance(action, DeleteDuplicateAction):
            table.add_row("delete duplicate", action.name, action.folder, "-")
        elif isinstance(action, DeleteEmptyFolderAction):
            table.add_row("delete folder", "-", action.folder, "-")
    return table


def _report_payload(report: ExecutionReport) -> dict[str, Any]:
    return {
        "success_count": report.success_count,
        "error_count": report.error_count,
        "results": [result.model_dump(mode="json") for result in report.results],
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="menukeeper")
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a setting for this run (for example organization.quarantine_folder=Misc).",
)
@click.pass_context
def cli(ctx: click.Context, overrides: tuple[str, ...]) -> None:
    """menukeeper keeps a Start Menu tree organized according to a saved layout."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = overrides


@cli.command()
@click.option("--layout", type=click.Path(dir_okay=False, path_type=str), help="Layout file.")
@click.option("--json", "json_output", is_flag=True, help="Emit the layout as JSON.")
@click.pass_context
def display(ctx: click.Context, layout: str | None, json_output: bool) -> None:
    """Show the saved layout."""
    try:
        settings = _load_settings(ctx)
        store = _layout_store(layout, settings)
        with _action_log(settings):
            model = store.load()
            LOGGER.info(
                "Displayed layout %s (%d folders, %d shortcuts).",
                store.path,
                len(model.folders),
                model.item_count(),
            )
        if json_output:
            console.print_json(store.render(model))
            return
        console.print(_layout_tree(model, str(store.path)))
        console.print(
            _format_summary_line(
                "Display",
                store.path,
                {"folders": len(model.folders), "shortcuts": model.item_count()},
            )
        )
    except MissingLayoutError as exc:
        _handle_cli_error(
            f"{exc}. Run `menukeeper save` first.",
            code="layout_missing",
            json_output=json_output,
            original=exc,
        )
    except LayoutError as exc:
        _handle_cli_error(str(exc), code="layout_error", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)


@cli.command()
@click.argument("root", required=False, type=click.Path(file_okay=False, path_type=str))
@click.option("--layout", type=click.Path(dir_okay=False, path_type=str), help="Layout file.")
@click.option("--no-archive", is_flag=True, help="Skip the compressed snapshot of the tree.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the save.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def save(
    ctx: click.Context,
    root: str | None,
    layout: str | None,
    no_archive: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Record the current tree under ROOT as the saved layout."""
    try:
        settings = _load_settings(ctx)
        quiet_enabled, summary_only = _output_modes(
            ctx, settings, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root_path = _resolve_root(root, settings)
        store = _layout_store(layout, settings)

        with _action_log(settings) as log_path:
            LOGGER.info("Saving layout of %s to %s", root_path, store.path)
            model = _scanner(settings).scan_layout(root_path)
            rendered = store.render(model)
            previous = store.save(model)
            diff = LayoutStore.diff(previous, rendered) if previous is not None else []

            archive_path: Path | None = None
            if settings.archive.enabled and not no_archive:
                archive_dir = expand_path(settings.paths.archive_dir)
                archive_path = create_snapshot_archive(
                    root_path, archive_dir, archive_format=settings.archive.format
                )
                prune_archives(root_path, archive_dir, settings.archive.keep)
            LOGGER.info(
                "Saved %d shortcuts in %d folders.", model.item_count(), len(model.folders)
            )

        if json_output:
            console.print_json(
                data={
                    "root": root_path.as_posix(),
                    "layout_path": store.path.as_posix(),
                    "folders": len(model.folders),
                    "shortcuts": model.item_count(),
                    "changed": previous != rendered,
                    "diff": diff,
                    "archive": archive_path.as_posix() if archive_path else None,
                    "log_path": log_path.as_posix(),
                }
            )
            return

        if previous is None:
            _emit_message(
                "[cyan]No previous layout; created a new one.[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        elif diff:
            _emit_message(
                Syntax("\n".join(diff), "diff", word_wrap=False),
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        else:
            _emit_message(
                "[yellow]Layout unchanged since the last save.[/yellow]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if archive_path is not None:
            _emit_message(
                f"[cyan]Snapshot archive written to {archive_path}.[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Save",
                root_path,
                {"folders": len(model.folders), "shortcuts": model.item_count()},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except OSError as exc:
        _handle_cli_error(
            f"Unable to save layout: {exc}",
            code="filesystem_error",
            json_output=json_output,
            original=exc,
        )


@cli.command()
@click.argument("root", required=False, type=click.Path(file_okay=False, path_type=str))
@click.option("--layout", type=click.Path(dir_okay=False, path_type=str), help="Layout file.")
@click.option(
    "-y",
    "--yes",
    "--unattended",
    "unattended",
    is_flag=True,
    help="Apply changes without asking for confirmation.",
)
@click.option("--dry-run", is_flag=True, help="Preview changes without modifying files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the plan.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def enforce(
    ctx: click.Context,
    root: str | None,
    layout: str | None,
    unattended: bool,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rearrange the tree under ROOT to match the saved layout."""
    report: ExecutionReport | None = None
    try:
        settings = _load_settings(ctx)
        quiet_enabled, summary_only = _output_modes(
            ctx, settings, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        if json_output and not (dry_run or unattended):
            raise click.ClickException("--json requires --dry-run or --yes.")
        root_path = _resolve_root(root, settings)
        store = _layout_store(layout, settings)

        with _action_log(settings) as log_path:
            model = store.load()
            LOGGER.info("Enforcing layout %s on %s", store.path, root_path)
            scanner = _scanner(settings)
            snapshot = scanner.scan_actual(root_path)
            reconciler = Reconciler(
                NameNormalizer(settings.normalization.qualifiers, settings.scanning.item_suffix),
                quarantine_folder=settings.organization.quarantine_folder,
                protected_folders=settings.organization.protected_folders,
            )
            plan = reconciler.reconcile(model, snapshot.items, snapshot.folders)
            LOGGER.info(
                "Planned %d action(s): %s",
                plan.total,
                ", ".join(f"{key}={value}" for key, value in plan.counts().items()),
            )

            payload: dict[str, Any] = {
                "context": {
                    "root": root_path.as_posix(),
                    "layout_path": store.path.as_posix(),
                    "dry_run": dry_run,
                    "log_path": log_path.as_posix(),
                },
                "counts": plan.counts(),
                "plan": plan.model_dump(mode="json"),
                "skipped": list(snapshot.skipped),
            }

            if not json_output:
                if plan.is_empty:
                    _emit_message(
                        "[green]Tree already matches the saved layout.[/green]",
                        mode="detail",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
                else:
                    _emit_message(
                        _plan_table(plan, root_path),
                        mode="detail",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
                for note in plan.notes:
                    _emit_message(
                        f"[yellow]  - {note}[/yellow]",
                        mode="warning",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
                if snapshot.skipped:
                    _emit_message(
                        f"[yellow]{len(snapshot.skipped)} unreadable shortcut(s) skipped.[/yellow]",
                        mode="warning",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )

            if dry_run or plan.is_empty:
                if dry_run:
                    LOGGER.info("Dry run; no changes applied.")
                if json_output:
                    console.print_json(data=payload)
                    return
                metrics: dict[str, Any] = dict(plan.counts())
                if dry_run:
                    metrics["dry_run"] = True
                _emit_message(
                    _format_summary_line("Enforce", root_path, metrics),
                    mode="summary",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                return

            if not unattended and not click.confirm(
                f"Apply {plan.total} change(s)?", default=False
            ):
                LOGGER.info("Enforcement cancelled by operator.")
                _emit_message(
                    "[yellow]Cancelled; no changes applied.[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                return

            executor = PlanExecutor(
                root_path,
                scanner.backend,
                ignored_files=settings.organization.ignored_files,
            )
            report = executor.execute(plan)

        if json_output:
            payload["execution"] = _report_payload(report)
            console.print_json(data=payload)
        else:
            failures = report.failures()
            if failures:
                _emit_message(
                    "[red]Errors encountered:[/red]",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                for result in failures:
                    _emit_message(
                        f"  - {PlanExecutor.describe(result.action)}: {result.error}",
                        mode="error",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
            _emit_message(
                _format_summary_line(
                    "Enforce",
                    root_path,
                    {"succeeded": report.success_count, "errors": report.error_count},
                ),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    except MissingLayoutError as exc:
        _handle_cli_error(
            f"{exc}. Run `menukeeper save` first.",
            code="layout_missing",
            json_output=json_output,
            original=exc,
        )
    except LayoutError as exc:
        _handle_cli_error(str(exc), code="layout_error", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except OSError as exc:
        _handle_cli_error(
            f"Unable to scan shortcut tree: {exc}",
            code="filesystem_error",
            json_output=json_output,
            original=exc,
        )

    if report is not None and report.error_count:
        ctx.exit(1)


@cli.group()
def config() -> None:
    """Inspect and update menukeeper settings."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective settings after applying precedence rules."""
    try:
        settings = ConfigManager().load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(settings.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a setting expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'organization.quarantine_folder'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        original = deepcopy(file_data)
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=MenuKeeperConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if file_data == original:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


__all__ = ["cli", "main"]
