"""
Command-line interface for dotnet-check-updates.

This module provides the main CLI entry point: option parsing, merging of
the configuration file, validation, logging setup, and dispatch to the
check or interactive flow.
"""

from __future__ import annotations

import sys
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import click
from click.core import ParameterSource

from dotnet_check_updates.__version__ import __version__
from dotnet_check_updates.config import CheckUpdatesConfig, load_config
from dotnet_check_updates.constants import CLI_NAME, DEFAULT_CONCURRENCY, DEFAULT_DEPTH, DEFAULT_TARGET
from dotnet_check_updates.context import CheckUpdatesContext
from dotnet_check_updates.exceptions import (
    CheckUpdatesError,
    InvalidUpgradeTargetError,
    PromptCanceledError,
)
from dotnet_check_updates.models.upgrade import UpgradeTarget, valid_target_names
from dotnet_check_updates.utils.logger import get_logger, level_from_environment, setup_logging
from dotnet_check_updates.utils.console import (
    get_raw_console,
    print_error,
    print_markup,
    print_warning,
    reconfigure_console,
)

logger = get_logger("cli")

#: Config file key -> click parameter name, for options both can set.
_CONFIG_OPTIONS: Dict[str, str] = {
    "target": "target",
    "concurrency": "concurrency",
    "depth": "depth",
    "recurse": "recurse",
    "ascii_tree": "ascii_tree",
    "show_absolute": "show_absolute",
    "include": "include",
    "exclude": "exclude",
    "sources": "nuget_source",
    "use_nuget_config": "use_nuget_config",
}


def _print_version(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    print_markup(f"Version: [cyan]{__version__}[/]")
    ctx.exit(0)


@click.command(name=CLI_NAME, context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--cwd", help="Working directory projects are searched in.")
@click.option("--project", "-p", help="Check a single project file.")
@click.option("--solution", "-s", help="Check the projects of a solution.")
@click.option("--recurse", "-r", is_flag=True, help="Search sub-directories for projects.")
@click.option(
    "--depth",
    "-d",
    type=int,
    default=DEFAULT_DEPTH,
    show_default=True,
    help="Sub-directory depth searched with --recurse (0 for unlimited).",
)
@click.option(
    "--include",
    "-I",
    "-f",
    "--filter",
    "--inc",
    "include",
    multiple=True,
    help=(
        "Only packages matching every filter (glob or substring, repeatable). "
        "Comma or space separated values are split into filters that must all match."
    ),
)
@click.option(
    "--exclude",
    "-x",
    "-E",
    "--reject",
    "--exc",
    "exclude",
    multiple=True,
    help="Skip packages matching any filter (glob or substring, repeatable).",
)
@click.option(
    "--target",
    "-t",
    default=DEFAULT_TARGET,
    show_default=True,
    help=f"Upgrade target: {', '.join(valid_target_names())}.",
)
@click.option("--upgrade", "-u", is_flag=True, help="Write upgraded versions to the project files.")
@click.option("--restore", is_flag=True, help="Run dotnet restore after upgrading.")
@click.option("--list", "-l", "list_all", is_flag=True, help="Also list packages without upgrades.")
@click.option("--interactive", "-i", is_flag=True, help="Choose upgrades interactively (implies --upgrade).")
@click.option(
    "--concurrency",
    type=int,
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    help="Package lookups running at once per project.",
)
@click.option("--show-absolute", is_flag=True, help="Show absolute paths.")
@click.option("--show-package-count", is_flag=True, help="Show package counts in solution trees.")
@click.option("--ascii-tree", is_flag=True, help="Draw trees with ASCII characters.")
@click.option(
    "--nuget-source",
    multiple=True,
    metavar="URL",
    help="NuGet v3 service index to query (repeatable).",
)
@click.option(
    "--use-nuget-config/--no-nuget-config",
    default=True,
    help="Read package sources from nuget.config files.",
)
@click.option("--no-progress", is_flag=True, help="Hide the progress bar.")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="DCU_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=None,
    help="Enable or disable colored output.",
    envvar="DCU_COLOR",
)
@click.option("--show-stack-trace", is_flag=True, help="Show stack traces of errors.")
@click.option(
    "--version",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_print_version,
    help="Show the version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, **options: Any) -> None:
    """Check NuGet package references of .NET projects for upgrades.

    \b
    Examples:
      dotnet-check-updates
      dotnet-check-updates -r -d 2 -t minor
      dotnet-check-updates -s App.sln -u --restore
      dotnet-check-updates -x "Microsoft.*" -i
    """
    _configure_logging(options["verbose"])
    reconfigure_console(options["color"])

    config = load_config(options["config"], cwd=Path(options["cwd"]) if options["cwd"] else None)
    _apply_config(ctx, options, config)

    try:
        target = UpgradeTarget.parse(options["target"])
    except InvalidUpgradeTargetError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param_hint="'--target'") from exc

    settings = CheckUpdatesContext(
        cwd=options["cwd"],
        project=options["project"],
        solution=options["solution"],
        recurse=options["recurse"],
        depth=options["depth"],
        include=list(options["include"]),
        exclude=list(options["exclude"]),
        target=target,
        upgrade=options["upgrade"],
        restore=options["restore"],
        list_all=options["list_all"],
        interactive=options["interactive"],
        concurrency=options["concurrency"],
        show_absolute=options["show_absolute"],
        show_package_count=options["show_package_count"],
        ascii_tree=options["ascii_tree"],
        sources=list(options["nuget_source"]),
        use_nuget_config=options["use_nuget_config"],
        show_progress=not options["no_progress"],
        show_stack_trace=options["show_stack_trace"],
        verbose=options["verbose"],
        color=options["color"],
    )
    ctx.obj = settings

    errors = settings.validate()
    if errors:
        raise click.UsageError(" ".join(errors), ctx=ctx)

    logger.debug("%s v%s", CLI_NAME, __version__)
    logger.debug("Settings: %s", settings)

    # Import lazily so option parsing and --help stay fast
    from dotnet_check_updates.commands import check_updates, interactive_updates

    if settings.interactive:
        interactive_updates(settings)
    else:
        check_updates(settings)


def _apply_config(
    ctx: click.Context,
    options: Dict[str, Any],
    config: CheckUpdatesConfig,
) -> None:
    """Fill options not given on the command line from the config file.

    Precedence: defaults < config file < command line.
    """
    if config.source_path is None:
        return

    for key, name in _CONFIG_OPTIONS.items():
        source = ctx.get_parameter_source(name)
        if source not in (None, ParameterSource.DEFAULT):
            continue
        value = getattr(config, key)
        options[name] = tuple(value) if isinstance(value, list) else value

    logger.debug("Options after applying %s: %s", config.source_path, _loggable(options))


def _loggable(options: Dict[str, Any]) -> Dict[str, Any]:
    return {name: options[name] for name in _CONFIG_OPTIONS.values()}


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags and environment."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    env_level = level_from_environment()
    if env_level is not None:
        level = min(level, env_level)

    setup_logging(level=level, verbose=level <= logging.DEBUG)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


def _show_traceback(args: Sequence[str]) -> bool:
    return "--show-stack-trace" in args or logger.isEnabledFor(logging.DEBUG)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the dotnet-check-updates CLI.

    Args:
        argv: Command line arguments; defaults to ``sys.argv[1:]``.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Cancelled by the user (Ctrl+C or aborted prompt)
    """
    args: Tuple[str, ...] = tuple(sys.argv[1:] if argv is None else argv)

    try:
        result = cli.main(args=list(args), prog_name=CLI_NAME, standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except (PromptCanceledError, click.exceptions.Abort, KeyboardInterrupt):
        print_warning("Operation cancelled by user")
        return 130

    except CheckUpdatesError as exc:
        print_error(str(exc))
        logger.debug(
            "CheckUpdatesError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        if _show_traceback(args):
            get_raw_console().print_exception()
        return 1

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.debug("Unhandled exception in CLI", exc_info=True)
        if _show_traceback(args):
            get_raw_console().print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
