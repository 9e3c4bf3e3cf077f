#!/usr/bin/env python3
"""
tooldeps CLI: run a project's tool dependencies from an isolated cache.

Usage:
    tooldeps <command> [ARGS]...
    tooldeps exec <command> [ARGS]...
    tooldeps which <command>
    tooldeps install <package>...
    tooldeps rm <package>...
    tooldeps ls [ARGS]...
    tooldeps status
    tooldeps cache clean
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from tabulate import tabulate

from tooldeps.core.errors import (
    DescriptorError,
    LockTimeoutError,
    MissingToolDependenciesError,
    ToolDepsError,
)
from tooldeps.infra.io.config import ConfigurationError, ToolDepsConfig
from tooldeps.infra.tools.env import load_user_env
from tooldeps.logging.console import Colors, log, log_error, set_verbose
from tooldeps.orchestration.factory import create_runner
from tooldeps.orchestration.runner import ToolDepsRunner

# Bootstrap state: tracks whether bootstrap() has been called
_bootstrapped = False


def bootstrap() -> None:
    """Initialize environment.

    Must be called before building configuration. This function is
    idempotent - calling it multiple times has no additional effect.

    Side effects:
        - Loads environment variables from ~/.config/tooldeps/.env
    """
    global _bootstrapped

    if _bootstrapped:
        return

    load_user_env()

    _bootstrapped = True


app = typer.Typer(
    name="tooldeps",
    help=(
        "Run a project's tool dependencies (linters, test runners, ...) from an "
        'isolated per-project cache. Tools are declared in the "tool-dependencies" '
        "field of the project descriptor and reinstalled only when that field changes."
    ),
    add_completion=False,
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Manage this project's tool cache.", no_args_is_help=True)

# Allow forwarding arbitrary arguments (including ones that look like options)
_PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}

# Options accepted before the subcommand / tool name
GLOBAL_FLAGS = frozenset({"--verbose", "-v"})


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug output"),
    ] = False,
) -> None:
    set_verbose(verbose)


def _get_runner() -> ToolDepsRunner:
    """Build the runner for the current directory from the environment."""
    bootstrap()
    config = ToolDepsConfig.from_env()
    return create_runner(config, Path.cwd())


@contextmanager
def _fatal_errors() -> Iterator[None]:
    """Report tooldeps errors on stderr and exit 1."""
    try:
        yield
    except ConfigurationError as e:
        log_error(str(e))
        raise typer.Exit(1) from e
    except MissingToolDependenciesError as e:
        log_error(f'The "tool-dependencies" field is missing from {e.path}.')
        log_error("This is required for use with tooldeps.")
        raise typer.Exit(1) from e
    except DescriptorError as e:
        log_error("Could not read your project descriptor.")
        log_error(f"Expected a valid descriptor at {e.path}: {e.reason}")
        raise typer.Exit(1) from e
    except LockTimeoutError as e:
        log_error("Could not acquire lock for concurrent tooldeps.")
        log_error(str(e))
        raise typer.Exit(1) from e
    except ToolDepsError as e:
        log_error(str(e))
        raise typer.Exit(1) from e


@app.command("exec", context_settings=_PASSTHROUGH)
def exec_command(
    ctx: typer.Context,
    command: Annotated[str, typer.Argument(help="Tool command to run")],
) -> None:
    """Run a tool, installing the declared tools first if they changed.

    Any further arguments are passed to the tool unchanged. The exit code is
    the tool's exit code.
    """
    with _fatal_errors():
        code = _get_runner().exec(command, list(ctx.args))
    raise typer.Exit(code)


@app.command()
def which(
    command: Annotated[str, typer.Argument(help="Tool command to locate")],
) -> None:
    """Print the location of a tool's binary in the cache."""
    with _fatal_errors():
        path = _get_runner().which(command)
    print(path)


@app.command(context_settings=_PASSTHROUGH)
def install(
    ctx: typer.Context,
    packages: Annotated[
        list[str], typer.Argument(help="Packages to add, e.g. eslint@8")
    ],
) -> None:
    """Add tool dependencies and record them in the project descriptor."""
    with _fatal_errors():
        dependencies = _get_runner().install([*packages, *ctx.args])
    log("✓", f"tool-dependencies: {_format_deps(dependencies)}", Colors.GREEN)


@app.command(context_settings=_PASSTHROUGH)
def rm(
    ctx: typer.Context,
    packages: Annotated[list[str], typer.Argument(help="Packages to remove")],
) -> None:
    """Remove tool dependencies and record the change in the project descriptor."""
    with _fatal_errors():
        dependencies = _get_runner().remove([*packages, *ctx.args])
    log("✓", f"tool-dependencies: {_format_deps(dependencies)}", Colors.GREEN)


@app.command(context_settings=_PASSTHROUGH)
def ls(ctx: typer.Context) -> None:
    """List installed tool dependencies (npm ls in the cache)."""
    with _fatal_errors():
        code = _get_runner().list_installed(list(ctx.args))
    raise typer.Exit(code)


@app.command()
def status() -> None:
    """Compare declared tool versions with the cached installation."""
    with _fatal_errors():
        rows = _get_runner().status()
    if not rows:
        log("○", "No tool dependencies declared", Colors.GRAY)
        return
    table = [
        (
            row.tool,
            row.declared or "-",
            row.cached or "-",
            "yes" if row.binary_present else "no",
            row.state,
        )
        for row in rows
    ]
    headers = ["tool", "declared", "cached", "binary", "state"]
    print(tabulate(table, headers=headers, tablefmt="simple"))


@cache_app.command("clean")
def cache_clean() -> None:
    """Delete this project's tool cache; the next run reinstalls."""
    with _fatal_errors():
        removed = _get_runner().clean_cache()
    if removed:
        log("🧹", "Removed tool cache", Colors.GREEN)
    else:
        log("○", "No tool cache to clean", Colors.GRAY)


def _format_deps(dependencies: dict[str, str]) -> str:
    if not dependencies:
        return "(none)"
    return ", ".join(f"{name}@{version}" for name, version in sorted(dependencies.items()))


# Register subcommand apps (after main commands for better --help ordering)
app.add_typer(cache_app, name="cache")

SUBCOMMANDS = frozenset({"exec", "which", "install", "rm", "ls", "status", "cache"})


def normalize_argv(argv: list[str]) -> list[str]:
    """Rewrite argv so bare tool names run through `exec`.

    `tooldeps eslint --fix .` becomes `tooldeps exec -- eslint --fix .`; the
    `--` keeps tool arguments such as `--help` away from the option parser.
    `-h` and `help` map to `--help`, as do global flags with nothing after them.
    """
    head: list[str] = []
    rest = list(argv)
    while rest and rest[0] in GLOBAL_FLAGS:
        head.append(rest.pop(0))
    if not rest:
        return [*head, "--help"] if head else []

    first = rest[0]
    if first in ("-h", "help"):
        return [*head, "--help"]
    if first == "exec":
        tail = rest[1:]
        if tail[:1] == ["--"]:
            tail = tail[1:]
        return [*head, "exec", "--", *tail]
    if first.startswith("-") or first in SUBCOMMANDS:
        return [*head, *rest]
    return [*head, "exec", "--", *rest]


def main() -> None:
    """Console entry point."""
    app(args=normalize_argv(sys.argv[1:]), prog_name="tooldeps")
