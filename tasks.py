"""Invoke tasks for working on passrunner.

Run ``invoke --list`` for the available tasks. Each one delegates to ``uv`` so
the virtual environment stays in sync with ``pyproject.toml``.
"""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
BUILD_ARTIFACTS = ("dist", "build", ".pytest_cache", ".mypy_cache", ".ruff_cache")
SOURCES = ("src", "tests", "tasks.py")


def _uv(ctx: Context, *args: str, echo: bool = True) -> None:
    """Run ``uv`` with ``args`` from the project root.

    Args:
        ctx: Invoke execution context.
        *args: Arguments passed to ``uv`` verbatim.
        echo: Whether to print the command before running it.
    """
    with ctx.cd(str(PROJECT_ROOT)):
        ctx.run(shlex.join(("uv", *args)), echo=echo, pty=True)


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Install the project with (or without) the dev extra."""
    _uv(ctx, "sync", *(("--extra", "dev") if dev else ()))


@task
def clean(ctx: Context) -> None:
    """Remove build outputs and tool caches."""
    for name in BUILD_ARTIFACTS:
        target = PROJECT_ROOT / name
        if target.is_dir():
            shutil.rmtree(target)


@task(help={"fresh": "Run `clean` first."})
def build(ctx: Context, fresh: bool = False) -> None:
    """Build the sdist and wheel into `dist/`."""
    if fresh:
        clean(ctx)
    _uv(ctx, "build")


@task(
    help={
        "k": "Only run tests matching this pytest -k expression.",
        "skip_watch": "Deselect tests that rely on live filesystem notifications.",
        "options": "Extra pytest flags, quoted as a single string.",
    }
)
def tests(ctx: Context, k: str = "", skip_watch: bool = False, options: str = "") -> None:
    """Run the pytest suite.

    Args:
        ctx: Invoke execution context.
        k: Optional ``-k`` selection expression.
        skip_watch: Leave out ``tests/test_watch_service.py``.
        options: Additional pytest arguments.
    """
    args = ["run", "pytest"]
    if k:
        args += ["-k", k]
    if skip_watch:
        args += ["--deselect", "tests/test_watch_service.py"]
    args += shlex.split(options)
    _uv(ctx, *args)


@task(help={"fix": "Let ruff rewrite fixable problems."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Check formatting and lint rules with ruff."""
    _uv(ctx, "run", "ruff", "format", *(() if fix else ("--check",)), *SOURCES)
    _uv(ctx, "run", "ruff", "check", *(("--fix",) if fix else ()), *SOURCES)


@task
def typecheck(ctx: Context) -> None:
    """Run mypy over the package sources."""
    _uv(ctx, "run", "mypy", "src/passrunner")


@task(pre=[lint, typecheck, tests])
def ci(ctx: Context) -> None:
    """Run every check the CI pipeline runs."""


namespace = Collection(sync, clean, build, tests, lint, typecheck, ci)
