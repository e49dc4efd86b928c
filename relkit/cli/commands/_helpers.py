"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relkit.core.config import FAILURE_POLICIES, FailurePolicy
from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Result
from relkit.output.errors import print_release_error, release_error_exit_code
from relkit.release.errors import ReleaseError

if TYPE_CHECKING:
    from relkit.cli.context import CLIContext

T = TypeVar("T")


def exit_on_error(result: Result[T, ReleaseError], ctx: CLIContext) -> None:
    """Exit with the error's exit code if result is Err, otherwise return.

    Replaces the common pattern:
        if isinstance(result, Err):
            ctx.console.error(result.error.message)
            raise typer.Exit(code=...)
    """
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        raise typer.Exit(code=release_error_exit_code(result.error))


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)


def parse_failure_policy(value: str | None, default: FailurePolicy) -> FailurePolicy:
    if value is None:
        return default
    for policy in FAILURE_POLICIES:
        if value == policy:
            return policy
    typer.echo(
        f"error: --failure-policy must be one of {', '.join(FAILURE_POLICIES)}: {value}",
        err=True,
    )
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))
