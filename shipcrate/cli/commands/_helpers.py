"""Shared helpers for CLI commands."""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType
from typing import TYPE_CHECKING

import typer

from shipcrate.core.errors import ErrorCode
from shipcrate.core.result import Err, Result
from shipcrate.output.console import Style
from shipcrate.release.flow.check_gate import CancelToken

if TYPE_CHECKING:
    from shipcrate.cli.context import CLIContext


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have a 'message' attribute and, optionally, an
    'output' attribute with tool output worth showing.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        output: str | None = getattr(error, "output", None)
        ctx.console.error(message)
        if output:
            ctx.console.print(output, Style.DIM)
        raise typer.Exit(code=int(error_code))


@contextmanager
def cancel_on_signals(token: CancelToken, ctx: CLIContext) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a cancellation request for the duration.

    A second signal exits immediately.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)

    def handler(signum: int, _frame: FrameType | None) -> None:
        if token.cancelled:
            ctx.console.error("forced shutdown")
            raise SystemExit(int(ErrorCode.CANCELLED))
        ctx.console.warning(
            f"{signal.Signals(signum).name} received; cancellation requested"
        )
        token.cancel()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)
