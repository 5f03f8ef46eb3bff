from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from shipcrate.core.config import ValidationCommand
from shipcrate.core.result import Err, Ok, Result
from shipcrate.output.console import ConsoleProtocol, Style
from shipcrate.platform.process import run as run_process
from shipcrate.release.domain.errors import ValidationFailed
from shipcrate.release.infra.timeouts import (
    VALIDATION_OUTPUT_TAIL_LINES,
    VALIDATION_TIMEOUT_SECONDS,
)


class CommandValidationRunner:
    """Run local checks in order, stopping at the first failure."""

    def __init__(
        self,
        root: Path,
        *,
        console: ConsoleProtocol,
        toolchain: str | None = None,
        timeout: float = VALIDATION_TIMEOUT_SECONDS,
    ) -> None:
        self._root = root
        self._console = console
        self._toolchain = toolchain
        self._timeout = timeout

    def run(self, checks: Sequence[ValidationCommand]) -> Result[None, ValidationFailed]:
        env: dict[str, str] = {}
        if self._toolchain:
            env["RUSTUP_TOOLCHAIN"] = self._toolchain

        for check in checks:
            self._console.print(f"$ {' '.join(check.argv)}", Style.DIM)
            result = run_process(list(check.argv), cwd=self._root, env=env, timeout=self._timeout)
            if isinstance(result, Err):
                output = _tail(result.error.output)
                if result.error.timed_out:
                    output = f"timed out after {self._timeout:g}s\n{output}".strip()
                return Err(ValidationFailed(name=check.name, output=output))
            self._console.success(check.name)

        return Ok(None)


def _tail(text: str, lines: int = VALIDATION_OUTPUT_TAIL_LINES) -> str:
    kept = text.splitlines()[-lines:]
    return "\n".join(kept)
