from __future__ import annotations

from pathlib import Path

from shipcrate.core.result import Err, Ok, Result
from shipcrate.output.console import ConsoleProtocol, Style
from shipcrate.platform.process import ProcessError
from shipcrate.platform.process import run as run_process
from shipcrate.release.domain.errors import (
    DryRunFailed,
    NetworkError,
    PublishError,
    RegistryAuthFailed,
    RegistryRejected,
)
from shipcrate.release.domain.model import ReleasePlan
from shipcrate.release.infra.timeouts import CARGO_PUBLISH_TIMEOUT_SECONDS
from shipcrate.release.infra.transient import error_text, is_auth_failure, is_transient

_ALREADY_UPLOADED_MARKERS = ("already uploaded", "already exists")


class CargoRegistryPublisher:
    """Publish through `cargo publish`; the token travels only in the child's env."""

    def __init__(
        self,
        root: Path,
        *,
        console: ConsoleProtocol,
        token: str | None,
        toolchain: str | None = None,
        timeout: float = CARGO_PUBLISH_TIMEOUT_SECONDS,
    ) -> None:
        self._root = root
        self._console = console
        self._token = token
        self._toolchain = toolchain
        self._timeout = timeout

    def dry_run(self, plan: ReleasePlan) -> Result[None, PublishError]:
        self._console.print(
            f"cargo publish --dry-run ({plan.package_name} {plan.new_version})", Style.DIM
        )
        result = self._cargo(["publish", "--dry-run", "--locked"], with_token=False)
        if isinstance(result, Err):
            return Err(DryRunFailed(output=result.error.output))
        return Ok(None)

    def publish(self, plan: ReleasePlan) -> Result[None, PublishError]:
        self._console.print(f"cargo publish ({plan.package_name} {plan.new_version})", Style.DIM)
        # The dry-run already built the packaged crate; skip the second verify build.
        result = self._cargo(["publish", "--locked", "--no-verify"], with_token=True)
        if isinstance(result, Err):
            return Err(classify_publish_error(result.error))
        return Ok(None)

    def _cargo(self, args: list[str], *, with_token: bool) -> Result[str, ProcessError]:
        env: dict[str, str] = {}
        if with_token and self._token:
            env["CARGO_REGISTRY_TOKEN"] = self._token
        if self._toolchain:
            env["RUSTUP_TOOLCHAIN"] = self._toolchain
        return run_process(["cargo", *args], cwd=self._root, env=env, timeout=self._timeout)


def classify_publish_error(error: ProcessError) -> PublishError:
    """Map a failed `cargo publish` to what the orchestrator can act on.

    A timeout is the one case where the upload may have gone through; it is
    flagged so recovery does not delete a tag for a version that now exists.
    """
    detail = error.output or str(error)
    if error.timed_out:
        return NetworkError(detail=detail, timed_out=True)
    if is_auth_failure(error):
        return RegistryAuthFailed(detail=detail)
    if any(marker in error_text(error) for marker in _ALREADY_UPLOADED_MARKERS):
        return RegistryRejected(detail=detail)
    if is_transient(error):
        return NetworkError(detail=detail)
    return RegistryRejected(detail=detail)
