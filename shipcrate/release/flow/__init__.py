"""Release flow: the state machine and the ports it drives."""

from __future__ import annotations

from shipcrate.release.flow.check_gate import CancelToken, CheckGate
from shipcrate.release.flow.orchestrator import ReleaseOrchestrator
from shipcrate.release.flow.ports import (
    Author,
    CommitRef,
    GitPublisher,
    ManifestEditor,
    PackageManifest,
    RegistryPublisher,
    StatusSource,
    ValidationRunner,
)

__all__ = [
    "Author",
    "CancelToken",
    "CheckGate",
    "CommitRef",
    "GitPublisher",
    "ManifestEditor",
    "PackageManifest",
    "RegistryPublisher",
    "ReleaseOrchestrator",
    "StatusSource",
    "ValidationRunner",
]
