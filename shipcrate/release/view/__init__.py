"""Release presentation."""

from __future__ import annotations

from shipcrate.release.view.report import exit_code_for, print_outcome

__all__ = ["exit_code_for", "print_outcome"]
