"""Release bounded context.

This package hosts the release architecture split into:
- domain: versions, plans, outcomes and the error taxonomy
- resolve: input normalization and validation
- flow: the orchestration state machine and its collaborator ports
- infra: adapters for cargo, git, GitHub and the CI host
- view: presentation of the outcome and exit codes
"""

from __future__ import annotations
