from __future__ import annotations

# GitHub API reads (check runs, commit statuses)
GH_TIMEOUT_SECONDS = 60.0

# Local validation commands (fmt, clippy, build, test)
VALIDATION_TIMEOUT_SECONDS = 60 * 60.0

# cargo publish, dry-run included: packaging plus a verify build, then upload
CARGO_PUBLISH_TIMEOUT_SECONDS = 30 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Output kept from a failing validation command
VALIDATION_OUTPUT_TAIL_LINES = 40
