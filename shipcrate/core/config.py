"""Typed configuration loading and access.

This module provides dataclasses for the optional `shipcrate.toml` file with
full type safety and validation. Everything has a default, so a repository
without a config file releases `Cargo.toml` from `main` to crates.io.

Example:

    [release]
    publish_branch = "main"
    tag_format = "{name}-v{version}"

    [[release.validation]]
    name = "test"
    command = ["cargo", "test", "--locked"]
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_list, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_COMMIT_MESSAGE",
    "DEFAULT_TAG_FORMAT",
    "DEFAULT_VALIDATION",
    "ConfigError",
    "ReleaseConfig",
    "ValidationCommand",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "shipcrate.toml"

DEFAULT_TAG_FORMAT = "v{version}"
DEFAULT_COMMIT_MESSAGE = "chore(release): bump {name} from {old} to {new}"


@dataclass(frozen=True, slots=True)
class ValidationCommand:
    """A named local check run against the bumped working tree."""

    name: str
    argv: tuple[str, ...]


# Cheapest checks first so formatting mistakes fail in seconds, not minutes.
DEFAULT_VALIDATION: tuple[ValidationCommand, ...] = (
    ValidationCommand("fmt", ("cargo", "fmt", "--all", "--", "--check")),
    ValidationCommand(
        "clippy",
        ("cargo", "clippy", "--all-targets", "--all-features", "--", "-D", "warnings"),
    ),
    ValidationCommand("build", ("cargo", "build", "--locked")),
    ValidationCommand("test", ("cargo", "test", "--locked")),
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Repository-level release settings."""

    publish_branch: str = "main"
    remote: str = "origin"
    manifest: str = "Cargo.toml"
    lockfile: str = "Cargo.lock"
    tag_format: str = DEFAULT_TAG_FORMAT
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    repository: str | None = None
    validation: tuple[ValidationCommand, ...] = field(default=DEFAULT_VALIDATION)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create ReleaseConfig from a mapping (parsed TOML).

        Raises:
            ValueError: If a value has the wrong shape.
        """
        release: StrDict = get_table(data, "release") or {}

        tag_format = get_str(release, "tag_format") or DEFAULT_TAG_FORMAT
        if "{version}" not in tag_format:
            raise ValueError(f"tag_format must contain {{version}}: {tag_format!r}")
        _check_template("tag_format", tag_format, "name", "version")

        commit_message = get_str(release, "commit_message") or DEFAULT_COMMIT_MESSAGE
        _check_template("commit_message", commit_message, "name", "old", "new")

        validation = DEFAULT_VALIDATION
        raw_validation = get_list(release, "validation")
        if raw_validation is not None:
            validation = tuple(_parse_validation(item) for item in raw_validation)

        return cls(
            publish_branch=get_str(release, "publish_branch") or "main",
            remote=get_str(release, "remote") or "origin",
            manifest=get_str(release, "manifest") or "Cargo.toml",
            lockfile=get_str(release, "lockfile") or "Cargo.lock",
            tag_format=tag_format,
            commit_message=commit_message,
            repository=get_str(release, "repository") or _env_repository(),
            validation=validation,
        )


def _check_template(key: str, template: str, *fields: str) -> None:
    """Render template with placeholder values; only the given fields may appear."""
    try:
        template.format(**{name: name for name in fields})
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        allowed = ", ".join(f"{{{name}}}" for name in fields)
        raise ValueError(f"{key} may only use {allowed}: {template!r} ({e!r})") from e


def _env_repository() -> str | None:
    value = os.environ.get("GITHUB_REPOSITORY", "").strip()
    return value or None


def _parse_validation(item: object) -> ValidationCommand:
    table = as_str_dict(item)
    if table is None:
        raise ValueError("validation entries must be tables")
    name = get_str(table, "name")
    argv = get_str_list(table, "command")
    if name is None or not argv:
        raise ValueError("validation entries need a name and a non-empty command list")
    return ValidationCommand(name=name, argv=tuple(argv))


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to shipcrate.toml

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load config if the file exists, otherwise return defaults.

    A file that exists but is invalid is still an error: silently falling
    back would release with settings nobody asked for.
    """
    if not path.exists():
        return Ok(ReleaseConfig(repository=_env_repository()))
    return load_config(path)
