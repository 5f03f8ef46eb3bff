"""Release orchestration for a single Rust crate."""

__version__ = "0.1.0"
