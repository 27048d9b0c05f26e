"""scriptforge — configurable code generators with persisted settings."""

__version__ = "0.1.0"
