"""Fatal error kinds raised by the mutation engine."""

from __future__ import annotations


class BakeError(RuntimeError):
    """A failure that aborts the whole bake; no output is produced."""


class DocumentLoadError(BakeError):
    """The source document could not be loaded or prepared."""


class DocumentSaveError(BakeError):
    """The mutated document could not be serialized."""
