from __future__ import annotations


class ArchitectError(Exception):
    """Base class for errors raised by the Quantum Code Architect service."""


class ConfigurationError(ArchitectError):
    """Raised at startup when the service credential is missing or a placeholder."""


class StageError(ArchitectError):
    """A single generation stage failed; the whole topic request is aborted."""


class GenerationError(StageError):
    """The remote model answered, but the answer was malformed or empty."""


class TransportError(StageError):
    """The remote call itself failed (network, quota, SDK error)."""
