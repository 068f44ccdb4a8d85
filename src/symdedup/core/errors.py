"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception hierarchy for the deduplication engine.
"""


class DeduplicationError(Exception):
    """Base class for all errors raised by symdedup."""


class ConfigurationError(DeduplicationError, ValueError):
    """Invalid configuration: unknown digest, malformed YAML, bad regex, etc."""


class RollbackError(DeduplicationError, RuntimeError):
    """
    A move was completed but neither the symbolic link nor the move back succeeded.
    The file's authoritative location is now ambiguous, so processing must stop.
    """

    def __init__(self, source: str, destination: str):
        super().__init__(f"Rollback failed: {destination} could not be moved back to {source}")
        self.source = source
        self.destination = destination
