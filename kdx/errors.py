"""Exception types for kdx."""

from __future__ import annotations


class KdxError(Exception):
    """Base class for every error kdx reports to the operator."""


class SelectorParseError(KdxError, ValueError):
    """Raised when a label selector string is malformed."""

    def __init__(self, message: str, expression: str = "") -> None:
        super().__init__(message)
        self.expression = expression


class ResourceNotFoundError(KdxError):
    def __init__(self, kind: str, name: str, namespace: str) -> None:
        super().__init__(f"Resource not found: {kind} '{name}' in namespace '{namespace}'")
        self.kind = kind
        self.name = name
        self.namespace = namespace


class ProviderError(KdxError):
    """Raised when the cluster API call behind a listing fails."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(f"Kubernetes API error during {operation}: {cause}")
        self.operation = operation
        self.cause = cause


class OutputFormatError(KdxError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Output formatting error: {message}")
