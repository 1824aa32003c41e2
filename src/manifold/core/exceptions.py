from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class ManifoldError(Exception):
    """Base exception for Manifold.

    ``component`` holds the logical path of the component being processed when
    the error was raised (or attached later by the install/generate engines).
    """

    context: Dict[str, Any]
    component: Optional[str]

    def __init__(
        self,
        message: str = "",
        *,
        context: Mapping[str, Any] | None = None,
        component: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}
        self.component = component

    def __str__(self) -> str:
        if self.component:
            return f'component "{self.component}": {self.message}'
        return self.message

    def attach_component(self, logical_path: str) -> "ManifoldError":
        """Record ``logical_path`` unless a nearer component is already known."""
        if not self.component:
            self.component = logical_path
            self.context.setdefault("component", logical_path)
        return self

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ValidationError(ManifoldError, ValueError):
    """Raised for malformed or missing fields. Never retried."""

    def __init__(
        self,
        message: str = "",
        *,
        context: Mapping[str, Any] | None = None,
        component: str | None = None,
    ) -> None:
        ManifoldError.__init__(self, message, context=context, component=component)
        ValueError.__init__(self, message)


class InvalidLocatorError(ValidationError):
    """Raised when a remote locator cannot be turned into a path."""


class DefinitionError(ValidationError):
    """Raised when a component definition file is missing, ambiguous or invalid."""


class FetchError(ManifoldError, RuntimeError):
    """Raised when materializing a source fails (network, process, checkout mismatch)."""

    def __init__(
        self,
        message: str = "",
        *,
        context: Mapping[str, Any] | None = None,
        component: str | None = None,
    ) -> None:
        ManifoldError.__init__(self, message, context=context, component=component)
        RuntimeError.__init__(self, message)


class ConsistencyError(ManifoldError):
    """Raised for duplicate logical paths, unexpected document shapes or metadata conflicts."""


class RenderError(ManifoldError):
    """Raised when the templating backend fails or reports diagnostics."""


class HookError(ManifoldError):
    """Raised when a lifecycle hook command fails."""

    def __init__(
        self,
        message: str,
        *,
        hook: str,
        command: str | None = None,
        context: Mapping[str, Any] | None = None,
        component: str | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["hook"] = hook
        if command:
            ctx["command"] = command
        super().__init__(message, context=ctx, component=component)
        self.hook = hook
        self.command = command


__all__ = [
    "ManifoldError",
    "ValidationError",
    "InvalidLocatorError",
    "DefinitionError",
    "FetchError",
    "ConsistencyError",
    "RenderError",
    "HookError",
]
