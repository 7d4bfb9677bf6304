"""Shared error types for the bridge.

Every error here carries a human-readable message that is safe to hand back
to the calling agent inside a failure envelope.
"""


class BridgeError(Exception):
    """Base error for all bridge failures."""


class ConfigError(BridgeError):
    """Configuration file could not be read or validated."""


class DuplicateNameError(BridgeError):
    """A tool or interceptor with the same name is already registered."""

    def __init__(self, name: str, kind: str = "tool") -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Duplicate {kind} name: {name}")


class UnknownToolError(BridgeError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class EditError(BridgeError):
    """A positional edit could not be applied."""


class InvalidRangeError(EditError):
    """Line range or offset is outside the bounds of the text."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Invalid line numbers" + (f": {detail}" if detail else ""))


class NotFoundError(BridgeError):
    """A file, directory, or text occurrence does not exist."""


class DecodeError(BridgeError):
    """File content is binary or uses an unsupported encoding."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        msg = f"Cannot decode file as text: {path}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class IoError(BridgeError):
    """The underlying store failed to read or write."""

    def __init__(self, path: str, operation: str, detail: str = "") -> None:
        self.path = path
        self.operation = operation
        self.detail = detail
        super().__init__(f"Error {operation} file: {path}")


class PathOutsideWorkspaceError(BridgeError):
    """A project-relative path resolves outside the workspace root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("Path is outside project directory")


class CacheUpdateError(BridgeError):
    """A deferred cache update could not be confirmed against the store."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cache update failed for {path}" + (f": {detail}" if detail else ""))


class InterceptorError(BridgeError):
    """An interceptor raised while processing an invocation."""

    def __init__(self, interceptor: str, detail: str = "") -> None:
        self.interceptor = interceptor
        self.detail = detail
        super().__init__(
            f"Interceptor '{interceptor}' failed" + (f": {detail}" if detail else "")
        )
