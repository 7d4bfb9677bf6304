"""FileTool: shared plumbing for tools that take a ``pathInProject``.

Subclasses declare ``name``, ``description``, an ``Args`` model, and
implement :meth:`FileTool.execute`. The base class validates arguments,
resolves the path inside the workspace, and turns store errors into
failure envelopes so that ``handle`` never raises for expected problems.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wsbridge.errors import (
    BridgeError,
    DecodeError,
    IoError,
    NotFoundError,
    PathOutsideWorkspaceError,
)
from wsbridge.protocol import responses
from wsbridge.protocol.models import ToolAnnotations, ToolDefinition

if TYPE_CHECKING:
    from pathlib import Path

    from wsbridge.config import LimitSettings
    from wsbridge.core.deferred import DeferredEffects
    from wsbridge.protocol.models import ToolResponse
    from wsbridge.workspace.binding import FileBinding
    from wsbridge.workspace.cache import ContentCache
    from wsbridge.workspace.paths import Workspace

logger = logging.getLogger(__name__)

_SLOW_FILE_OPERATION_MS = 200.0


class PathArgs(BaseModel):
    """Arguments every file tool accepts."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    path_in_project: str = Field(
        alias="pathInProject",
        description="Path relative to the project root.",
    )


ArgsT = TypeVar("ArgsT", bound=PathArgs)


class FileTool(Generic[ArgsT]):
    """Base class for tools operating on one workspace path."""

    name: ClassVar[str]
    description: ClassVar[str]
    args_model: ClassVar[type[PathArgs]] = PathArgs
    output_schema: ClassVar[dict[str, Any] | None] = None
    annotations: ClassVar[ToolAnnotations | None] = None

    def __init__(
        self,
        workspace: Workspace,
        binding: FileBinding,
        cache: ContentCache,
        deferred: DeferredEffects,
        limits: LimitSettings,
    ) -> None:
        self.workspace = workspace
        self.binding = binding
        self.cache = cache
        self.deferred = deferred
        self.limits = limits
        self.log = logging.getLogger(f"{__name__}.{self.name}")

    @classmethod
    def input_schema(cls) -> dict[str, Any]:
        schema = cls.args_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema

    def definition(self) -> ToolDefinition:
        """Build the registry entry for this tool."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema(),
            output_schema=self.output_schema,
            annotations=self.annotations,
            handler=self.handle,
        )

    async def handle(self, args: dict[str, Any]) -> ToolResponse:
        try:
            parsed = self.args_model.model_validate(args)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            return responses.failure(f"Invalid arguments for {self.name}: {fields}")

        try:
            absolute_path = self.workspace.resolve(parsed.path_in_project)
        except PathOutsideWorkspaceError as exc:
            self.log.warning("Rejected path outside workspace: %s", parsed.path_in_project)
            return responses.failure(str(exc))

        return await self.execute(absolute_path, parsed)  # type: ignore[arg-type]

    async def execute(self, absolute_path: Path, args: ArgsT) -> ToolResponse:
        raise NotImplementedError

    # -- helpers for subclasses ----------------------------------------------

    def relative(self, absolute_path: Path) -> str:
        return self.workspace.relative(absolute_path)

    async def read_authoritative(self, absolute_path: Path) -> str:
        """Read straight from the store, bypassing the cache."""
        started = time.perf_counter()
        text = await self.binding.read_text(absolute_path, force_utf8=True)
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > _SLOW_FILE_OPERATION_MS:
            self.log.info("Slow read of %s: %.2fms", absolute_path, elapsed_ms)
        return text

    async def write_then_defer(
        self,
        absolute_path: Path,
        text: str,
        *,
        must_exist: bool = True,
        create_if_absent: bool = False,
    ) -> None:
        """Write *text* to the store, then schedule cache refresh and editor open.

        The write completes before this returns; the follow-ups run after the
        tool has produced its response.
        """
        await self.binding.write_text(
            absolute_path,
            text,
            must_exist=must_exist,
            create_if_absent=create_if_absent,
        )
        try:
            written = await self.binding.stat(absolute_path)
        except BridgeError as exc:
            self.log.warning("Could not stat %s after writing: %s", absolute_path, exc)
            self.deferred.after_write(absolute_path, text, origin_tool=self.name, refresh=False)
            return
        self.deferred.after_write(absolute_path, text, origin_tool=self.name, written=written)

    def handle_file_system_error(
        self, err: BaseException, absolute_path: Path, operation: str
    ) -> ToolResponse:
        """Map *err* to a failure envelope and log the original for diagnostics."""
        rel = self.relative(absolute_path)
        if isinstance(err, NotFoundError):
            self.log.warning("Not found while %s %s: %s", operation, rel, err)
            return responses.failure(f"File not found: {rel}")
        if isinstance(err, DecodeError):
            self.log.warning("Decode failure while %s %s: %s", operation, rel, err.detail)
            return responses.failure(f"File is not valid UTF-8 text: {rel}")
        if isinstance(err, IoError):
            self.log.error("I/O error while %s %s: %s", operation, rel, err.detail)
            return responses.failure(f"Error {operation} file: {rel}")
        if isinstance(err, BridgeError):
            return responses.failure(str(err))
        self.log.error("Unexpected error while %s %s", operation, rel, exc_info=err)
        return responses.failure(f"Error {operation} file: {rel}")
