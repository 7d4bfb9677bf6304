"""File tools: read, write, create, list, and edit workspace files.

Mutating tools follow the same order of operations: read the authoritative
text, compute the new text with :mod:`wsbridge.workspace.edits`, write it,
build the response, and leave the cache refresh and editor open to
:class:`~wsbridge.core.deferred.DeferredEffects`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from wsbridge.errors import BridgeError, EditError, InvalidRangeError, NotFoundError
from wsbridge.protocol import responses
from wsbridge.protocol.models import ContentItem, ToolAnnotations, ToolResponse
from wsbridge.tools.base import FileTool, PathArgs
from wsbridge.workspace import edits

if TYPE_CHECKING:
    from pathlib import Path

READ_ONLY = ToolAnnotations(read_only=True)
DESTRUCTIVE = ToolAnnotations(destructive=True)


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class GetFileTextArgs(PathArgs):
    encoding: str | None = Field(default=None, description="Only 'utf-8' is supported.")
    max_characters: int | None = Field(
        default=None,
        alias="maxCharacters",
        description="Maximum number of characters to return.",
    )


class TextArgs(PathArgs):
    text: str


class ListFolderArgs(PathArgs):
    pass


class ReplaceAtPositionArgs(PathArgs):
    start_line: int = Field(alias="startLine", description="1-based first line.")
    end_line: int = Field(alias="endLine", description="1-based last line, inclusive.")
    content: str
    offset: int = Field(default=0, description="Character offset on the start line.")


class AppendArgs(PathArgs):
    content: str


class ReplaceTextArgs(PathArgs):
    old_text: str = Field(alias="oldText")
    new_text: str = Field(alias="newText")


# ---------------------------------------------------------------------------
# Read-only tools
# ---------------------------------------------------------------------------


class GetFileTextByPathTool(FileTool[GetFileTextArgs]):
    name = "get_file_text_by_path"
    description = (
        "Get the text content of a file using its path relative to the project root. "
        "Returns an error if the file does not exist or is outside the project scope."
    )
    args_model = GetFileTextArgs
    annotations = READ_ONLY
    output_schema = {
        "type": "object",
        "properties": {
            "pathInProject": {"type": "string"},
            "content": {"type": "string"},
            "encoding": {"type": "string"},
            "truncated": {"type": "boolean"},
            "length": {"type": "number"},
            "totalLength": {"type": "number"},
            "maxCharacters": {"type": "number"},
        },
        "required": ["pathInProject", "content"],
    }

    async def execute(self, absolute_path: Path, args: GetFileTextArgs) -> ToolResponse:
        if args.encoding and args.encoding.lower() not in ("utf-8", "utf8"):
            return responses.failure(
                f"Only 'utf-8' encoding is currently supported for {self.name}"
            )

        try:
            full_text = await self.cache.read(absolute_path, force_utf8=True)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "reading")

        limit = args.max_characters
        if limit is None or limit <= 0:
            limit = self.limits.max_file_read_characters

        text = full_text
        truncated = len(text) > limit
        if truncated:
            text = text[:limit]

        self.log.info(
            "Read %s: %d characters%s",
            absolute_path,
            len(text),
            f" (truncated from {len(full_text)})" if truncated else "",
        )
        return ToolResponse(
            content=[ContentItem.of_text(text)],
            is_error=False,
            structured_content={
                "pathInProject": self.relative(absolute_path),
                "encoding": "utf-8",
                "content": text,
                "truncated": truncated,
                "length": len(text),
                "totalLength": len(full_text),
                "maxCharacters": limit,
            },
        )


class ListFilesInFolderTool(FileTool[ListFolderArgs]):
    name = "list_files_in_folder"
    description = (
        "List all files and directories in the specified project folder. "
        "Returns an array of entry information."
    )
    args_model = ListFolderArgs
    annotations = READ_ONLY

    async def execute(self, absolute_path: Path, args: ListFolderArgs) -> ToolResponse:
        try:
            stat = await self.binding.stat(absolute_path)
            if not stat.is_directory:
                self.log.warning("Path is not a directory: %s", absolute_path)
                return responses.failure(
                    f"Path is not a directory: {self.relative(absolute_path)}"
                )
            entries = await self.binding.list_directory(absolute_path)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "listing")

        result: list[dict[str, Any]] = [
            {
                "name": entry.name,
                "type": "directory" if entry.is_directory else "file",
                "pathInProject": self.relative(absolute_path / entry.name),
            }
            for entry in entries
        ]
        # Directories first, then by name.
        result.sort(key=lambda e: (e["type"] != "directory", e["name"].lower(), e["name"]))
        return responses.success(result)


# ---------------------------------------------------------------------------
# Mutating tools
# ---------------------------------------------------------------------------


class RewriteFileContentTool(FileTool[TextArgs]):
    name = "rewrite_file_content"
    description = (
        "Replace the entire content of a specified project file with new text. "
        "This completely overwrites the file with the provided content."
    )
    args_model = TextArgs
    annotations = DESTRUCTIVE

    async def execute(self, absolute_path: Path, args: TextArgs) -> ToolResponse:
        try:
            await self.write_then_defer(absolute_path, args.text, must_exist=True)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "rewriting")

        return responses.success(
            {"pathInProject": self.relative(absolute_path), "size": len(args.text)}
        )


class CreateNewFileWithTextTool(FileTool[TextArgs]):
    name = "create_new_file_with_text"
    description = (
        "Create a new file at the specified path in the project directory and populate "
        "it with content. Missing parent directories are created."
    )
    args_model = TextArgs

    async def execute(self, absolute_path: Path, args: TextArgs) -> ToolResponse:
        try:
            await self.write_then_defer(
                absolute_path, args.text, must_exist=False, create_if_absent=True
            )
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "creating")

        return responses.success({"pathInProject": self.relative(absolute_path)})


class ReplaceFileContentAtPositionTool(FileTool[ReplaceAtPositionArgs]):
    name = "replace_file_content_at_position"
    description = (
        "Replace a portion of file content at specified line positions. Lines are "
        "1-based and inclusive. When startLine equals endLine the content overwrites "
        "the line in place starting at the optional character offset."
    )
    args_model = ReplaceAtPositionArgs
    annotations = DESTRUCTIVE

    async def execute(self, absolute_path: Path, args: ReplaceAtPositionArgs) -> ToolResponse:
        try:
            current = await self.read_authoritative(absolute_path)
            try:
                new_text = edits.replace_range(
                    current, args.start_line, args.end_line, args.content, args.offset
                )
            except InvalidRangeError as err:
                self.log.info("Rejected range for %s: %s", absolute_path, err.detail)
                return responses.failure("Invalid line numbers")
            await self.write_then_defer(absolute_path, new_text, must_exist=True)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "replacing content in")

        return responses.success("ok")


class AppendFileContentTool(FileTool[AppendArgs]):
    name = "append_file_content"
    description = (
        "Append content to the end of a file. Returns an error if the file does not "
        "exist or cannot be accessed."
    )
    args_model = AppendArgs

    async def execute(self, absolute_path: Path, args: AppendArgs) -> ToolResponse:
        try:
            if not await self.binding.exists(absolute_path):
                return responses.failure("File does not exist")
            existing = await self.read_authoritative(absolute_path)
            new_text = edits.append(existing, args.content)
            await self.write_then_defer(absolute_path, new_text, must_exist=True)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "appending to")

        return responses.success(
            {"pathInProject": self.relative(absolute_path), "size": len(new_text)}
        )


class ReplaceSpecificTextTool(FileTool[ReplaceTextArgs]):
    name = "replace_specific_text"
    description = (
        "Replace every occurrence of the exact oldText in a file with newText. "
        "Matching is literal and may span line breaks."
    )
    args_model = ReplaceTextArgs
    annotations = DESTRUCTIVE

    async def execute(self, absolute_path: Path, args: ReplaceTextArgs) -> ToolResponse:
        try:
            current = await self.read_authoritative(absolute_path)
            try:
                replaced = edits.replace_all(current, args.old_text, args.new_text)
            except (NotFoundError, EditError) as err:
                self.log.info("No replacement in %s: %s", absolute_path, err)
                return responses.failure(str(err))
            await self.write_then_defer(absolute_path, replaced.text, must_exist=True)
        except BridgeError as err:
            return self.handle_file_system_error(err, absolute_path, "replacing text in")

        return responses.success(
            {"pathInProject": self.relative(absolute_path), "replacedCount": replaced.count}
        )


FILE_TOOLS: tuple[type[FileTool[Any]], ...] = (
    GetFileTextByPathTool,
    RewriteFileContentTool,
    CreateNewFileWithTextTool,
    ListFilesInFolderTool,
    ReplaceFileContentAtPositionTool,
    AppendFileContentTool,
    ReplaceSpecificTextTool,
)
