"""Tests for the file tools, run through the full request pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from wsbridge.config import LimitSettings
from wsbridge.core.deferred import DeferredEffects
from wsbridge.core.handler import RequestHandler
from wsbridge.protocol.models import ToolResponse
from wsbridge.tools.files import RewriteFileContentTool
from wsbridge.workspace.cache import ContentCache
from wsbridge.workspace.paths import Workspace


async def _call(handler: RequestHandler, tool: str, **args: Any) -> ToolResponse:
    envelope = await handler.call_tool(tool, args)
    await handler.context.deferred.drain()
    return envelope


class TestGetFileText:
    async def test_reads_file(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "a.txt").write_text("hello\nworld\n")

        envelope = await _call(handler, "get_file_text_by_path", pathInProject="a.txt")
        assert not envelope.is_error
        assert envelope.text == "hello\nworld\n"
        assert envelope.structured_content is not None
        assert envelope.structured_content["pathInProject"] == "a.txt"
        assert envelope.structured_content["truncated"] is False
        assert envelope.structured_content["totalLength"] == 12

    async def test_utf8_bom_not_returned(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "a.txt").write_bytes(b"\xef\xbb\xbfhello")

        envelope = await _call(handler, "get_file_text_by_path", pathInProject="a.txt")
        assert envelope.text == "hello"

    async def test_edit_drops_utf8_bom(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_bytes(b"\xef\xbb\xbfhello")

        await _call(handler, "append_file_content", pathInProject="a.txt", content=" world")
        assert target.read_bytes() == b"hello world"

    async def test_truncation(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "a.txt").write_text("abcdefghij")

        envelope = await _call(
            handler, "get_file_text_by_path", pathInProject="a.txt", maxCharacters=4
        )
        assert envelope.text == "abcd"
        assert envelope.structured_content is not None
        assert envelope.structured_content["truncated"] is True
        assert envelope.structured_content["totalLength"] == 10

    async def test_missing_file(self, handler: RequestHandler) -> None:
        envelope = await _call(handler, "get_file_text_by_path", pathInProject="nope.txt")
        assert envelope.is_error
        assert envelope.text == "File not found: nope.txt"

    async def test_binary_file(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "img.bin").write_bytes(b"\x89PNG\x00\x00\x01")

        envelope = await _call(handler, "get_file_text_by_path", pathInProject="img.bin")
        assert envelope.is_error
        assert "not valid UTF-8" in envelope.text

    async def test_unsupported_encoding(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "a.txt").write_text("x")

        envelope = await _call(
            handler, "get_file_text_by_path", pathInProject="a.txt", encoding="latin-1"
        )
        assert envelope.is_error
        assert "utf-8" in envelope.text

    async def test_outside_workspace(self, handler: RequestHandler) -> None:
        envelope = await _call(handler, "get_file_text_by_path", pathInProject="../escape.txt")
        assert envelope.is_error
        assert envelope.text == "Path is outside project directory"

    async def test_missing_argument(self, handler: RequestHandler) -> None:
        envelope = await _call(handler, "get_file_text_by_path")
        assert envelope.is_error
        assert "pathInProject" in envelope.text

    async def test_populates_cache(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("x")

        await _call(handler, "get_file_text_by_path", pathInProject="a.txt")
        assert target.resolve() in handler.context.cache


class TestListFiles:
    async def test_lists_directories_first(
        self, handler: RequestHandler, workspace_root: Path
    ) -> None:
        (workspace_root / "b.txt").write_text("")
        (workspace_root / "A.txt").write_text("")
        (workspace_root / "zdir").mkdir()

        envelope = await _call(handler, "list_files_in_folder", pathInProject=".")
        assert not envelope.is_error
        entries = json.loads(envelope.text)
        assert [e["name"] for e in entries] == ["zdir", "A.txt", "b.txt"]
        assert entries[0] == {"name": "zdir", "type": "directory", "pathInProject": "zdir"}

    async def test_nested_paths(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "src").mkdir()
        (workspace_root / "src" / "m.py").write_text("")

        envelope = await _call(handler, "list_files_in_folder", pathInProject="src")
        assert json.loads(envelope.text)[0]["pathInProject"] == "src/m.py"

    async def test_not_a_directory(self, handler: RequestHandler, workspace_root: Path) -> None:
        (workspace_root / "f.txt").write_text("")

        envelope = await _call(handler, "list_files_in_folder", pathInProject="f.txt")
        assert envelope.is_error
        assert envelope.text == "Path is not a directory: f.txt"

    async def test_missing_directory(self, handler: RequestHandler) -> None:
        envelope = await _call(handler, "list_files_in_folder", pathInProject="nope")
        assert envelope.is_error


class TestRewriteAndCreate:
    async def test_rewrite_existing(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("old")

        envelope = await _call(handler, "rewrite_file_content", pathInProject="a.txt", text="new")
        assert not envelope.is_error
        assert target.read_text() == "new"

    async def test_rewrite_missing(self, handler: RequestHandler, workspace_root: Path) -> None:
        envelope = await _call(handler, "rewrite_file_content", pathInProject="a.txt", text="x")
        assert envelope.is_error
        assert envelope.text == "File not found: a.txt"
        assert not (workspace_root / "a.txt").exists()

    async def test_create_with_parents(self, handler: RequestHandler, workspace_root: Path) -> None:
        envelope = await _call(
            handler, "create_new_file_with_text", pathInProject="pkg/sub/new.py", text="print()\n"
        )
        assert not envelope.is_error
        assert (workspace_root / "pkg" / "sub" / "new.py").read_text() == "print()\n"

    async def test_write_refreshes_cache(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("v1")
        await _call(handler, "get_file_text_by_path", pathInProject="a.txt")

        await _call(handler, "rewrite_file_content", pathInProject="a.txt", text="version 2")
        entry = handler.context.cache.get(target.resolve())
        assert entry is not None
        assert entry.text == "version 2"

        envelope = await _call(handler, "get_file_text_by_path", pathInProject="a.txt")
        assert envelope.text == "version 2"


class TestReplaceAtPosition:
    async def test_replaces_lines(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("one\ntwo\nthree\n")

        envelope = await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=2,
            endLine=3,
            content="TWO\nTHREE",
        )
        assert envelope.text == "ok"
        assert target.read_text() == "one\nTWO\nTHREE\n"

    async def test_single_line_overwrite(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("def foo():\n")

        await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=1,
            endLine=1,
            content="bar",
            offset=4,
        )
        assert target.read_text() == "def bar():\n"

    async def test_preserves_crlf(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_bytes(b"a\r\nb\r\nc")

        await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=1,
            endLine=2,
            content="x\ny\nz",
        )
        assert target.read_bytes() == b"x\r\ny\r\nz\r\nc"

    async def test_invalid_range(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("a\nb")

        envelope = await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=2,
            endLine=5,
            content="x",
        )
        assert envelope.is_error
        assert envelope.text == "Invalid line numbers"
        assert target.read_text() == "a\nb"

    async def test_reads_store_not_cache(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("cached\n")
        await _call(handler, "get_file_text_by_path", pathInProject="a.txt")

        # Same size, so a cache-first read could miss the change.
        target.write_text("disk!!\n")
        await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=2,
            endLine=2,
            content="tail",
        )
        assert target.read_text() == "disk!!\ntail"


class TestAppend:
    async def test_append(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("a\nb\n")

        envelope = await _call(handler, "append_file_content", pathInProject="a.txt", content="c\nd")
        assert not envelope.is_error
        assert target.read_text() == "a\nb\nc\nd"

    async def test_append_adapts_to_crlf(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_bytes(b"a\r\n")

        await _call(handler, "append_file_content", pathInProject="a.txt", content="b\nc\n")
        assert target.read_bytes() == b"a\r\nb\r\nc\r\n"

    async def test_append_missing(self, handler: RequestHandler) -> None:
        envelope = await _call(handler, "append_file_content", pathInProject="x.txt", content="c")
        assert envelope.is_error
        assert envelope.text == "File does not exist"

    async def test_append_then_remove_restores(
        self, handler: RequestHandler, workspace_root: Path
    ) -> None:
        target = workspace_root / "a.txt"
        target.write_text("a\nb\n")

        await _call(handler, "append_file_content", pathInProject="a.txt", content="c\nd")
        await _call(
            handler,
            "replace_file_content_at_position",
            pathInProject="a.txt",
            startLine=3,
            endLine=4,
            content="",
        )
        assert target.read_text() == "a\nb\n"


class TestReplaceSpecificText:
    async def test_replaces_all(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("foo.foo.foo")

        envelope = await _call(
            handler, "replace_specific_text", pathInProject="a.txt", oldText="foo", newText="bar"
        )
        assert json.loads(envelope.text) == {"pathInProject": "a.txt", "replacedCount": 3}
        assert target.read_text() == "bar.bar.bar"

    async def test_no_occurrences(self, handler: RequestHandler, workspace_root: Path) -> None:
        target = workspace_root / "a.txt"
        target.write_text("abc")

        envelope = await _call(
            handler, "replace_specific_text", pathInProject="a.txt", oldText="zzz", newText="y"
        )
        assert envelope.is_error
        assert envelope.text == "no occurrences found"
        assert target.read_text() == "abc"

    async def test_missing_file(self, handler: RequestHandler) -> None:
        envelope = await _call(
            handler, "replace_specific_text", pathInProject="a.txt", oldText="a", newText="b"
        )
        assert envelope.text == "File not found: a.txt"


class TestDeferredRefresh:
    def _rewrite_tool(self, memory_binding: Any, root: Path) -> RewriteFileContentTool:
        cache = ContentCache(memory_binding)
        deferred = DeferredEffects(cache, memory_binding, open_in_editor=False)
        return RewriteFileContentTool(Workspace(root), memory_binding, cache, deferred, LimitSettings())

    async def test_same_size_external_write_is_not_masked(
        self, memory_binding: Any, workspace_root: Path
    ) -> None:
        target = (workspace_root / "a.txt").resolve()
        memory_binding.put(target, "old!")
        tool = self._rewrite_tool(memory_binding, workspace_root)

        envelope = await tool.handle({"pathInProject": "a.txt", "text": "mine"})
        assert envelope.is_error is False
        # Another writer lands before the refresh runs.
        memory_binding.put(target, "THEM")
        await tool.deferred.drain()

        assert target not in tool.cache
        assert await tool.cache.read(target) == "THEM"

    async def test_unreadable_marker_drops_entry(
        self, memory_binding: Any, workspace_root: Path
    ) -> None:
        target = (workspace_root / "a.txt").resolve()
        memory_binding.put(target, "old")
        tool = self._rewrite_tool(memory_binding, workspace_root)
        await tool.cache.read(target)

        memory_binding.fail_stat = True
        envelope = await tool.handle({"pathInProject": "a.txt", "text": "new"})
        await tool.deferred.drain()

        assert envelope.is_error is False
        assert memory_binding.files[str(target)] == "new"
        assert target not in tool.cache
