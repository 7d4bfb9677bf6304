"""Positional edit algorithms used by the file-mutating tools.

Pure text transforms: each takes the current full text and returns the new
full text. Writing the result back is the caller's job.

Line endings: the dominant style of a text is CRLF if it contains any
``\\r\\n`` and LF otherwise. Edits are computed on LF-normalised text and the
detected style is restored afterwards.
"""

from __future__ import annotations

from typing import NamedTuple

from wsbridge.errors import EditError, InvalidRangeError, NotFoundError

CRLF = "\r\n"
LF = "\n"


class Replacement(NamedTuple):
    text: str
    count: int


def detect_line_ending(text: str) -> str:
    return CRLF if CRLF in text else LF


def normalize_line_endings(text: str, *, lone_cr: bool = False) -> str:
    """Convert CRLF (and, with *lone_cr*, bare CR) to LF."""
    text = text.replace(CRLF, LF)
    if lone_cr:
        text = text.replace("\r", LF)
    return text


def _restore(text: str, ending: str) -> str:
    return text if ending == LF else text.replace(LF, ending)


def adapt_line_endings(existing: str, addition: str) -> str:
    """Rewrite *addition*'s line endings to match *existing*."""
    return _restore(normalize_line_endings(addition), detect_line_ending(existing))


def replace_range(
    text: str,
    start_line: int,
    end_line: int,
    replacement: str,
    offset: int = 0,
) -> str:
    """Replace lines ``start_line..end_line`` (1-based, inclusive).

    When both bounds name the same line the replacement overwrites that line
    in place starting at *offset*: characters before *offset* and after
    ``offset + len(replacement)`` are kept. A shorter replacement therefore
    does not pull the rest of the line left. *offset* is ignored for
    multi-line ranges.

    Raises:
        InvalidRangeError: Bounds outside ``1 <= start_line <= end_line <=
            line_count`` or a negative *offset*. An empty text has one empty
            line.
    """
    ending = detect_line_ending(text)
    lines = normalize_line_endings(text).split(LF)
    adapted = normalize_line_endings(replacement)

    if start_line < 1 or end_line > len(lines) or start_line > end_line:
        raise InvalidRangeError(
            f"lines {start_line}-{end_line} outside 1-{len(lines)}"
        )
    if offset < 0:
        raise InvalidRangeError(f"negative offset {offset}")

    start = start_line - 1
    if start_line == end_line:
        line = lines[start]
        lines[start] = line[:offset] + adapted + line[offset + len(adapted):]
    else:
        lines[start:end_line] = adapted.split(LF)

    # Joining on LF first also converts newlines embedded in a single-line
    # replacement.
    return _restore(LF.join(lines), ending)


def replace_all(text: str, old: str, new: str) -> Replacement:
    """Replace every literal occurrence of *old* with *new*.

    Matching is done on LF-normalised copies of all three strings, so *old*
    may span line breaks regardless of the file's style. Nothing in *old* is
    interpreted as a pattern.

    Raises:
        EditError: *old* is empty.
        NotFoundError: *old* does not occur in *text*.
    """
    ending = detect_line_ending(text)
    current = normalize_line_endings(text, lone_cr=True)
    needle = normalize_line_endings(old, lone_cr=True)
    substitute = normalize_line_endings(new, lone_cr=True)

    if not needle:
        raise EditError("oldText must not be empty")

    count = current.count(needle)
    if count == 0:
        raise NotFoundError("no occurrences found")

    return Replacement(_restore(current.replace(needle, substitute), ending), count)


def append(existing: str, addition: str) -> str:
    """Append *addition* after adapting its line endings to *existing*.

    The existing text is not normalised; its bytes are kept as they are.
    """
    return existing + adapt_line_endings(existing, addition)
