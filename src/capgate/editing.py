"""Span edits on Python source text.

``ast`` reports positions as (line, UTF-8 byte column) pairs. The editor
turns them into character offsets and splices replacement text into the
original source, so everything outside an edited span keeps its exact
bytes: comments, blank lines, quoting style and trailing whitespace.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Union

from .exceptions import InternalError

_NEWLINE = re.compile(r"\r\n|\r|\n")

Span = tuple[int, int]


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    text: str


class SourceEditor:
    def __init__(self, source: str):
        self.source = source
        self._line_starts = [0] + [m.end() for m in _NEWLINE.finditer(source)]
        self._edits: list[Edit] = []

    # -- positions -----------------------------------------------------------

    def offset(self, lineno: int, col_offset: int) -> int:
        """Character offset of an ast (line, byte column) position."""
        if lineno < 1 or lineno > len(self._line_starts):
            raise InternalError(f"Line {lineno} is outside the source")
        start = self._line_starts[lineno - 1]
        end = self._line_starts[lineno] if lineno < len(self._line_starts) else len(self.source)
        line = self.source[start:end]
        return start + len(line.encode("utf-8")[:col_offset].decode("utf-8", errors="ignore"))

    def span(self, node: ast.AST) -> Span:
        return (
            self.offset(node.lineno, node.col_offset),
            self.offset(node.end_lineno, node.end_col_offset),
        )

    def text(self, node: ast.AST) -> str:
        start, end = self.span(node)
        return self.source[start:end]

    def line_start(self, lineno: int) -> int:
        return self._line_starts[lineno - 1]

    def line_end(self, lineno: int) -> int:
        """Offset just past the line break of *lineno* (or end of source)."""
        if lineno < len(self._line_starts):
            return self._line_starts[lineno]
        return len(self.source)

    def indent_of(self, node: ast.AST) -> str:
        start = self.line_start(node.lineno)
        return self.source[start : self.offset(node.lineno, node.col_offset)]

    def newline(self) -> str:
        match = _NEWLINE.search(self.source)
        return match.group(0) if match else "\n"

    def owns_lines(self, node: ast.stmt) -> bool:
        """True when *node* is alone on the lines it spans."""
        start, end = self.span(node)
        before = self.source[self.line_start(node.lineno) : start]
        after = self.source[end : self.line_end(node.end_lineno)]
        return not before.strip() and (not after.strip() or after.strip().startswith("#"))

    # -- edits ---------------------------------------------------------------

    def replace(self, target: Union[ast.AST, Span], text: str) -> None:
        start, end = self.span(target) if isinstance(target, ast.AST) else target
        self._edits.append(Edit(start, end, text))

    def insert(self, offset: int, text: str) -> None:
        self._edits.append(Edit(offset, offset, text))

    def delete_lines(self, node: ast.stmt) -> None:
        """Remove a statement together with its line break."""
        self._edits.append(Edit(self.line_start(node.lineno), self.line_end(node.end_lineno), ""))

    @property
    def has_edits(self) -> bool:
        return bool(self._edits)

    def apply(self) -> str:
        """Source with all edits applied.

        An edit nested inside another edit is dropped in favor of the outer
        one (an instantiation replaced as a whole also covers a type hint
        inside its arguments). Partially overlapping edits are a bug.
        """
        # insertions sort before a replacement starting at the same offset
        ordered = sorted(
            enumerate(self._edits),
            key=lambda item: (item[1].start, item[1].end > item[1].start, -item[1].end, item[0]),
        )
        accepted: list[Edit] = []
        outer: Edit | None = None
        for _, edit in ordered:
            if edit.start == edit.end:
                if outer is not None and outer.start < edit.start < outer.end:
                    continue
                accepted.append(edit)
                continue
            if outer is not None and edit.start < outer.end:
                if edit.end <= outer.end:
                    continue
                raise InternalError(
                    f"Overlapping source edits at offsets {outer.start}-{outer.end} and {edit.start}-{edit.end}"
                )
            accepted.append(edit)
            outer = edit

        result = self.source
        for edit in reversed(accepted):
            result = result[: edit.start] + edit.text + result[edit.end :]
        return result
