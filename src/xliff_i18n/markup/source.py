"""
Source locations and parse errors for the markup decoder.

Every node produced by the markup parser points back into the text it was
parsed from, so errors can be reported with a line, a column and a snippet
of the surrounding content.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from functools import cached_property
from typing import List


@dataclass(frozen=True)
class ParseSourceFile:
    """The text being parsed and where it came from."""
    content: str
    url: str = ""

    @cached_property
    def _line_starts(self) -> List[int]:
        starts = [0]
        starts.extend(match.end() for match in re.finditer('\n', self.content))
        return starts

    def location_at(self, offset: int) -> "ParseLocation":
        """Build a location for a character offset, computing line and column."""
        offset = max(0, min(offset, len(self.content)))
        line = bisect_right(self._line_starts, offset) - 1
        return ParseLocation(self, offset, line, offset - self._line_starts[line])

    def location_at_line(self, line: int, col: int = 0) -> "ParseLocation":
        """
        Build a location from a 0-based line and column.

        Used for errors coming from parsers that only report line numbers.
        """
        line = max(0, min(line, len(self._line_starts) - 1))
        return self.location_at(self._line_starts[line] + max(col, 0))


@dataclass(frozen=True)
class ParseLocation:
    """A position in a source file. ``line`` and ``col`` are 0-based."""
    file: ParseSourceFile = field(repr=False)
    offset: int
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.file.url}@{self.line}:{self.col}"

    def get_context(self, max_chars: int = 20) -> str:
        """Return a snippet around the location with an error marker inserted."""
        content = self.file.content
        before = content[max(0, self.offset - max_chars):self.offset]
        after = content[self.offset:self.offset + max_chars]
        # keep the snippet on a single line
        before = before.rsplit('\n', 1)[-1]
        after = after.split('\n', 1)[0]
        return f"{before}[ERROR ->]{after}"


@dataclass(frozen=True)
class ParseSourceSpan:
    """A range of source text, ``end`` is exclusive."""
    start: ParseLocation
    end: ParseLocation

    @property
    def text(self) -> str:
        return self.start.file.content[self.start.offset:self.end.offset]

    def __str__(self) -> str:
        return self.text


class ParseError:
    """An error found while parsing, attached to the span where it occurred."""

    def __init__(self, span: ParseSourceSpan, msg: str):
        self.span = span
        self.msg = msg

    def __str__(self) -> str:
        return f'{self.msg} ("{self.span.start.get_context()}"): {self.span.start}'

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.msg!r}, {self.span.start})"
