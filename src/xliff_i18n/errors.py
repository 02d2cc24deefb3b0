"""
Error types for XLIFF decoding.

Decoding collects every problem it finds instead of stopping at the first
one. Each stage returns a DecodeResult; the public functions turn a
non-empty error list into a single XliffParseError.
"""

from dataclasses import dataclass, field
from typing import Generic, List, Sequence, TypeVar

from . import constants
from .markup.source import ParseError, ParseSourceFile, ParseSourceSpan

T = TypeVar("T")


class I18nError(ParseError):
    """A structural problem in an XLIFF document (missing id, unexpected tag...)."""


@dataclass
class DecodeResult(Generic[T]):
    """A decoded value together with the errors found while producing it."""
    value: T
    errors: List[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value, or raise XliffParseError if any error was collected."""
        if self.errors:
            raise XliffParseError(self.errors)
        return self.value


def check_document_size(content: str, url: str = "") -> List[ParseError]:
    """
    Reject documents whose UTF-8 encoding exceeds MAX_DOCUMENT_SIZE.

    Returns:
        A single-error list for an oversized document, else an empty list
    """
    size = len(content.encode("utf-8"))
    if size <= constants.MAX_DOCUMENT_SIZE:
        return []

    start = ParseSourceFile(content, url).location_at(0)
    return [I18nError(
        ParseSourceSpan(start, start),
        f"Document too large: {size / (1024*1024):.1f}MB "
        f"(max: {constants.MAX_DOCUMENT_SIZE / (1024*1024):.0f}MB)",
    )]


class XliffParseError(ValueError):
    """
    Raised when an XLIFF document could not be decoded.

    The message lists every error found, one per line. The individual
    errors are available in ``errors``.
    """

    def __init__(self, errors: Sequence[ParseError]):
        self.errors = list(errors)
        details = "\n".join(str(error) for error in self.errors)
        super().__init__(f"xliff parse errors:\n{details}")
