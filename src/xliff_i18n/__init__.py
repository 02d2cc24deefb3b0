"""
XLIFF 1.2 serializer for i18n messages.

Reads translations out of XLIFF files into i18n message trees and writes
i18n messages as XLIFF documents, keeping placeholders, nested markup and
ICU expressions intact across the round trip.
"""

from .errors import DecodeResult, I18nError, XliffParseError
from .i18n import (
    Container,
    I18nNode,
    Icu,
    IcuPlaceholder,
    Message,
    MessageSpan,
    Placeholder,
    TagPlaceholder,
    Text,
)
from .xliff import (
    compute_message_digest,
    decode_messages,
    decode_raw_units,
    encode_document,
    load_messages,
    load_raw_units,
)

__version__ = "0.1.0"

__all__ = [
    "DecodeResult",
    "I18nError",
    "XliffParseError",
    "Container",
    "I18nNode",
    "Icu",
    "IcuPlaceholder",
    "Message",
    "MessageSpan",
    "Placeholder",
    "TagPlaceholder",
    "Text",
    "compute_message_digest",
    "decode_messages",
    "decode_raw_units",
    "encode_document",
    "load_messages",
    "load_raw_units",
]
