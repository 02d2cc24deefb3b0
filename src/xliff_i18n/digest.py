"""
Message id digest.

Computes a stable id for a message from its content and meaning, so that
the same text extracted twice gets the same trans-unit id.
"""

import hashlib
from typing import Sequence

from .i18n import Container, I18nNode, Icu, IcuPlaceholder, Message, Placeholder, TagPlaceholder, Text


def serialize_node(node: I18nNode) -> str:
    """Canonical text form of a node, used as digest input."""
    match node:
        case Text(value=value):
            return value
        case Container(children=children):
            return f"[{', '.join(serialize_node(child) for child in children)}]"
        case Icu(expression_placeholder=expression, type=icu_type, cases=cases):
            str_cases = ', '.join(f"{label} {{{serialize_node(body)}}}" for label, body in cases.items())
            return f"{{{expression}, {icu_type}, {str_cases}}}"
        case TagPlaceholder(is_void=True):
            return f'<ph tag name="{node.start_name}"/>'
        case TagPlaceholder():
            children = ', '.join(serialize_node(child) for child in node.children)
            return f'<ph tag name="{node.start_name}">{children}</ph name="{node.close_name}">'
        case Placeholder(name=name, value=value):
            return f'<ph name="{name}">{value}</ph>' if value else f'<ph name="{name}"/>'
        case IcuPlaceholder(name=name, value=icu):
            return f'<ph icu name="{name}">{serialize_node(icu)}</ph>'
        case _:
            raise TypeError(f"Unsupported i18n node: {node!r}")


def serialize_nodes(nodes: Sequence[I18nNode]) -> str:
    return ''.join(serialize_node(node) for node in nodes)


def sha1(text: str) -> str:
    """Lowercase hex SHA-1 of the UTF-8 encoding of ``text``."""
    return hashlib.sha1(text.encode('utf-8')).hexdigest()


def digest(message: Message) -> str:
    """
    Return the id of a message.

    An explicit id wins; otherwise the id is derived from the content and
    the meaning, so identical texts with different meanings get distinct ids.
    """
    if message.id:
        return message.id
    return sha1(f"{serialize_nodes(message.nodes)}[{message.meaning or ''}]")
