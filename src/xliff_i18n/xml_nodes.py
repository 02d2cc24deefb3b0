"""
XML node model and serializer.

A small closed set of node types used to build XLIFF documents:
- Tag: an element with attributes and children
- Text: character data (escaped when serialized)
- CR: a line break followed by a fixed number of spaces
- Declaration: the ``<?xml ...?>`` prolog

Nodes are immutable once built; children are stored as tuples so that a
subtree can be shared between documents without aliasing surprises.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Tuple, Union

_ESCAPED_CHARS = [
    ('&', '&amp;'),
    ('"', '&quot;'),
    ("'", '&apos;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
]


def escape_xml(text: str) -> str:
    """Escape the five XML special characters."""
    for char, entity in _ESCAPED_CHARS:
        text = text.replace(char, entity)
    return text


@dataclass(frozen=True)
class Tag:
    """An XML element."""
    name: str
    attrs: Mapping[str, str] = field(default_factory=dict)
    children: Tuple["XmlNode", ...] = ()

    def __post_init__(self):
        # Copy so that later changes to the caller's containers are not seen
        object.__setattr__(self, 'attrs', dict(self.attrs))
        object.__setattr__(self, 'children', tuple(self.children))


@dataclass(frozen=True)
class Text:
    """Unescaped character data."""
    value: str


@dataclass(frozen=True)
class CR:
    """Line break followed by ``indent`` spaces."""
    indent: int = 0


@dataclass(frozen=True)
class Declaration:
    """XML declaration (``<?xml version="1.0" ...?>``)."""
    attrs: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'attrs', dict(self.attrs))


XmlNode = Union[Tag, Text, CR, Declaration]


def _serialize_attrs(attrs: Dict[str, str]) -> str:
    str_attrs = ' '.join(f'{name}="{escape_xml(value)}"' for name, value in attrs.items())
    return f' {str_attrs}' if str_attrs else ''


def serialize_node(node: XmlNode) -> str:
    """Render a single node (and its subtree) as XML text."""
    match node:
        case Tag(name=name, attrs=attrs, children=children):
            str_attrs = _serialize_attrs(attrs)
            if not children:
                return f'<{name}{str_attrs}/>'
            return f'<{name}{str_attrs}>{serialize(children)}</{name}>'
        case Text(value=value):
            return escape_xml(value)
        case CR(indent=indent):
            return '\n' + ' ' * indent
        case Declaration(attrs=attrs):
            return f'<?xml{_serialize_attrs(attrs)}?>'
        case _:
            raise TypeError(f"Unsupported XML node: {node!r}")


def serialize(nodes: Iterable[XmlNode]) -> str:
    """Render a sequence of nodes as XML text."""
    return ''.join(serialize_node(node) for node in nodes)
