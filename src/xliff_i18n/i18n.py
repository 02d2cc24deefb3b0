"""
i18n message model.

A message is an ordered sequence of nodes:
- Text: literal content
- Container: grouping without markup of its own (ICU case bodies)
- Placeholder: an opaque substitution point such as an interpolation
- TagPlaceholder: an element stripped out of the text, re-inserted on render
- IcuPlaceholder: a reference to a nested ICU expression
- Icu: a plural/select expression with one node per case label

All nodes are immutable. ``source_span`` records where a decoded node came
from and does not take part in equality.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple, Union


def _freeze(node: Any, **values: Any):
    for name, value in values.items():
        object.__setattr__(node, name, value)


@dataclass(frozen=True)
class Text:
    value: str
    source_span: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Container:
    children: Tuple["I18nNode", ...] = ()
    source_span: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        _freeze(self, children=tuple(self.children))


@dataclass(frozen=True)
class Icu:
    expression_placeholder: str
    type: str
    cases: Mapping[str, "I18nNode"] = field(default_factory=dict)
    source_span: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        _freeze(self, cases=dict(self.cases))


@dataclass(frozen=True)
class Placeholder:
    name: str
    value: str = ""
    source_span: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TagPlaceholder:
    tag: str
    start_name: str
    close_name: str = ""
    is_void: bool = False
    children: Tuple["I18nNode", ...] = ()
    source_span: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        _freeze(self, children=tuple(self.children))


@dataclass(frozen=True)
class IcuPlaceholder:
    name: str
    value: Icu
    source_span: Any = field(default=None, compare=False, repr=False)


I18nNode = Union[Text, Container, Icu, Placeholder, TagPlaceholder, IcuPlaceholder]


@dataclass(frozen=True)
class MessageSpan:
    """Where a message was found: the file and its 1-based start line."""
    file_path: str
    start_line: int


@dataclass(frozen=True)
class Message:
    """
    A translatable message.

    Attributes:
        id: Unique id of the message within a document
        nodes: The message content
        sources: Locations of the message in the source templates
        description: Optional note for translators
        meaning: Optional disambiguation of identical texts
    """
    id: str
    nodes: Tuple[I18nNode, ...] = ()
    sources: Tuple[MessageSpan, ...] = ()
    description: Optional[str] = None
    meaning: Optional[str] = None

    def __post_init__(self):
        _freeze(self, nodes=tuple(self.nodes), sources=tuple(self.sources))


def flatten(nodes: Sequence[I18nNode]) -> Tuple[I18nNode, ...]:
    """
    Remove Container wrappers from a node sequence, recursively.

    Adjacent text nodes are merged. Two messages with the same flattened
    content render identically.
    """
    flat = []

    def append(node: I18nNode):
        if isinstance(node, Text) and flat and isinstance(flat[-1], Text):
            flat[-1] = Text(flat[-1].value + node.value, flat[-1].source_span)
        else:
            flat.append(node)

    for node in nodes:
        match node:
            case Container(children=children):
                for child in flatten(children):
                    append(child)
            case TagPlaceholder():
                append(TagPlaceholder(
                    node.tag, node.start_name, node.close_name, node.is_void,
                    flatten(node.children), node.source_span,
                ))
            case Icu(cases=cases):
                append(Icu(
                    node.expression_placeholder,
                    node.type,
                    {label: Container(flatten([body])) for label, body in cases.items()},
                    node.source_span,
                ))
            case _:
                append(node)
    return tuple(flat)
