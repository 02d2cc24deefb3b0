"""Markup tree produced by the markup parser."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .source import ParseSourceSpan


@dataclass
class Text:
    value: str
    source_span: ParseSourceSpan


@dataclass
class Attribute:
    name: str
    value: str
    source_span: ParseSourceSpan


@dataclass
class Comment:
    value: str
    source_span: ParseSourceSpan


@dataclass
class Element:
    """
    An element and its content.

    ``start_source_span`` covers the opening tag and ``end_source_span`` the
    closing tag. For a self-closing element both spans are the same.
    ``end_source_span`` is None while the element is still open.
    """
    name: str
    attrs: List[Attribute]
    children: List["Node"]
    source_span: ParseSourceSpan
    start_source_span: ParseSourceSpan
    end_source_span: Optional[ParseSourceSpan] = None

    def get_attr(self, name: str) -> Optional[Attribute]:
        return next((attr for attr in self.attrs if attr.name == name), None)


@dataclass
class ExpansionCase:
    value: str
    expression: List["Node"]
    source_span: ParseSourceSpan
    value_source_span: ParseSourceSpan


@dataclass
class Expansion:
    """An ICU expression: ``{switch_value, type, case {...} ...}``."""
    switch_value: str
    type: str
    cases: List[ExpansionCase] = field(default_factory=list)
    source_span: Optional[ParseSourceSpan] = None
    switch_value_source_span: Optional[ParseSourceSpan] = None


Node = Union[Text, Comment, Element, Expansion, ExpansionCase, Attribute]
