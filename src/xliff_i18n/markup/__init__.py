"""
Markup decoder.

Parses XML-like markup into a tree that keeps the source location of every
node, optionally recognizing ICU expansion forms inside text.
"""

from .nodes import Attribute, Comment, Element, Expansion, ExpansionCase, Node, Text
from .parser import ParseTreeResult, parse
from .source import ParseError, ParseLocation, ParseSourceFile, ParseSourceSpan

__all__ = [
    "Attribute",
    "Comment",
    "Element",
    "Expansion",
    "ExpansionCase",
    "Node",
    "Text",
    "ParseTreeResult",
    "parse",
    "ParseError",
    "ParseLocation",
    "ParseSourceFile",
    "ParseSourceSpan",
]
