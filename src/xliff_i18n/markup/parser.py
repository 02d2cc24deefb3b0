"""
Markup parser.

Builds a tree of elements, text, comments and ICU expansions out of the
token stream produced by the lexer. Like the lexer, it records problems and
keeps going so that a single pass reports every error in the input.
"""

from dataclasses import dataclass
from typing import List, Optional

from .lexer import Token, TokenType, tokenize
from .nodes import Attribute, Comment, Element, Expansion, ExpansionCase, Node, Text
from .source import ParseError, ParseSourceSpan


@dataclass
class ParseTreeResult:
    root_nodes: List[Node]
    errors: List[ParseError]


class _TreeBuilder:
    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._index = 0
        self._root_nodes: List[Node] = []
        self._errors: List[ParseError] = []
        self._element_stack: List[Element] = []

    @property
    def _peek(self) -> Token:
        return self._tokens[min(self._index, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        token = self._peek
        if self._index < len(self._tokens) - 1:
            self._index += 1
        return token

    def build(self) -> ParseTreeResult:
        while self._peek.type != TokenType.EOF:
            token = self._advance()
            match token.type:
                case TokenType.TAG_OPEN_START:
                    self._consume_start_tag(token)
                case TokenType.TAG_CLOSE:
                    self._consume_end_tag(token)
                case TokenType.TEXT:
                    self._consume_text(token)
                case TokenType.COMMENT:
                    self._add_to_parent(Comment(token.parts[0], token.source_span))
                case TokenType.EXPANSION_FORM_START:
                    self._consume_expansion(token)
                case _:
                    # doctype, processing instructions and leftovers of lexer errors
                    pass

        for element in reversed(self._element_stack):
            self._add_error(element.start_source_span, f'Unclosed element "{element.name}"')

        return ParseTreeResult(self._root_nodes, self._errors)

    def _add_error(self, span: ParseSourceSpan, msg: str):
        self._errors.append(ParseError(span, msg))

    def _add_to_parent(self, node: Node):
        if self._element_stack:
            self._element_stack[-1].children.append(node)
        else:
            self._root_nodes.append(node)

    def _consume_text(self, token: Token):
        if token.parts[0]:
            self._add_to_parent(Text(token.parts[0], token.source_span))

    def _consume_attr(self, name_token: Token) -> Attribute:
        end = name_token.source_span.end
        value = ''
        if self._peek.type == TokenType.ATTR_VALUE:
            value_token = self._advance()
            value = value_token.parts[0]
            end = value_token.source_span.end
        return Attribute(name_token.parts[0], value, ParseSourceSpan(name_token.source_span.start, end))

    def _consume_start_tag(self, start_token: Token):
        attrs = []
        while self._peek.type == TokenType.ATTR_NAME:
            attrs.append(self._consume_attr(self._advance()))

        end = start_token.source_span.end
        self_closing = False
        if self._peek.type == TokenType.TAG_OPEN_END_VOID:
            self_closing = True
            end = self._advance().source_span.end
        elif self._peek.type == TokenType.TAG_OPEN_END:
            end = self._advance().source_span.end

        span = ParseSourceSpan(start_token.source_span.start, end)
        element = Element(start_token.parts[0], attrs, [], span, span)
        self._add_to_parent(element)
        if self_closing:
            element.end_source_span = span
        else:
            self._element_stack.append(element)

    def _consume_end_tag(self, token: Token):
        name = token.parts[0]
        if self._element_stack and self._element_stack[-1].name == name:
            element = self._element_stack.pop()
            element.end_source_span = token.source_span
            element.source_span = ParseSourceSpan(element.source_span.start, token.source_span.end)
        else:
            self._add_error(
                token.source_span,
                f'Unexpected closing tag "{name}". It may happen when the tag has already been '
                f'closed by another tag.',
            )

    def _consume_expansion(self, start_token: Token):
        if self._peek.type != TokenType.RAW_TEXT:
            self._add_error(start_token.source_span, "Invalid ICU message. Missing '}'.")
            return
        switch_token = self._advance()
        if self._peek.type != TokenType.RAW_TEXT:
            self._add_error(start_token.source_span, "Invalid ICU message. Missing '}'.")
            return
        type_token = self._advance()

        cases = []
        while self._peek.type == TokenType.EXPANSION_CASE_VALUE:
            expansion_case = self._parse_expansion_case()
            if expansion_case is None:
                return
            cases.append(expansion_case)

        if self._peek.type != TokenType.EXPANSION_FORM_END:
            self._add_error(self._peek.source_span, "Invalid ICU message. Missing '}'.")
            return
        end_token = self._advance()

        span = ParseSourceSpan(start_token.source_span.start, end_token.source_span.end)
        self._add_to_parent(Expansion(
            switch_token.parts[0],
            type_token.parts[0],
            cases,
            span,
            switch_token.source_span,
        ))

    def _parse_expansion_case(self) -> Optional[ExpansionCase]:
        value_token = self._advance()

        if self._peek.type != TokenType.EXPANSION_CASE_EXP_START:
            self._add_error(self._peek.source_span, "Invalid ICU message. Missing '{'.")
            return None
        start_token = self._advance()

        exp_tokens = self._collect_expansion_exp_tokens(start_token)
        if exp_tokens is None:
            return None
        end_token = self._advance()
        exp_tokens.append(Token(TokenType.EOF, [], end_token.source_span))

        # case bodies are parsed on their own, they must be balanced
        result = _TreeBuilder(exp_tokens).build()
        if result.errors:
            self._errors.extend(result.errors)
            return None

        span = ParseSourceSpan(value_token.source_span.start, end_token.source_span.end)
        return ExpansionCase(value_token.parts[0], result.root_nodes, span, value_token.source_span)

    def _collect_expansion_exp_tokens(self, start_token: Token) -> Optional[List[Token]]:
        exp: List[Token] = []
        stack = [TokenType.EXPANSION_CASE_EXP_START]

        while True:
            token_type = self._peek.type
            if token_type in (TokenType.EXPANSION_FORM_START, TokenType.EXPANSION_CASE_EXP_START):
                stack.append(token_type)

            if token_type == TokenType.EXPANSION_CASE_EXP_END:
                if stack[-1] != TokenType.EXPANSION_CASE_EXP_START:
                    self._add_error(start_token.source_span, "Invalid ICU message. Missing '}'.")
                    return None
                stack.pop()
                if not stack:
                    return exp

            if token_type == TokenType.EXPANSION_FORM_END:
                if stack[-1] != TokenType.EXPANSION_FORM_START:
                    self._add_error(start_token.source_span, "Invalid ICU message. Missing '}'.")
                    return None
                stack.pop()

            if token_type == TokenType.EOF:
                self._add_error(start_token.source_span, "Invalid ICU message. Missing '}'.")
                return None

            exp.append(self._advance())


def parse(content: str, url: str = "", tokenize_expansion_forms: bool = False) -> ParseTreeResult:
    """
    Parse markup text into a tree.

    Args:
        content: The text to parse
        url: Name of the source, only used in error locations
        tokenize_expansion_forms: Recognize ICU expressions (``{n, plural, ...}``)

    Returns:
        ParseTreeResult with the root nodes and every lexing and parsing error
    """
    tokenized = tokenize(content, url, tokenize_expansion_forms)
    tree = _TreeBuilder(tokenized.tokens).build()
    return ParseTreeResult(tree.root_nodes, tokenized.errors + tree.errors)
