"""
Markup tokenizer.

Splits XML-like text into a flat token stream: tags, attributes, text,
comments and, when requested, ICU expansion forms such as
``{count, plural, =0 {none} other {many}}``.

Errors never abort tokenization: they are recorded and the tokenizer
resumes after the offending character.
"""

import html.entities
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .source import ParseError, ParseSourceFile, ParseSourceSpan


class TokenType(Enum):
    TAG_OPEN_START = auto()
    TAG_OPEN_END = auto()
    TAG_OPEN_END_VOID = auto()
    TAG_CLOSE = auto()
    ATTR_NAME = auto()
    ATTR_VALUE = auto()
    TEXT = auto()
    COMMENT = auto()
    DOC_TYPE = auto()
    PROCESSING_INSTRUCTION = auto()
    EXPANSION_FORM_START = auto()
    RAW_TEXT = auto()
    EXPANSION_CASE_VALUE = auto()
    EXPANSION_CASE_EXP_START = auto()
    EXPANSION_CASE_EXP_END = auto()
    EXPANSION_FORM_END = auto()
    EOF = auto()


@dataclass
class Token:
    type: TokenType
    parts: List[str]
    source_span: ParseSourceSpan


@dataclass
class TokenizeResult:
    tokens: List[Token]
    errors: List[ParseError]


class _LexerError(Exception):
    def __init__(self, msg: str, offset: int):
        super().__init__(msg)
        self.msg = msg
        self.offset = offset


_NAME_END_CHARS = frozenset(' \t\n\r\f\v<>/\'"=')


def _is_name_start(char: str) -> bool:
    return char.isalpha() or char in '_:'


class Lexer:
    """Tokenizer over a single source file."""

    def __init__(self, file: ParseSourceFile, tokenize_expansion_forms: bool = False):
        self._file = file
        self._input = file.content
        self._length = len(self._input)
        self._index = 0
        self._tokenize_icu = tokenize_expansion_forms
        self._expansion_stack: List[TokenType] = []
        self._in_interpolation = False
        self._tokens: List[Token] = []
        self._errors: List[ParseError] = []

    def tokenize(self) -> TokenizeResult:
        while self._index < self._length:
            start = self._index
            try:
                if self._is_tag_start():
                    self._index += 1
                    if self._attempt_str('!'):
                        if self._attempt_str('[CDATA['):
                            self._consume_cdata(start)
                        elif self._attempt_str('--'):
                            self._consume_comment(start)
                        else:
                            self._consume_delimited(start, '>', TokenType.DOC_TYPE)
                    elif self._attempt_str('?'):
                        self._consume_delimited(start, '?>', TokenType.PROCESSING_INSTRUCTION)
                    elif self._attempt_str('/'):
                        self._consume_tag_close(start)
                    else:
                        self._consume_tag_open(start)
                elif not (self._tokenize_icu and self._tokenize_expansion_form()):
                    self._consume_text()
            except _LexerError as e:
                self._add_error(e.msg, e.offset)
                if self._index == start:
                    self._index += 1

        self._emit(TokenType.EOF, [], self._length)
        return TokenizeResult(_merge_text_tokens(self._tokens), self._errors)

    # -- helpers ---------------------------------------------------------

    def _peek(self, ahead: int = 0) -> str:
        position = self._index + ahead
        return self._input[position] if position < self._length else ''

    def _attempt_str(self, text: str) -> bool:
        if self._input.startswith(text, self._index):
            self._index += len(text)
            return True
        return False

    def _require_str(self, text: str):
        if not self._attempt_str(text):
            raise _LexerError(self._unexpected_character_message(), self._index)

    def _unexpected_character_message(self) -> str:
        if self._index >= self._length:
            return 'Unexpected character "EOF"'
        return f'Unexpected character "{self._peek()}"'

    def _skip_whitespace(self):
        while self._index < self._length and self._input[self._index].isspace():
            self._index += 1

    def _read_until(self, char: str) -> str:
        start = self._index
        end = self._input.find(char, start)
        if end == -1:
            self._index = self._length
            raise _LexerError('Unexpected character "EOF"', self._length)
        self._index = end
        return self._input[start:end]

    def _read_name(self) -> str:
        start = self._index
        while self._index < self._length and self._input[self._index] not in _NAME_END_CHARS:
            self._index += 1
        if self._index == start:
            raise _LexerError(self._unexpected_character_message(), self._index)
        return self._input[start:self._index]

    def _span(self, start: int, end: Optional[int] = None) -> ParseSourceSpan:
        end = self._index if end is None else end
        return ParseSourceSpan(self._file.location_at(start), self._file.location_at(end))

    def _emit(self, token_type: TokenType, parts: List[str], start: int):
        self._tokens.append(Token(token_type, parts, self._span(start)))

    def _add_error(self, msg: str, offset: int):
        self._errors.append(ParseError(self._span(offset, offset), msg))

    def _is_tag_start(self) -> bool:
        if self._peek() != '<':
            return False
        next_char = self._peek(1)
        return _is_name_start(next_char) or next_char in '/!?'

    # -- markup ----------------------------------------------------------

    def _consume_cdata(self, start: int):
        content = self._read_until(']]>')
        self._index += 3
        self._emit(TokenType.TEXT, [content], start)

    def _consume_comment(self, start: int):
        content = self._read_until('-->')
        self._index += 3
        self._emit(TokenType.COMMENT, [content], start)

    def _consume_delimited(self, start: int, end_marker: str, token_type: TokenType):
        content = self._read_until(end_marker)
        self._index += len(end_marker)
        self._emit(token_type, [content], start)

    def _consume_tag_open(self, start: int):
        name = self._read_name()
        self._emit(TokenType.TAG_OPEN_START, [name], start)
        self._skip_whitespace()
        while self._peek() not in ('/', '>', ''):
            self._consume_attribute()
            self._skip_whitespace()
        end_start = self._index
        if self._attempt_str('/>'):
            self._emit(TokenType.TAG_OPEN_END_VOID, [], end_start)
        else:
            self._require_str('>')
            self._emit(TokenType.TAG_OPEN_END, [], end_start)

    def _consume_attribute(self):
        name_start = self._index
        name = self._read_name()
        self._emit(TokenType.ATTR_NAME, [name], name_start)
        self._skip_whitespace()
        if not self._attempt_str('='):
            return
        self._skip_whitespace()
        value_start = self._index
        quote = self._peek()
        if quote in ('"', "'"):
            self._index += 1
            raw_value = self._read_until(quote)
            self._index += 1
        else:
            while self._index < self._length and not (
                self._input[self._index].isspace() or self._input[self._index] in '>/'
            ):
                self._index += 1
            raw_value = self._input[value_start:self._index]
        value = self._decode_entities(raw_value, value_start + (1 if quote in ('"', "'") else 0))
        self._emit(TokenType.ATTR_VALUE, [value], value_start)

    def _consume_tag_close(self, start: int):
        self._skip_whitespace()
        name = self._read_name()
        self._skip_whitespace()
        self._require_str('>')
        self._emit(TokenType.TAG_CLOSE, [name], start)

    def _consume_text(self):
        start = self._index
        parts = []
        self._in_interpolation = False
        while not self._is_text_end():
            if self._tokenize_icu and self._attempt_str('{{'):
                parts.append('{{')
                self._in_interpolation = True
            elif self._tokenize_icu and self._in_interpolation and self._attempt_str('}}'):
                parts.append('}}')
                self._in_interpolation = False
            elif self._peek() == '&':
                parts.append(self._read_entity())
            else:
                parts.append(self._input[self._index])
                self._index += 1
        self._emit(TokenType.TEXT, [''.join(parts)], start)

    def _is_text_end(self) -> bool:
        if self._index >= self._length or self._is_tag_start():
            return True
        if self._tokenize_icu and not self._in_interpolation:
            if self._is_expansion_form_start():
                return True
            if self._peek() == '}' and self._is_in_expansion_case():
                return True
        return False

    # -- entities --------------------------------------------------------

    def _read_entity(self) -> str:
        start = self._index
        self._index += 1
        if self._attempt_str('#'):
            is_hex = self._attempt_str('x') or self._attempt_str('X')
            digits_start = self._index
            valid_digits = '0123456789abcdefABCDEF' if is_hex else '0123456789'
            while self._index < self._length and self._input[self._index] in valid_digits:
                self._index += 1
            digits = self._input[digits_start:self._index]
            if not digits or not self._attempt_str(';'):
                kind = 'hexadecimal' if is_hex else 'decimal'
                self._add_error(
                    f'Unable to parse entity "{self._input[start:self._index]}" - '
                    f'{kind} character reference entities must end with ";"',
                    start,
                )
                return self._input[start:self._index]
            try:
                return chr(int(digits, 16 if is_hex else 10))
            except (ValueError, OverflowError):
                self._add_error(f'Invalid character reference "{self._input[start:self._index]}"', start)
                return self._input[start:self._index]

        name_start = self._index
        while self._index < self._length and self._input[self._index].isalnum():
            self._index += 1
        name = self._input[name_start:self._index]
        if not name or self._peek() != ';':
            # not an entity, keep the ampersand as plain text
            self._index = start + 1
            return '&'
        self._index += 1
        char = html.entities.html5.get(f'{name};')
        if char is None:
            self._add_error(
                f'Unknown entity "{name}" - use the "&#<decimal>;" or "&#x<hex>;" syntax',
                start,
            )
            return self._input[start:self._index]
        return char

    def _decode_entities(self, raw: str, offset: int) -> str:
        if '&' not in raw:
            return raw
        # Decode with a nested lexer so entity errors point into the original text
        saved = (self._index, self._length)
        self._index, self._length = offset, offset + len(raw)
        parts = []
        try:
            while self._index < self._length:
                if self._input[self._index] == '&':
                    parts.append(self._read_entity())
                else:
                    parts.append(self._input[self._index])
                    self._index += 1
        finally:
            self._index, self._length = saved
        return ''.join(parts)

    # -- ICU expansion forms ---------------------------------------------

    def _is_expansion_form_start(self) -> bool:
        return self._peek() == '{' and not self._input.startswith('{{', self._index)

    def _is_in_expansion_case(self) -> bool:
        return bool(self._expansion_stack) and self._expansion_stack[-1] == TokenType.EXPANSION_CASE_EXP_START

    def _is_in_expansion_form(self) -> bool:
        return bool(self._expansion_stack) and self._expansion_stack[-1] == TokenType.EXPANSION_FORM_START

    def _tokenize_expansion_form(self) -> bool:
        if self._is_expansion_form_start():
            self._consume_expansion_form_start()
            return True
        if self._is_in_expansion_form() and self._peek() != '}':
            self._consume_expansion_case_start()
            return True
        if self._peek() == '}':
            if self._is_in_expansion_case():
                self._consume_expansion_case_end()
                return True
            if self._is_in_expansion_form():
                self._consume_expansion_form_end()
                return True
        return False

    def _consume_expansion_form_start(self):
        start = self._index
        self._index += 1
        self._emit(TokenType.EXPANSION_FORM_START, [], start)
        self._expansion_stack.append(TokenType.EXPANSION_FORM_START)

        for _ in range(2):
            raw_start = self._index
            raw_text = self._read_until(',')
            self._emit(TokenType.RAW_TEXT, [raw_text.strip()], raw_start)
            self._require_str(',')
            self._skip_whitespace()

    def _consume_expansion_case_start(self):
        start = self._index
        value = self._read_until('{').strip()
        self._emit(TokenType.EXPANSION_CASE_VALUE, [value], start)

        exp_start = self._index
        self._require_str('{')
        self._emit(TokenType.EXPANSION_CASE_EXP_START, [], exp_start)
        self._expansion_stack.append(TokenType.EXPANSION_CASE_EXP_START)

    def _consume_expansion_case_end(self):
        start = self._index
        self._require_str('}')
        self._emit(TokenType.EXPANSION_CASE_EXP_END, [], start)
        self._skip_whitespace()
        self._expansion_stack.pop()

    def _consume_expansion_form_end(self):
        start = self._index
        self._require_str('}')
        self._emit(TokenType.EXPANSION_FORM_END, [], start)
        self._expansion_stack.pop()


def _merge_text_tokens(tokens: List[Token]) -> List[Token]:
    merged: List[Token] = []
    for token in tokens:
        previous = merged[-1] if merged else None
        if token.type == TokenType.TEXT and previous is not None and previous.type == TokenType.TEXT:
            merged[-1] = Token(
                TokenType.TEXT,
                [previous.parts[0] + token.parts[0]],
                ParseSourceSpan(previous.source_span.start, token.source_span.end),
            )
        else:
            merged.append(token)
    return merged


def tokenize(content: str, url: str = "", tokenize_expansion_forms: bool = False) -> TokenizeResult:
    """Tokenize ``content``; ``url`` is only used in error locations."""
    return Lexer(ParseSourceFile(content, url), tokenize_expansion_forms).tokenize()
