"""
Passive parser for PowerShell data files (.psd1 module manifests).

Module manifests are read as plain data: nothing is evaluated, so a
dependency can be checked even when it cannot be loaded.

Grammar (the data-file literal subset):
    document   := value
    value      := item (',' item)*
    item       := hashtable | array | string | number | constant
    hashtable  := '@{' [entry (sep entry)*] '}'
    entry      := key '=' value
    key        := bareword | string | number
    array      := '@(' [value (sep value)*] ')'
    sep        := ';' | newline
    constant   := '$true' | '$false' | '$null'
    string     := '...' | "..." | @'...'@ | @"..."@

Examples:
    @{ ModuleVersion = '1.2.0'; RequiredModules = @('Pester') }
    @{
        RequiredModules = @(
            @{ ModuleName = 'PSScriptAnalyzer'; ModuleVersion = '1.21.0' }
        )
    }
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union
import logging

logger = logging.getLogger(__name__)


class DataFileParseError(ValueError):
    """Error while parsing a data file."""

    def __init__(self, message: str, line: int = 0):
        if line:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


@dataclass
class Token:
    kind: str   # HASH_OPEN, ARRAY_OPEN, RBRACE, RPAREN, EQUALS, SEMI, COMMA, NEWLINE, STRING, NUMBER, WORD, CONST, EOF
    value: Any
    line: int


CONSTANTS = {'$true': True, '$false': False, '$null': None}

DOUBLE_QUOTE_ESCAPES = {
    '0': '\0', 'a': '\a', 'b': '\b', 'f': '\f', 'n': '\n',
    'r': '\r', 't': '\t', 'v': '\v', 'e': '\x1b',
}

NUMBER_RE = re.compile(r'^-?(\d+(\.\d+)?|\.\d+)$')
WORD_RE = re.compile(r'[A-Za-z0-9_.\-]+')


class Tokenizer:
    """Turns data-file text into tokens, rejecting anything executable."""

    def __init__(self, text: str):
        self.text = text.lstrip('\ufeff')
        self.pos = 0
        self.line = 1

    def error(self, message: str) -> DataFileParseError:
        return DataFileParseError(message, self.line)

    def tokens(self) -> List[Token]:
        result = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]

            if ch == '\n':
                result.append(Token('NEWLINE', None, self.line))
                self.line += 1
                self.pos += 1
            elif ch in ' \t\r':
                self.pos += 1
            elif ch == '`' and text[self.pos + 1:self.pos + 2] in ('\n', '\r'):
                # Line continuation
                end = text.index('\n', self.pos)
                self.pos = end + 1
                self.line += 1
            elif text.startswith('<#', self.pos):
                self._skip_block_comment()
            elif ch == '#':
                end = text.find('\n', self.pos)
                self.pos = len(text) if end == -1 else end
            elif text.startswith("@'", self.pos) or text.startswith('@"', self.pos):
                if self._at_here_string():
                    result.append(self._here_string())
                else:
                    raise self.error("unexpected '@'")
            elif text.startswith('@{', self.pos):
                result.append(Token('HASH_OPEN', None, self.line))
                self.pos += 2
            elif text.startswith('@(', self.pos):
                result.append(Token('ARRAY_OPEN', None, self.line))
                self.pos += 2
            elif ch == '}':
                result.append(Token('RBRACE', None, self.line))
                self.pos += 1
            elif ch == ')':
                result.append(Token('RPAREN', None, self.line))
                self.pos += 1
            elif ch == '=':
                result.append(Token('EQUALS', None, self.line))
                self.pos += 1
            elif ch == ';':
                result.append(Token('SEMI', None, self.line))
                self.pos += 1
            elif ch == ',':
                result.append(Token('COMMA', None, self.line))
                self.pos += 1
            elif ch == "'":
                result.append(self._single_quoted())
            elif ch == '"':
                result.append(self._double_quoted())
            elif ch == '$':
                result.append(self._constant())
            else:
                match = WORD_RE.match(text, self.pos)
                if not match:
                    raise self.error(f"unexpected character {ch!r}")
                word = match.group(0)
                self.pos = match.end()
                if NUMBER_RE.match(word):
                    number = float(word) if '.' in word else int(word)
                    result.append(Token('NUMBER', number, self.line))
                else:
                    result.append(Token('WORD', word, self.line))

        result.append(Token('EOF', None, self.line))
        return result

    def _skip_block_comment(self) -> None:
        end = self.text.find('#>', self.pos + 2)
        if end == -1:
            raise self.error("unterminated block comment")
        self.line += self.text.count('\n', self.pos, end)
        self.pos = end + 2

    def _at_here_string(self) -> bool:
        rest = self.text[self.pos + 2:]
        stripped = rest.lstrip(' \t')
        return stripped.startswith('\n') or stripped.startswith('\r\n')

    def _here_string(self) -> Token:
        quote = self.text[self.pos + 1]
        start_line = self.line
        opening_newline = self.text.index('\n', self.pos)
        # The closing quote-at must start a line; an empty body closes on the next line.
        terminator = re.compile(r'\r?\n' + re.escape(quote) + '@')
        match = terminator.search(self.text, opening_newline)
        if not match:
            raise self.error("unterminated here-string")
        body = self.text[opening_newline + 1:match.start()] if match.start() > opening_newline else ''
        if quote == '"':
            body = self._expand_double(body, start_line)
        self.line += self.text.count('\n', self.pos, match.end())
        self.pos = match.end()
        return Token('STRING', body.replace('\r\n', '\n'), start_line)

    def _single_quoted(self) -> Token:
        start_line = self.line
        self.pos += 1
        chars = []
        while True:
            if self.pos >= len(self.text):
                raise DataFileParseError("unterminated string", start_line)
            ch = self.text[self.pos]
            if ch == "'":
                if self.text[self.pos + 1:self.pos + 2] == "'":
                    chars.append("'")
                    self.pos += 2
                    continue
                self.pos += 1
                break
            if ch == '\n':
                self.line += 1
            chars.append(ch)
            self.pos += 1
        return Token('STRING', ''.join(chars), start_line)

    def _double_quoted(self) -> Token:
        start_line = self.line
        self.pos += 1
        start = self.pos
        while True:
            if self.pos >= len(self.text):
                raise DataFileParseError("unterminated string", start_line)
            ch = self.text[self.pos]
            if ch == '`':
                self.pos += 2
                continue
            if ch == '"':
                if self.text[self.pos + 1:self.pos + 2] == '"':
                    self.pos += 2
                    continue
                break
            self.pos += 1
        raw = self.text[start:self.pos]
        self.line += raw.count('\n')
        self.pos += 1
        return Token('STRING', self._expand_double(raw, start_line), start_line)

    def _expand_double(self, raw: str, line: int = 0) -> str:
        """Resolve escapes in a double-quoted body; reject variable expansion."""
        chars = []
        i = 0
        while i < len(raw):
            ch = raw[i]
            if ch == '`' and i + 1 < len(raw):
                nxt = raw[i + 1]
                chars.append(DOUBLE_QUOTE_ESCAPES.get(nxt, nxt))
                i += 2
            elif ch == '"' and raw[i + 1:i + 2] == '"':
                chars.append('"')
                i += 2
            elif ch == '$' and i + 1 < len(raw) and (raw[i + 1].isalnum() or raw[i + 1] in '_{(:'):
                raise DataFileParseError("variable expansion is not allowed in data files", line or self.line)
            else:
                chars.append(ch)
                i += 1
        return ''.join(chars)

    def _constant(self) -> Token:
        match = re.compile(r'\$[A-Za-z_][A-Za-z0-9_]*').match(self.text, self.pos)
        word = match.group(0).lower() if match else '$'
        if word not in CONSTANTS:
            raise self.error(f"variables are not allowed in data files: {word}")
        self.pos = match.end()
        return Token('CONST', CONSTANTS[word], self.line)


class DataFileParser:
    """
    Recursive-descent parser over Tokenizer output.

    Usage:
        data = DataFileParser(text).parse()
    """

    def __init__(self, text: str):
        self.tokens = Tokenizer(text).tokens()
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != 'EOF':
            self.index += 1
        return token

    def _skip(self, *kinds: str) -> None:
        while self.current.kind in kinds:
            self.index += 1

    def _expect(self, kind: str) -> Token:
        token = self.current
        if token.kind != kind:
            raise DataFileParseError(f"expected {kind}, found {token.kind}", token.line)
        return self._advance()

    def parse(self) -> Any:
        self._skip('NEWLINE', 'SEMI')
        if self.current.kind == 'EOF':
            raise DataFileParseError("data file is empty", self.current.line)
        value = self._value()
        self._skip('NEWLINE', 'SEMI')
        if self.current.kind != 'EOF':
            raise DataFileParseError(f"unexpected {self.current.kind} after value", self.current.line)
        return value

    def _value(self) -> Any:
        first = self._item()
        if self.current.kind != 'COMMA':
            return first
        items = [first]
        while self.current.kind == 'COMMA':
            self._advance()
            self._skip('NEWLINE')
            items.append(self._item())
        return items

    def _item(self) -> Any:
        token = self.current
        if token.kind == 'HASH_OPEN':
            return self._hashtable()
        if token.kind == 'ARRAY_OPEN':
            return self._array()
        if token.kind in ('STRING', 'NUMBER', 'CONST'):
            self._advance()
            return token.value
        if token.kind == 'WORD':
            raise DataFileParseError(f"bare word '{token.value}' is not a value (commands are not allowed)", token.line)
        raise DataFileParseError(f"unexpected {token.kind}", token.line)

    def _hashtable(self) -> Dict[str, Any]:
        self._expect('HASH_OPEN')
        result: Dict[str, Any] = {}
        self._skip('NEWLINE', 'SEMI')
        while self.current.kind != 'RBRACE':
            key_token = self._advance()
            if key_token.kind not in ('WORD', 'STRING', 'NUMBER'):
                raise DataFileParseError(f"expected a key, found {key_token.kind}", key_token.line)
            self._skip('NEWLINE')
            self._expect('EQUALS')
            self._skip('NEWLINE')
            result[str(key_token.value)] = self._value()
            if self.current.kind not in ('NEWLINE', 'SEMI', 'RBRACE'):
                raise DataFileParseError(f"expected ';' or newline, found {self.current.kind}", self.current.line)
            self._skip('NEWLINE', 'SEMI')
        self._expect('RBRACE')
        return result

    def _array(self) -> List[Any]:
        self._expect('ARRAY_OPEN')
        items: List[Any] = []
        self._skip('NEWLINE', 'SEMI')
        # Comma lists inside @( ) flatten into the array; nested @( ) stays nested.
        while self.current.kind != 'RPAREN':
            items.append(self._item())
            if self.current.kind not in ('NEWLINE', 'SEMI', 'RPAREN', 'COMMA'):
                raise DataFileParseError(f"expected ',' or newline, found {self.current.kind}", self.current.line)
            self._skip('NEWLINE', 'SEMI', 'COMMA')
        self._expect('RPAREN')
        return items


def parse_data_file(text: str) -> Dict[str, Any]:
    """
    Parse data-file text whose top-level value must be a hashtable.

    Raises:
        DataFileParseError: On any syntax outside the data-file subset
    """
    data = DataFileParser(text).parse()
    if not isinstance(data, dict):
        raise DataFileParseError("top-level value must be a hashtable (@{ ... })")
    return data


def load_data_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and parse a data file."""
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8-sig')
    except UnicodeDecodeError:
        text = path.read_text(encoding='utf-16')
    logger.debug(f"Parsing data file {path}")
    return parse_data_file(text)
