"""
GCAD lexer for tokenizing raw script text.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from gcad.utils.errors import ScriptSyntaxError
from gcad.utils.units import UNIT_SYMBOLS


class TokenType(Enum):
    # Literals and names
    NUMBER = "number"
    STRING = "string"
    IDENT = "identifier"

    # Keywords
    FOR = "'for'"
    IN = "'in'"

    # Operators
    PLUS = "'+'"
    MINUS = "'-'"
    STAR = "'*'"
    SLASH = "'/'"
    CARET = "'^'"
    BANG = "'!'"
    EQUALS = "'='"

    # Punctuation
    COMMA = "','"
    SEMICOLON = "';'"
    LPAREN = "'('"
    RPAREN = "')'"
    LBRACE = "'{'"
    RBRACE = "'}'"

    # Special
    EOF = "end of input"


@dataclass
class Token:
    """Represents a single token in a script."""
    type: TokenType
    value: str
    line_number: int
    column: int
    unit: Optional[str] = None

    def __str__(self):
        if self.type == TokenType.EOF:
            return self.type.value
        return f"'{self.value}'"


class ScriptLexer:
    """Tokenizes script text into a stream of tokens."""

    # Longest symbols first so 'mm' wins over 'm'
    _UNITS = '|'.join(sorted(UNIT_SYMBOLS, key=len, reverse=True))

    NUMBER_PATTERN = re.compile(
        r'(\d+\.\d+|\.\d+|\d+)(' + _UNITS + r')?(?![A-Za-z0-9_.])')
    IDENT_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
    STRING_PATTERN = re.compile(r"'((?:[^']|'')*)'")

    KEYWORDS = {
        'for': TokenType.FOR,
        'in': TokenType.IN,
    }

    PUNCTUATION = {
        '+': TokenType.PLUS,
        '-': TokenType.MINUS,
        '*': TokenType.STAR,
        '/': TokenType.SLASH,
        '^': TokenType.CARET,
        '!': TokenType.BANG,
        '=': TokenType.EQUALS,
        ',': TokenType.COMMA,
        ';': TokenType.SEMICOLON,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        '{': TokenType.LBRACE,
        '}': TokenType.RBRACE,
    }

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize the entire script text."""
        tokens = []
        lines = text.split('\n')

        for line_num, line in enumerate(lines, 1):
            tokens.extend(self._tokenize_line(line, line_num))

        last_line = lines[-1] if lines else ''
        tokens.append(Token(TokenType.EOF, '', len(lines), len(last_line) + 1))
        return tokens

    def _tokenize_line(self, line: str, line_number: int) -> List[Token]:
        """Tokenize a single line of script."""
        tokens = []
        pos = 0

        while pos < len(line):
            char = line[pos]
            column = pos + 1

            # Whitespace, including the CR of CRLF endings
            if char in ' \t\r':
                pos += 1
                continue

            # Comments consume rest of line
            if line.startswith('//', pos):
                break

            if char == "'":
                string_match = self.STRING_PATTERN.match(line, pos)
                if not string_match:
                    raise ScriptSyntaxError(
                        "unterminated string literal",
                        line_number, column, expected="closing quote")
                text = string_match.group(1).replace("''", "'")
                tokens.append(Token(TokenType.STRING, text, line_number, column))
                pos = string_match.end()
                continue

            if char.isdigit() or (char == '.' and line[pos + 1:pos + 2].isdigit()):
                number_match = self.NUMBER_PATTERN.match(line, pos)
                if not number_match:
                    bad = re.match(r'[A-Za-z0-9_.]+', line[pos:]).group(0)
                    raise ScriptSyntaxError(
                        f"invalid number literal '{bad}'",
                        line_number, column,
                        expected=f"number optionally followed by one of {', '.join(UNIT_SYMBOLS)}")
                tokens.append(Token(TokenType.NUMBER, number_match.group(1),
                                    line_number, column, unit=number_match.group(2)))
                pos = number_match.end()
                continue

            ident_match = self.IDENT_PATTERN.match(line, pos)
            if ident_match:
                word = ident_match.group(0)
                token_type = self.KEYWORDS.get(word, TokenType.IDENT)
                tokens.append(Token(token_type, word, line_number, column))
                pos = ident_match.end()
                continue

            token_type = self.PUNCTUATION.get(char)
            if token_type:
                tokens.append(Token(token_type, char, line_number, column))
                pos += 1
                continue

            raise ScriptSyntaxError(
                f"unrecognized character '{char}'", line_number, column)

        return tokens
