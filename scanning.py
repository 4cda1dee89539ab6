"""
toypl Scanner
Turns source text into tokens using an ordered list of pyparsing lexical rules
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pyparsing import Keyword, Literal, ParseException, ParserElement, Regex

from error_handling import ToyplLexError


class TokenType(Enum):
    """Lexical categories of toypl"""

    # Symbols, delimiters
    EOF = "EOF"
    EOL = "EOL"
    SEMICOLON = ";"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    COMMA = ","
    DOT = "."
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"

    # Keywords
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    DEF = "def"
    MUT = "mut"
    SET = "set"
    IF = "if"
    THEN = "then"
    ELSE = "else"
    WHILE = "while"
    DO = "do"
    LAMBDA = "lambda"
    CLASS = "class"
    NEW = "new"

    NUMBER = "NUMBER"
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"


@dataclass(frozen=True)
class Token:
    """toypl token with the raw matched text"""
    type: TokenType
    value: Optional[str] = None
    line: int = field(default=1, compare=False)

    def __str__(self) -> str:
        if self.value is None:
            return self.type.name
        return f"{self.type.name}({self.value})"


# Keyword boundaries follow regex word characters: `while_x` is an identifier,
# `while-x` is the keyword followed by the identifier `-x`
WORD_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_"


def _rule(element: ParserElement) -> ParserElement:
    """Anchor a pyparsing element at the cursor: no whitespace skipping, no tab expansion"""
    return element.leave_whitespace().parse_with_tabs()


def _keyword(word: str) -> ParserElement:
    return _rule(Keyword(word, ident_chars=WORD_CHARS))


# Order matters: the first matching rule wins
LEXICAL_RULES: List[Tuple[ParserElement, Optional[TokenType]]] = [
    (_rule(Literal("\n")), TokenType.EOL),
    (_rule(Regex(r"[^\S\n]+")), None),                # Whitespace

    (_rule(Regex(r"#.*")), None),                     # Bash style comment
    (_rule(Regex(r"//.*")), None),                    # C/JS style comment
    (_rule(Regex(r"/\*[\s\S]*?\*/")), None),          # C style multiline

    # Symbols, delimiters
    (_rule(Literal(";")), TokenType.SEMICOLON),
    (_rule(Literal("{")), TokenType.LEFT_BRACE),
    (_rule(Literal("}")), TokenType.RIGHT_BRACE),
    (_rule(Literal("(")), TokenType.LEFT_PAREN),
    (_rule(Literal(")")), TokenType.RIGHT_PAREN),
    (_rule(Literal(",")), TokenType.COMMA),
    (_rule(Literal(".")), TokenType.DOT),
    (_rule(Literal("[")), TokenType.LEFT_BRACKET),
    (_rule(Literal("]")), TokenType.RIGHT_BRACKET),

    # Keywords
    (_keyword("true"), TokenType.TRUE),
    (_keyword("false"), TokenType.FALSE),
    (_keyword("null"), TokenType.NULL),
    (_keyword("def"), TokenType.DEF),
    (_keyword("mut"), TokenType.MUT),
    (_keyword("set"), TokenType.SET),
    (_keyword("if"), TokenType.IF),
    (_keyword("then"), TokenType.THEN),
    (_keyword("else"), TokenType.ELSE),
    (_keyword("while"), TokenType.WHILE),
    (_keyword("do"), TokenType.DO),
    (_rule(Literal("λ")), TokenType.LAMBDA),
    (_keyword("lambda"), TokenType.LAMBDA),
    (_keyword("class"), TokenType.CLASS),
    (_keyword("new"), TokenType.NEW),

    (_rule(Regex(r"\d+", flags=re.ASCII)), TokenType.NUMBER),

    # Operators are ordinary identifiers
    (_rule(Regex(r"[\w\-+*=<>_]+", flags=re.ASCII)), TokenType.IDENTIFIER),

    (_rule(Regex(r'"[^"]*"')), TokenType.STRING),
    (_rule(Regex(r"'[^']*'")), TokenType.STRING),
]


class Scanner:
    """Produces one token at a time from the source text"""

    def __init__(self, source: str):
        self.source = source
        self.cursor = 0
        self.line = 1

    def has_more_tokens(self) -> bool:
        return self.cursor < len(self.source)

    def get_next_token(self) -> Token:
        """Return the next significant token, or EOF once the input is exhausted"""
        while self.has_more_tokens():
            remaining = self.source[self.cursor:]
            token_type, matched = self._match(remaining)

            self.cursor += len(matched)
            if token_type is TokenType.EOL:
                self.line += 1
                continue
            if token_type is None:
                self.line += matched.count("\n")
                continue

            return Token(token_type, matched, self.line)

        return Token(TokenType.EOF, None, self.line)

    def _match(self, remaining: str) -> Tuple[Optional[TokenType], str]:
        for element, token_type in LEXICAL_RULES:
            try:
                result = element.parse_string(remaining)
            except ParseException:
                continue
            return token_type, result[0]

        raise ToyplLexError(
            f'Unexpected character: "{remaining[0]}" at line: {self.line}', self.line
        )

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including the first EOF"""
        while True:
            token = self.get_next_token()
            yield token
            if token.type is TokenType.EOF:
                return


def tokenize(text: str) -> List[Token]:
    """Tokenize toypl source code; the list always ends with a single EOF token"""
    return list(Scanner(text))
