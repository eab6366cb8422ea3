"""
Token stream for the DDL grammar.

sqlparse does the lexing (string literals, quoted identifiers, comments,
numbers); this module flattens its output into the few token kinds the
grammar cares about and splits a script into statements.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from sqlparse import lexer
from sqlparse import tokens as T

from erdforge.constants import IGNORED_STATEMENT_PATTERN
from erdforge.logging_config import get_logger

logger = get_logger("lexer")

WORD = "word"          # keywords and bare identifiers
QUOTED = "quoted"      # "name", `name`, [name]
STRING = "string"      # 'text', $$text$$
NUMBER = "number"
PUNCT = "punct"        # ( ) , ; . [ ] ::
OTHER = "other"        # operators, placeholders, anything unrecognized


@dataclass(frozen=True)
class Token:
    kind: str
    value: str

    @property
    def upper(self) -> str:
        return self.value.upper()

    def is_word(self, *words) -> bool:
        return self.kind == WORD and self.value.upper() in words

    def is_punct(self, value: str) -> bool:
        return self.kind == PUNCT and self.value == value

    @property
    def is_identifier(self) -> bool:
        return self.kind in (WORD, QUOTED)


@dataclass
class RawStatement:
    text: str
    tokens: List[Token] = field(default_factory=list)


def _convert(ttype, value: str) -> List[Token]:
    if ttype in T.Whitespace or ttype in T.Comment:
        return []
    if ttype in T.String.Symbol:
        return [Token(QUOTED, value)]
    if ttype in T.Name and value[:1] in ('`', '['):
        return [Token(QUOTED, value)]
    if ttype in T.Number:
        return [Token(NUMBER, value)]
    if ttype in T.String or ttype in T.Literal:
        return [Token(STRING, value)]
    if ttype in T.Punctuation:
        return [Token(PUNCT, value)]
    if ttype in T.Name.Placeholder:
        return [Token(OTHER, value)]
    if ttype in T.Keyword or ttype in T.Name:
        # sqlparse folds NOT NULL, PRIMARY KEY, DOUBLE PRECISION into one token
        return [Token(WORD, part) for part in value.split()]
    return [Token(OTHER, value)]


def tokenize(sql: str) -> List[Token]:
    """Lexes SQL text into grammar tokens, dropping whitespace and comments."""
    result = []
    for ttype, value in lexer.tokenize(sql):
        result.extend(_convert(ttype, value))
    return result


def split_statements(sql: str) -> List[RawStatement]:
    """
    Splits a script at every semicolon token.

    Semicolons inside string literals or quoted identifiers never split,
    since the lexer hands those over as single tokens. An unbalanced
    parenthesis does not carry over into the next statement. Statements are
    trimmed, empty ones dropped, and ignore-listed ones (SET, USE,
    CREATE DATABASE, DROP TABLE, INSERT INTO, /*! ... */) discarded.
    """
    statements = []
    raw_parts = []
    tokens = []

    def flush():
        text = "".join(raw_parts).strip()
        if tokens:
            if IGNORED_STATEMENT_PATTERN.match(text):
                logger.debug(f"Skipping ignore-listed statement: {text[:50]}",
                             extra={'operation': 'split', 'statement': text[:100]})
            else:
                statements.append(RawStatement(text=text, tokens=list(tokens)))
        raw_parts.clear()
        tokens.clear()

    for ttype, value in lexer.tokenize(sql):
        if ttype in T.Punctuation and value == ';':
            flush()
            continue
        raw_parts.append(value)
        tokens.extend(_convert(ttype, value))

    flush()
    return statements


def render_tokens(tokens: Iterable[Token]) -> str:
    """Joins tokens back into text: INT(11) UNSIGNED, DECIMAL(10,2), TEXT[]."""
    out = []
    prev = None
    for tok in tokens:
        word_like = tok.kind not in (PUNCT, OTHER)
        if prev is not None and word_like and (prev.kind not in (PUNCT, OTHER) or prev.is_punct(')')):
            out.append(' ')
        out.append(tok.value)
        prev = tok
    return "".join(out)


def normalize_type(data_type: str) -> str:
    """Spells a type the way the parser reads it back: 'decimal( 10, 2 )' -> 'decimal(10,2)'."""
    return render_tokens(tokenize(data_type.strip()))
