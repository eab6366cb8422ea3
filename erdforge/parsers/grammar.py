"""
Recursive-descent grammar for the supported DDL subset.

    statement   := create_table | alter_table | <anything else, ignored>
    create_table:= CREATE [OR REPLACE] [TEMPORARY ...] TABLE [IF NOT EXISTS] name
                   [ '(' clause {',' clause} ')' ] [options]
    alter_table := ALTER TABLE [ONLY] [IF EXISTS] name action {',' action}
    action      := ADD [CONSTRAINT name] constraint
    clause      := [CONSTRAINT name] constraint | index_clause | column_def
    constraint  := PRIMARY KEY (names) | FOREIGN KEY (names) REFERENCES name [(names)]
                 | UNIQUE (names)
    column_def  := name [type] {option}

Only syntax lives here. Binding constraints to columns is the linker's job.
"""

from typing import List, Optional

from erdforge.constants import (
    SQLKeyword, TABLE_PREFIXES, INDEX_CLAUSE_KEYWORDS,
    COLUMN_CONSTRAINT_KEYWORDS, TYPE_MODIFIERS,
)
from erdforge.parsers.ast import (
    Statement, Clause, CreateTableStatement, AlterTableStatement, IgnoredStatement,
    ColumnDefinition, PrimaryKeyConstraint, ForeignKeyConstraint, UniqueConstraint,
    IgnoredClause, ReferenceSpec,
)
from erdforge.parsers.lexer import Token, RawStatement, WORD, QUOTED, NUMBER, render_tokens
from erdforge.parsers.utils import clean_name

K = SQLKeyword


class TokenCursor:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def next(self) -> Optional[Token]:
        tok = self.peek()
        if tok is not None:
            self.pos += 1
        return tok

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def accept_word(self, *words) -> bool:
        tok = self.peek()
        if tok is not None and tok.is_word(*words):
            self.pos += 1
            return True
        return False

    def accept_sequence(self, *words) -> bool:
        """Consumes the words only if all of them follow, in order."""
        for offset, word in enumerate(words):
            tok = self.peek(offset)
            if tok is None or not tok.is_word(word):
                return False
        self.pos += len(words)
        return True

    def peek_punct(self, value: str) -> bool:
        tok = self.peek()
        return tok is not None and tok.is_punct(value)

    def rest(self) -> List[Token]:
        remaining = self.tokens[self.pos:]
        self.pos = len(self.tokens)
        return remaining


def split_top_level(tokens: List[Token], separator: str = ',') -> List[List[Token]]:
    """Splits on separators outside parentheses, so DECIMAL(10,2) stays whole."""
    parts = [[]]
    depth = 0
    for tok in tokens:
        if tok.is_punct('('):
            depth += 1
        elif tok.is_punct(')'):
            depth = max(depth - 1, 0)
        elif tok.is_punct(separator) and depth == 0:
            parts.append([])
            continue
        parts[-1].append(tok)
    return [part for part in parts if part]


class StatementParser:
    """Turns one split statement into an AST node."""

    def parse(self, statement: RawStatement) -> Statement:
        cur = TokenCursor(statement.tokens)

        if cur.accept_word(K.CREATE):
            cur.accept_sequence("OR", "REPLACE")
            while cur.peek() is not None and cur.peek().kind == WORD and cur.peek().upper in TABLE_PREFIXES:
                cur.next()
            if cur.accept_word(K.TABLE):
                return self._parse_create_table(cur, statement.text)
        elif cur.accept_sequence(K.ALTER, K.TABLE):
            return self._parse_alter_table(cur, statement.text)

        return IgnoredStatement(text=statement.text, reason="not a CREATE TABLE or ALTER TABLE statement")

    def _parse_create_table(self, cur: TokenCursor, text: str) -> Statement:
        cur.accept_sequence(K.IF, K.NOT, K.EXISTS)
        name = self._read_name(cur)
        if not name:
            return IgnoredStatement(text=text, reason="CREATE TABLE without a table name")

        stmt = CreateTableStatement(name=name)
        if not cur.peek_punct('('):
            # CREATE TABLE ... AS SELECT, LIKE, or a truncated statement
            stmt.has_body = False
            return stmt

        body = self._read_group(cur)
        if body is None:
            stmt.has_body = False
            return stmt

        for clause_tokens in split_top_level(body):
            stmt.clauses.append(self.parse_clause(clause_tokens))
        return stmt

    def _parse_alter_table(self, cur: TokenCursor, text: str) -> Statement:
        cur.accept_word(K.ONLY)
        cur.accept_sequence(K.IF, K.EXISTS)
        cur.accept_word(K.ONLY)
        name = self._read_name(cur)
        if not name:
            return IgnoredStatement(text=text, reason="ALTER TABLE without a table name")

        stmt = AlterTableStatement(table=name)
        for action_tokens in split_top_level(cur.rest()):
            stmt.actions.append(self.parse_alter_action(action_tokens))
        return stmt

    def parse_alter_action(self, tokens: List[Token]) -> Clause:
        cur = TokenCursor(tokens)
        text = render_tokens(tokens)
        if not cur.accept_word(K.ADD):
            return IgnoredClause(text=text, reason="unsupported ALTER TABLE action")

        name = self._read_constraint_name(cur)
        tok = cur.peek()
        if tok is not None and tok.is_word(K.PRIMARY, K.FOREIGN, K.UNIQUE):
            return self._parse_constraint(cur, name, text)
        return IgnoredClause(text=text, reason="unsupported ALTER TABLE ADD action")

    def parse_clause(self, tokens: List[Token]) -> Clause:
        """Classifies one comma-separated piece of a CREATE TABLE body."""
        cur = TokenCursor(tokens)
        text = render_tokens(tokens)
        first = cur.peek()

        if first.is_word(K.CONSTRAINT):
            name = self._read_constraint_name(cur)
            return self._parse_constraint(cur, name, text)

        if first.is_word(K.PRIMARY, K.FOREIGN, K.UNIQUE):
            return self._parse_constraint(cur, None, text)

        reason = self._ignored_clause_reason(tokens)
        if reason:
            return IgnoredClause(text=text, reason=reason)

        return self._parse_column(cur, text)

    def _ignored_clause_reason(self, tokens: List[Token]) -> Optional[str]:
        """
        Recognizes index, CHECK, EXCLUDE, PERIOD FOR and LIKE clauses by their
        shape, not only their first word, so a column named period or exclude
        is still read as a column.
        """
        first = tokens[0]
        if first.kind != WORD:
            return None
        nxt = tokens[1] if len(tokens) > 1 else None

        if first.upper in INDEX_CLAUSE_KEYWORDS:
            # KEY idx (a, b) has a column list; key VARCHAR(10) has type parameters
            if self._has_index_columns(TokenCursor(tokens[1:])):
                return "index clause"
        elif first.is_word(K.CHECK):
            if nxt is not None and nxt.is_punct('('):
                return "check clause"
        elif first.is_word(K.EXCLUDE):
            if nxt is not None and (nxt.is_punct('(') or nxt.is_word(K.USING)):
                return "exclusion constraint"
        elif first.is_word(K.PERIOD):
            if nxt is not None and nxt.is_word(K.FOR):
                return "period clause"
        elif first.is_word(K.LIKE):
            cur = TokenCursor(tokens[1:])
            if self._read_name(cur) and (cur.at_end() or cur.peek().is_word(K.INCLUDING, K.EXCLUDING)):
                return "LIKE clause"
        return None

    def _has_index_columns(self, cur: TokenCursor) -> bool:
        self._skip_to_group(cur)
        if not cur.peek_punct('('):
            return False
        inner = self._read_group(cur)
        if not inner:
            return False
        return all(part[0].is_identifier for part in split_top_level(inner))

    def _read_constraint_name(self, cur: TokenCursor) -> Optional[str]:
        if not cur.accept_word(K.CONSTRAINT):
            return None
        # Postgres accepts CONSTRAINT with the name left out
        tok = cur.peek()
        if tok is not None and tok.is_word(K.PRIMARY, K.FOREIGN, K.UNIQUE, K.CHECK):
            return None
        return self._read_name(cur)

    def _parse_constraint(self, cur: TokenCursor, name: Optional[str], text: str) -> Clause:
        if cur.accept_sequence(K.PRIMARY, K.KEY):
            self._skip_to_group(cur)
            cols = self._read_name_list(cur)
            if cols:
                return PrimaryKeyConstraint(columns=cols, name=name)
            return IgnoredClause(text=text, reason="PRIMARY KEY without a column list")

        if cur.accept_sequence(K.FOREIGN, K.KEY):
            self._skip_to_group(cur)
            cols = self._read_name_list(cur)
            if cols and cur.accept_word(K.REFERENCES):
                ref = self._read_reference(cur)
                if ref:
                    return ForeignKeyConstraint(columns=cols, reference=ref, name=name)
            return IgnoredClause(text=text, reason="incomplete FOREIGN KEY clause")

        if cur.accept_word(K.UNIQUE):
            tok = cur.peek()
            if tok is not None and tok.is_word(K.KEY, K.INDEX):
                return IgnoredClause(text=text, reason="unique index")
            self._skip_to_group(cur)
            cols = self._read_name_list(cur)
            if cols:
                return UniqueConstraint(columns=cols, name=name)
            return IgnoredClause(text=text, reason="UNIQUE without a column list")

        return IgnoredClause(text=text, reason="unsupported constraint")

    def _parse_column(self, cur: TokenCursor, text: str) -> Clause:
        first = cur.next()
        if not first.is_identifier:
            return IgnoredClause(text=text, reason="clause does not start with a column name")
        name = clean_name(first.value)
        if not name:
            return IgnoredClause(text=text, reason="empty column name")

        col = ColumnDefinition(name=name, data_type=render_tokens(self._read_type(cur)))

        depth = 0
        while not cur.at_end():
            tok = cur.next()
            if tok.is_punct('('):
                depth += 1
                continue
            if tok.is_punct(')'):
                depth = max(depth - 1, 0)
                continue
            if depth:
                # CHECK (...) and DEFAULT (...) bodies carry no flags
                continue

            nxt = cur.peek()
            if tok.is_word(K.PRIMARY) and nxt is not None and nxt.is_word(K.KEY):
                cur.next()
                col.primary_key = True
            elif tok.is_word(K.NOT) and nxt is not None and nxt.is_word(K.NULL):
                cur.next()
                col.not_null = True
            elif tok.is_word(K.UNIQUE):
                col.unique = True
            elif tok.is_word(K.REFERENCES):
                ref = self._read_reference(cur)
                if ref:
                    col.reference = ref

        return col

    def _read_type(self, cur: TokenCursor) -> List[Token]:
        tok = cur.peek()
        if tok is None or not tok.is_identifier:
            return []
        if tok.kind == WORD and tok.upper in COLUMN_CONSTRAINT_KEYWORDS:
            # Untyped column, e.g. SQLite's "id PRIMARY KEY"
            return []

        tokens = [cur.next()]
        while True:
            tok = cur.peek()
            if tok is None:
                break
            if tok.is_punct('('):
                open_paren = tok
                start = cur.pos
                inner = self._read_group(cur)
                if inner is None:
                    cur.pos = start
                    break
                tokens.append(open_paren)
                tokens.extend(inner)
                tokens.append(cur.tokens[cur.pos - 1])
            elif tok.is_punct('.') and cur.peek(1) is not None and cur.peek(1).is_identifier:
                tokens.append(cur.next())
                tokens.append(cur.next())
            elif tok.is_punct('['):
                # Array suffix: [] or [n]
                if cur.peek(1) is not None and cur.peek(1).is_punct(']'):
                    tokens.extend([cur.next(), cur.next()])
                elif (cur.peek(1) is not None and cur.peek(1).kind == NUMBER
                        and cur.peek(2) is not None and cur.peek(2).is_punct(']')):
                    tokens.extend([cur.next(), cur.next(), cur.next()])
                else:
                    break
            elif tok.kind == WORD and tok.upper in TYPE_MODIFIERS:
                tokens.append(cur.next())
            elif tok.is_word(K.WITH, K.WITHOUT) and cur.peek(1) is not None and cur.peek(1).is_word(K.TIME) \
                    and cur.peek(2) is not None and cur.peek(2).is_word(K.ZONE):
                tokens.extend([cur.next(), cur.next(), cur.next()])
            else:
                break
        return tokens

    def _read_reference(self, cur: TokenCursor) -> Optional[ReferenceSpec]:
        table = self._read_name(cur)
        if not table:
            return None
        cols = []
        if cur.peek_punct('('):
            cols = self._read_name_list(cur) or []
        return ReferenceSpec(table=table, columns=cols)

    def _read_name(self, cur: TokenCursor) -> Optional[str]:
        """Reads a possibly qualified name and keeps its last part (schema.table -> table)."""
        tok = cur.peek()
        if tok is None or not tok.is_identifier:
            return None
        name = cur.next().value
        while cur.peek_punct('.') and cur.peek(1) is not None and cur.peek(1).is_identifier:
            cur.next()
            name = cur.next().value
        return clean_name(name)

    def _read_name_list(self, cur: TokenCursor) -> Optional[List[str]]:
        if not cur.peek_punct('('):
            return None
        inner = self._read_group(cur)
        if inner is None:
            return None
        names = []
        for part in split_top_level(inner):
            # Ignores ASC/DESC and MySQL prefix lengths: (name(10) DESC)
            if part[0].is_identifier:
                names.append(clean_name(part[0].value))
        return names

    def _skip_to_group(self, cur: TokenCursor):
        # MySQL index names and USING BTREE before the column list
        while cur.peek() is not None and cur.peek().kind in (WORD, QUOTED):
            cur.next()

    def _read_group(self, cur: TokenCursor) -> Optional[List[Token]]:
        """Consumes a balanced ( ... ) group and returns what is inside it."""
        cur.next()
        depth = 1
        inner = []
        while not cur.at_end():
            tok = cur.next()
            if tok.is_punct('('):
                depth += 1
            elif tok.is_punct(')'):
                depth -= 1
                if depth == 0:
                    return inner
            inner.append(tok)
        return None
