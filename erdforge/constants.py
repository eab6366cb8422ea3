"""
erdforge SQL Constants

Centralized definitions for SQL keywords and parser/generator constants
to reduce magic strings throughout the codebase.
"""

import re
from enum import Enum
from typing import Set, FrozenSet


class SQLKeyword(str, Enum):
    """SQL keywords the DDL grammar matches on."""

    # DDL Keywords
    CREATE = "CREATE"
    ALTER = "ALTER"
    TABLE = "TABLE"
    INDEX = "INDEX"

    # Constraint Keywords
    PRIMARY = "PRIMARY"
    FOREIGN = "FOREIGN"
    KEY = "KEY"
    UNIQUE = "UNIQUE"
    CHECK = "CHECK"
    CONSTRAINT = "CONSTRAINT"
    REFERENCES = "REFERENCES"

    # Column Modifiers
    NOT = "NOT"
    NULL = "NULL"
    DEFAULT = "DEFAULT"

    # Data Definition
    ADD = "ADD"
    ONLY = "ONLY"
    USING = "USING"
    FOR = "FOR"
    LIKE = "LIKE"
    EXCLUDE = "EXCLUDE"
    PERIOD = "PERIOD"
    INCLUDING = "INCLUDING"
    EXCLUDING = "EXCLUDING"

    # Other
    IF = "IF"
    EXISTS = "EXISTS"
    WITH = "WITH"
    WITHOUT = "WITHOUT"
    TIME = "TIME"
    ZONE = "ZONE"


class ResolutionMode(str, Enum):
    """When table-level and ALTER TABLE constraints are bound to columns."""

    # Bind after every table of the input is known
    DEFERRED = "deferred"
    # Bind against what has been defined so far, in source order
    SEQUENTIAL = "sequential"


# Statements dropped by the splitter before classification
IGNORED_STATEMENT_PATTERN = re.compile(
    r'^(?:SET\s|USE\s|CREATE\s+DATABASE\b|DROP\s+TABLE\b|INSERT\s+INTO\b|/\*!)',
    re.IGNORECASE,
)

# Words allowed between CREATE and TABLE
TABLE_PREFIXES: FrozenSet[str] = frozenset({"TEMPORARY", "TEMP", "UNLOGGED", "GLOBAL", "LOCAL"})

# Index clause starters: KEY idx (a), INDEX (a), FULLTEXT KEY ft (body)
INDEX_CLAUSE_KEYWORDS: FrozenSet[str] = frozenset({"KEY", "INDEX", "FULLTEXT", "SPATIAL"})

# Keywords that end the data type of a column definition
COLUMN_CONSTRAINT_KEYWORDS: FrozenSet[str] = frozenset({
    "NOT", "NULL", "PRIMARY", "UNIQUE", "REFERENCES", "DEFAULT", "CONSTRAINT",
    "CHECK", "COLLATE", "COMMENT", "AUTO_INCREMENT", "AUTOINCREMENT",
    "GENERATED", "IDENTITY", "ON", "KEY", "AS",
})

# Words that continue a data type, e.g. INT UNSIGNED, DOUBLE PRECISION
TYPE_MODIFIERS: FrozenSet[str] = frozenset({"UNSIGNED", "SIGNED", "ZEROFILL", "VARYING", "PRECISION"})

# Keywords that should NOT be used as unquoted identifiers
RESERVED_KEYWORDS: Set[str] = {
    "SELECT", "FROM", "WHERE", "AND", "OR", "NOT", "NULL", "TRUE", "FALSE",
    "INSERT", "UPDATE", "DELETE", "CREATE", "DROP", "ALTER", "TABLE", "INDEX",
    "VIEW", "DATABASE", "SCHEMA", "PRIMARY", "FOREIGN", "KEY", "UNIQUE",
    "CHECK", "CONSTRAINT", "REFERENCES", "DEFAULT", "ON", "CASCADE", "SET",
    "JOIN", "LEFT", "RIGHT", "INNER", "OUTER", "FULL", "CROSS", "NATURAL",
    "GROUP", "BY", "ORDER", "HAVING", "LIMIT", "OFFSET", "UNION", "INTERSECT",
    "EXCEPT", "ALL", "DISTINCT", "AS", "IN", "EXISTS", "BETWEEN", "LIKE",
    "IS", "CASE", "WHEN", "THEN", "ELSE", "END", "IF", "BEGIN", "COMMIT",
    "ROLLBACK", "TRANSACTION", "USER", "ROLE", "GRANT", "REVOKE",
}

# Names the generator must quote so the parser reads them back as columns
GENERATOR_QUOTED_KEYWORDS: Set[str] = RESERVED_KEYWORDS | INDEX_CLAUSE_KEYWORDS | {"ONLY"}

PLAIN_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Defaults used by the editor, matching the designer's new table/column form
DEFAULT_TABLE_NAME = "New_Table"
DEFAULT_COLUMN_NAME = "new_column"
DEFAULT_COLUMN_TYPE = "VARCHAR(255)"
