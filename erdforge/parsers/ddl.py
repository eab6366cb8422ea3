from typing import List

from erdforge.constants import ResolutionMode
from erdforge.logging_config import get_logger
from erdforge.models import Schema
from erdforge.parsers.ast import Statement, CreateTableStatement, AlterTableStatement
from erdforge.parsers.base import BaseParser
from erdforge.parsers.grammar import StatementParser
from erdforge.parsers.lexer import split_statements
from erdforge.parsers.linker import SchemaLinker
from erdforge.parsers.utils import strip_comments

logger = get_logger("parser")


class DDLParser(BaseParser):
    """
    Parses CREATE TABLE / ALTER TABLE scripts into a Schema.

    Every call starts from scratch; a parser instance holds configuration
    only, so it can be reused for any number of scripts.
    """

    def __init__(self, resolution: ResolutionMode = ResolutionMode.DEFERRED):
        self.resolution = ResolutionMode(resolution)

    def parse_text(self, sql_content: str) -> Schema:
        statements = self.parse_statements(sql_content)
        schema = SchemaLinker(self.resolution).link(statements)

        logger.info(f"Parsed {len(schema.tables)} tables, {len(schema.relationships())} relationships "
                    f"from {len(statements)} statements", extra={'operation': 'parse'})
        return schema

    def parse_statements(self, sql_content: str) -> List[Statement]:
        """Cleans, splits and classifies the script, without resolving anything."""
        grammar = StatementParser()
        cleaned = strip_comments(sql_content)

        statements = []
        for raw in split_statements(cleaned):
            stmt = grammar.parse(raw)
            if isinstance(stmt, (CreateTableStatement, AlterTableStatement)):
                logger.debug(f"Classified statement: {raw.text[:50]}",
                             extra={'operation': 'classify', 'statement': raw.text[:100]})
            statements.append(stmt)
        return statements
