from abc import ABC, abstractmethod

from erdforge.exceptions import ParseError
from erdforge.models import Schema


class BaseParser(ABC):
    """
    Entry point shared by parsers: parse() accepts text or UTF-8 bytes and
    hands text to parse_text(). Anything else is not SQL and raises ParseError.
    """

    def parse(self, sql_content) -> Schema:
        return self.parse_text(self.coerce_input(sql_content))

    @staticmethod
    def coerce_input(sql_content) -> str:
        if isinstance(sql_content, bytes):
            return sql_content.decode('utf-8', errors='replace')
        if not isinstance(sql_content, str):
            raise ParseError(sql_content, f"Expected SQL text, got {type(sql_content).__name__}")
        return sql_content

    @abstractmethod
    def parse_text(self, sql: str) -> Schema:
        """Parses SQL text and returns a Schema object."""
        pass
