from abc import ABC, abstractmethod

from erdforge.constants import GENERATOR_QUOTED_KEYWORDS, PLAIN_IDENTIFIER
from erdforge.models import Schema


class BaseGenerator(ABC):
    @abstractmethod
    def generate(self, schema: Schema) -> str:
        """Generates a DDL script that recreates the schema."""
        pass

    def quote_ident(self, ident: str) -> str:
        """Double-quotes names the parser would not read back as a plain identifier."""
        if PLAIN_IDENTIFIER.match(ident) and ident.upper() not in GENERATOR_QUOTED_KEYWORDS:
            return ident
        return '"' + ident.replace('"', '""') + '"'
