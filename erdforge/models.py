from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from erdforge.exceptions import ValidationError
from erdforge.logging_config import get_logger
from erdforge.parsers.lexer import normalize_type

logger = get_logger("models")


@dataclass(frozen=True)
class ForeignKeyReference:
    table: str
    column: str

    def __str__(self):
        return f"{self.table}.{self.column}"

    def to_dict(self):
        return {"table": self.table, "column": self.column}


@dataclass
class Position:
    """Canvas coordinate owned by the diagram layer. Never interpreted here."""
    x: float = 0
    y: float = 0

    def to_dict(self):
        return {"x": self.x, "y": self.y}


@dataclass
class Column:
    name: str
    data_type: str
    is_primary_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    foreign_key_reference: Optional[ForeignKeyReference] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.foreign_key_reference is not None

    def __repr__(self):
        return f"Column(name='{self.name}', type='{self.data_type}')"

    def to_dict(self):
        return {
            "name": self.name,
            "data_type": self.data_type,
            "is_primary_key": self.is_primary_key,
            "is_foreign_key": self.is_foreign_key,
            "is_nullable": self.is_nullable,
            "is_unique": self.is_unique,
            "foreign_key_reference": self.foreign_key_reference.to_dict() if self.foreign_key_reference else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        if not isinstance(data, dict) or not data.get("name"):
            raise ValidationError(f"Column without a name: {data!r}")

        ref = data.get("foreign_key_reference")
        reference = None
        if ref:
            if not ref.get("table") or not ref.get("column"):
                raise ValidationError(f"Incomplete foreign key reference on column {data['name']}: {ref!r}")
            reference = ForeignKeyReference(table=ref["table"], column=ref["column"])

        # is_foreign_key is derived; a flag without a target cannot be represented
        if data.get("is_foreign_key") and reference is None:
            raise ValidationError(f"Column {data['name']} is flagged as foreign key but has no reference")

        is_primary_key = bool(data.get("is_primary_key", False))
        return cls(
            name=data["name"],
            data_type=normalize_type(data.get("data_type") or ""),
            is_primary_key=is_primary_key,
            is_nullable=bool(data.get("is_nullable", True)) and not is_primary_key,
            is_unique=bool(data.get("is_unique", False)),
            foreign_key_reference=reference,
        )


@dataclass
class Relationship:
    """An edge of the diagram, derived from one foreign key column."""
    source_table: str
    source_column: str
    target_table: str
    target_column: str

    @property
    def id(self) -> str:
        return f"e-{self.source_table}-{self.source_column}-{self.target_table}"

    def to_dict(self):
        return {
            "id": self.id,
            "source": self.source_table,
            "target": self.target_table,
            "source_column": self.source_column,
            "target_column": self.target_column,
        }


@dataclass
class Table:
    name: str
    columns: List[Column] = field(default_factory=list)
    # Layout state is not part of the schema structure
    position: Optional[Position] = field(default=None, compare=False)

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def primary_key_columns(self) -> List[Column]:
        return [col for col in self.columns if col.is_primary_key]

    def to_dict(self):
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "position": self.position.to_dict() if self.position else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Table":
        if not isinstance(data, dict) or not data.get("name"):
            raise ValidationError(f"Table without a name: {data!r}")

        table = cls(name=data["name"])
        for col_data in data.get("columns", []):
            col = Column.from_dict(col_data)
            if table.get_column(col.name):
                raise ValidationError(f"Duplicate column {col.name} in table {table.name}")
            table.columns.append(col)

        pos = data.get("position")
        if pos is not None:
            table.position = Position(x=pos.get("x", 0), y=pos.get("y", 0))
        return table


@dataclass
class Schema:
    tables: List[Table] = field(default_factory=list)

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def add_table(self, table: Table):
        """
        Registers a table. A second definition with the same name replaces
        the first one in place, so table order follows the first occurrence.
        """
        for i, existing in enumerate(self.tables):
            if existing.name == table.name:
                logger.error(f"Duplicate table definition: {table.name}, keeping the latest",
                             extra={'table_name': table.name, 'operation': 'add_table'})
                self.tables[i] = table
                return
        self.tables.append(table)

    def relationships(self) -> List[Relationship]:
        edges = []
        for table in self.tables:
            for col in table.columns:
                if col.foreign_key_reference:
                    edges.append(Relationship(
                        source_table=table.name,
                        source_column=col.name,
                        target_table=col.foreign_key_reference.table,
                        target_column=col.foreign_key_reference.column,
                    ))
        return edges

    def to_dict(self):
        return {
            "tables": [t.to_dict() for t in self.tables],
            "relationships": [r.to_dict() for r in self.relationships()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schema":
        if not isinstance(data, dict) or not isinstance(data.get("tables", []), list):
            raise ValidationError("Schema document must be an object with a 'tables' list")

        schema = cls()
        for table_data in data.get("tables", []):
            table = Table.from_dict(table_data)
            if schema.get_table(table.name):
                raise ValidationError(f"Duplicate table {table.name}")
            schema.tables.append(table)
        return schema
