import copy
from typing import Optional

from erdforge.constants import DEFAULT_TABLE_NAME, DEFAULT_COLUMN_NAME, DEFAULT_COLUMN_TYPE
from erdforge.exceptions import ValidationError
from erdforge.logging_config import get_logger
from erdforge.models import Schema, Table, Column, ForeignKeyReference, Position
from erdforge.parsers.lexer import normalize_type

logger = get_logger("editor")


class SchemaEditor:
    """
    Structural edits coming back from the diagram.

    The editor works on a private deep copy; the schema it was built from is
    never touched. Every operation keeps the model invariants of a freshly
    parsed schema (unique names, primary keys not nullable, a foreign key
    always has a target) and raises ValidationError instead of breaking them.
    """

    def __init__(self, schema: Optional[Schema] = None):
        self.schema = copy.deepcopy(schema) if schema is not None else Schema()

    # Tables

    def add_table(self, name: str = DEFAULT_TABLE_NAME, position: Optional[Position] = None) -> Table:
        self._check_name(name, "Table")
        if self.schema.get_table(name):
            raise ValidationError(f"Table {name} already exists")
        table = Table(name=name, position=position if position is not None else Position(x=100, y=100))
        self.schema.tables.append(table)
        logger.debug(f"Added table {name}", extra={'table_name': name, 'operation': 'add_table'})
        return table

    def rename_table(self, old_name: str, new_name: str):
        table = self._table(old_name)
        if old_name == new_name:
            return
        self._check_name(new_name, "Table")
        if self.schema.get_table(new_name):
            raise ValidationError(f"Table {new_name} already exists")

        table.name = new_name
        # Relationships follow the renamed table
        for other in self.schema.tables:
            for col in other.columns:
                ref = col.foreign_key_reference
                if ref and ref.table == old_name:
                    col.foreign_key_reference = ForeignKeyReference(table=new_name, column=ref.column)
        logger.debug(f"Renamed table {old_name} to {new_name}",
                     extra={'table_name': new_name, 'operation': 'rename_table'})

    def remove_table(self, name: str):
        table = self._table(name)
        self.schema.tables.remove(table)
        logger.debug(f"Removed table {name}", extra={'table_name': name, 'operation': 'remove_table'})

    def move_table(self, name: str, x: float, y: float):
        self._table(name).position = Position(x=x, y=y)

    # Columns

    def add_column(self, table_name: str, name: str = DEFAULT_COLUMN_NAME,
                   data_type: str = DEFAULT_COLUMN_TYPE) -> Column:
        table = self._table(table_name)
        self._check_name(name, "Column")
        if table.get_column(name):
            raise ValidationError(f"Column {name} already exists in table {table_name}")
        col = Column(name=name, data_type=normalize_type(data_type))
        table.columns.append(col)
        return col

    def remove_column(self, table_name: str, name: str):
        table = self._table(table_name)
        table.columns.remove(self._column(table, name))

    def rename_column(self, table_name: str, old_name: str, new_name: str):
        table = self._table(table_name)
        col = self._column(table, old_name)
        if old_name == new_name:
            return
        self._check_name(new_name, "Column")
        if table.get_column(new_name):
            raise ValidationError(f"Column {new_name} already exists in table {table_name}")

        col.name = new_name
        for other in self.schema.tables:
            for other_col in other.columns:
                ref = other_col.foreign_key_reference
                if ref and ref.table == table_name and ref.column == old_name:
                    other_col.foreign_key_reference = ForeignKeyReference(table=table_name, column=new_name)

    def set_column_type(self, table_name: str, name: str, data_type: str):
        self._column(self._table(table_name), name).data_type = normalize_type(data_type)

    def set_primary_key(self, table_name: str, name: str, flag: bool = True):
        col = self._column(self._table(table_name), name)
        col.is_primary_key = flag
        if flag:
            col.is_nullable = False

    def set_nullable(self, table_name: str, name: str, flag: bool = True):
        col = self._column(self._table(table_name), name)
        if flag and col.is_primary_key:
            raise ValidationError(f"Primary key column {table_name}.{name} cannot be nullable")
        col.is_nullable = flag

    def set_unique(self, table_name: str, name: str, flag: bool = True):
        self._column(self._table(table_name), name).is_unique = flag

    def set_foreign_key(self, table_name: str, name: str, ref_table: str, ref_column: str):
        """Points a column at ref_table.ref_column. The target does not have to exist yet."""
        col = self._column(self._table(table_name), name)
        if not ref_table or not ref_column:
            raise ValidationError("A foreign key needs both a referenced table and column")
        col.foreign_key_reference = ForeignKeyReference(table=ref_table, column=ref_column)

    def clear_foreign_key(self, table_name: str, name: str):
        self._column(self._table(table_name), name).foreign_key_reference = None

    def _table(self, name: str) -> Table:
        table = self.schema.get_table(name)
        if table is None:
            raise ValidationError(f"Unknown table: {name}")
        return table

    def _column(self, table: Table, name: str) -> Column:
        col = table.get_column(name)
        if col is None:
            raise ValidationError(f"Unknown column: {table.name}.{name}")
        return col

    def _check_name(self, name: str, kind: str):
        if not name or not name.strip():
            raise ValidationError(f"{kind} name cannot be empty")
