from typing import List

from erdforge.generators.base import BaseGenerator
from erdforge.models import Schema, Table, Column


class DDLGenerator(BaseGenerator):
    """
    Serializes a Schema as CREATE TABLE statements followed by one
    ALTER TABLE ... ADD FOREIGN KEY per referencing column.

    Foreign keys are emitted last so table order never matters, even for
    circular references. Output is deterministic and always re-parses to the
    same schema structure.
    """

    def generate(self, schema: Schema) -> str:
        creates = [self.create_table_sql(table) for table in schema.tables]
        alters = []
        for table in schema.tables:
            for col in table.columns:
                if col.is_foreign_key:
                    alters.append(self.foreign_key_sql(table, col))

        sections = []
        if creates:
            sections.append("\n\n".join(creates))
        if alters:
            sections.append("\n".join(alters))
        if not sections:
            return ""
        return "\n\n".join(sections) + "\n"

    def create_table_sql(self, table: Table) -> str:
        cols = [f"  {self._col_def(c)}" for c in table.columns]
        stmt = f"CREATE TABLE {self.quote_ident(table.name)} (\n"
        if cols:
            stmt += ",\n".join(cols) + "\n"
        stmt += ");"
        return stmt

    def foreign_key_sql(self, table: Table, col: Column) -> str:
        ref = col.foreign_key_reference
        return (f"ALTER TABLE {self.quote_ident(table.name)} ADD FOREIGN KEY ({self.quote_ident(col.name)}) "
                f"REFERENCES {self.quote_ident(ref.table)} ({self.quote_ident(ref.column)});")

    def _col_def(self, col: Column) -> str:
        parts: List[str] = [self.quote_ident(col.name)]
        data_type = col.data_type.strip()
        if data_type:
            parts.append(data_type)
        if col.is_primary_key:
            parts.append("PRIMARY KEY")
        elif not col.is_nullable:
            parts.append("NOT NULL")
        if col.is_unique:
            parts.append("UNIQUE")
        return " ".join(parts)
