import sqlalchemy
from sqlalchemy import inspect

from erdforge.logging_config import get_logger
from erdforge.models import Schema, Table, Column, ForeignKeyReference
from erdforge.parsers.lexer import normalize_type

logger = get_logger("introspector")


class DBIntrospector:
    """Reads the tables of a live database into the same model the parser produces."""

    def __init__(self, db_url: str):
        self.engine = sqlalchemy.create_engine(db_url)
        self.inspector = inspect(self.engine)

    def introspect(self) -> Schema:
        schema = Schema()

        for table_name in self.inspector.get_table_names():
            table = Table(name=table_name)

            for col in self.inspector.get_columns(table_name):
                # SQLAlchemy renders DECIMAL(10, 2); keep the spelling the parser produces
                table.columns.append(Column(
                    name=col['name'],
                    data_type=normalize_type(str(col['type'])),
                    is_nullable=col['nullable'],
                ))

            # Primary Keys
            pk_constraint = self.inspector.get_pk_constraint(table_name)
            for col_name in (pk_constraint or {}).get('constrained_columns') or []:
                col = table.get_column(col_name)
                if col:
                    col.is_primary_key = True
                    col.is_nullable = False

            # Single-column unique constraints are the only ones the model can hold
            for uq in self.inspector.get_unique_constraints(table_name):
                if len(uq['column_names']) == 1:
                    col = table.get_column(uq['column_names'][0])
                    if col:
                        col.is_unique = True

            # Foreign Keys
            for fk in self.inspector.get_foreign_keys(table_name):
                pairs = zip(fk['constrained_columns'], fk['referred_columns'])
                for col_name, ref_col in pairs:
                    col = table.get_column(col_name)
                    if col and ref_col:
                        col.foreign_key_reference = ForeignKeyReference(table=fk['referred_table'], column=ref_col)

            schema.add_table(table)
            logger.debug(f"Introspected table {table_name} ({len(table.columns)} columns)",
                         extra={'table_name': table_name, 'operation': 'introspect'})

        return schema
