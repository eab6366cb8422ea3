from typing import List, Optional, Tuple

from erdforge.constants import ResolutionMode
from erdforge.logging_config import get_logger
from erdforge.models import Schema, Table, Column, ForeignKeyReference
from erdforge.parsers.ast import (
    Statement, Constraint, CreateTableStatement, AlterTableStatement, IgnoredStatement,
    ColumnDefinition, PrimaryKeyConstraint, ForeignKeyConstraint, UniqueConstraint, IgnoredClause,
)

logger = get_logger("linker")

# (table the constraint was declared in, or None for ALTER TABLE; table name; constraint)
Pending = Tuple[Optional[Table], str, Constraint]


class SchemaLinker:
    """
    Semantic pass from AST to Schema.

    In DEFERRED mode every table and column of the input is registered
    before any PRIMARY KEY / FOREIGN KEY / UNIQUE clause is bound, so clause
    and statement order do not matter. SEQUENTIAL mode binds each constraint
    as soon as it is read, against whatever was defined before it.

    Constraints naming a column or table that does not exist are dropped.
    Referenced tables are never checked: a dangling reference is kept.
    """

    def __init__(self, mode: ResolutionMode = ResolutionMode.DEFERRED):
        self.mode = ResolutionMode(mode)

    @property
    def deferred(self) -> bool:
        return self.mode == ResolutionMode.DEFERRED

    def link(self, statements: List[Statement]) -> Schema:
        schema = Schema()
        pending: List[Pending] = []

        for stmt in statements:
            if isinstance(stmt, CreateTableStatement):
                table = self._build_table(stmt, schema, pending)
                schema.add_table(table)
            elif isinstance(stmt, AlterTableStatement):
                for action in stmt.actions:
                    if isinstance(action, IgnoredClause):
                        logger.debug(f"Ignored ALTER TABLE action ({action.reason}): {action.text[:50]}",
                                     extra={'table_name': stmt.table, 'operation': 'alter_table'})
                    elif self.deferred:
                        pending.append((None, stmt.table, action))
                    else:
                        self._apply(schema, schema.get_table(stmt.table), stmt.table, action)
            elif isinstance(stmt, IgnoredStatement):
                logger.debug(f"Ignored statement ({stmt.reason}): {stmt.text[:50]}",
                             extra={'operation': 'classify', 'statement': stmt.text[:100]})

        for owner, table_name, constraint in pending:
            if owner is not None:
                # A later duplicate definition replaced the owner; its constraints go with it
                table = owner if any(t is owner for t in schema.tables) else None
            else:
                table = schema.get_table(table_name)
            self._apply(schema, table, table_name, constraint)

        return schema

    def _build_table(self, stmt: CreateTableStatement, schema: Schema, pending: List[Pending]) -> Table:
        table = Table(name=stmt.name)
        if not stmt.has_body:
            logger.debug(f"No parseable column list for table {stmt.name}",
                         extra={'table_name': stmt.name, 'operation': 'create_table'})

        for clause in stmt.clauses:
            if isinstance(clause, ColumnDefinition):
                self._add_column(table, clause, schema, pending)
            elif isinstance(clause, IgnoredClause):
                logger.debug(f"Ignored clause ({clause.reason}): {clause.text[:50]}",
                             extra={'table_name': table.name, 'operation': 'create_table'})
            elif self.deferred:
                pending.append((table, table.name, clause))
            else:
                self._apply(schema, table, table.name, clause)
        return table

    def _add_column(self, table: Table, definition: ColumnDefinition, schema: Schema, pending: List[Pending]):
        if table.get_column(definition.name):
            logger.debug(f"Duplicate column {definition.name}, keeping the first definition",
                         extra={'table_name': table.name, 'operation': 'create_table'})
            return

        col = Column(
            name=definition.name,
            data_type=definition.data_type,
            is_primary_key=definition.primary_key,
            is_nullable=not (definition.not_null or definition.primary_key),
            is_unique=definition.unique,
        )
        table.columns.append(col)

        ref = definition.reference
        if ref is None:
            return
        if ref.columns:
            col.foreign_key_reference = ForeignKeyReference(table=ref.table, column=ref.columns[0])
            return

        # REFERENCES t with no column list points at t's primary key
        constraint = ForeignKeyConstraint(columns=[col.name], reference=ref)
        if self.deferred:
            pending.append((table, table.name, constraint))
        else:
            self._apply(schema, table, table.name, constraint)

    def _apply(self, schema: Schema, table: Optional[Table], table_name: str, constraint: Constraint):
        extra = {'table_name': table_name, 'operation': 'link'}
        if table is None:
            logger.debug(f"Constraint on unknown table {table_name} dropped", extra=extra)
            return

        if isinstance(constraint, PrimaryKeyConstraint):
            for col in self._resolve_columns(table, constraint.columns):
                col.is_primary_key = True
                col.is_nullable = False

        elif isinstance(constraint, UniqueConstraint):
            if len(constraint.columns) != 1:
                logger.debug(f"Multi-column UNIQUE {constraint.columns} has no per-column form", extra=extra)
                return
            for col in self._resolve_columns(table, constraint.columns):
                col.is_unique = True

        elif isinstance(constraint, ForeignKeyConstraint):
            ref = constraint.reference
            ref_columns = ref.columns or self._primary_key_of(schema, ref.table, table)
            if len(ref_columns) != len(constraint.columns):
                logger.debug(f"Foreign key {constraint.columns} -> {ref.table}{ref_columns} "
                             f"cannot be paired column by column", extra=extra)
                return
            for name, ref_column in zip(constraint.columns, ref_columns):
                col = table.get_column(name)
                if col is None:
                    logger.debug(f"Foreign key on unknown column {name} dropped", extra=extra)
                    continue
                col.foreign_key_reference = ForeignKeyReference(table=ref.table, column=ref_column)

    def _resolve_columns(self, table: Table, names: List[str]) -> List[Column]:
        found = []
        for name in names:
            col = table.get_column(name)
            if col is None:
                logger.debug(f"Constraint on unknown column {name} dropped",
                             extra={'table_name': table.name, 'operation': 'link'})
            else:
                found.append(col)
        return found

    def _primary_key_of(self, schema: Schema, table_name: str, current: Table) -> List[str]:
        target = schema.get_table(table_name)
        if target is None and current.name == table_name:
            target = current
        if target is None:
            return []
        return [col.name for col in target.primary_key_columns()]
