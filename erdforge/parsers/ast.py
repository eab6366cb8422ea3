"""Syntax tree produced by the grammar: statement -> clause list -> clause."""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class ReferenceSpec:
    table: str
    # Empty when the clause names only the table (REFERENCES roles)
    columns: List[str] = field(default_factory=list)


@dataclass
class ColumnDefinition:
    name: str
    data_type: str
    primary_key: bool = False
    not_null: bool = False
    unique: bool = False
    reference: Optional[ReferenceSpec] = None


@dataclass
class PrimaryKeyConstraint:
    columns: List[str]
    name: Optional[str] = None


@dataclass
class ForeignKeyConstraint:
    columns: List[str]
    reference: ReferenceSpec
    name: Optional[str] = None


@dataclass
class UniqueConstraint:
    columns: List[str]
    name: Optional[str] = None


@dataclass
class IgnoredClause:
    text: str
    reason: str


Constraint = Union[PrimaryKeyConstraint, ForeignKeyConstraint, UniqueConstraint]
Clause = Union[ColumnDefinition, PrimaryKeyConstraint, ForeignKeyConstraint, UniqueConstraint, IgnoredClause]


@dataclass
class CreateTableStatement:
    name: str
    clauses: List[Clause] = field(default_factory=list)
    # False when no balanced ( ... ) body followed the name
    has_body: bool = True


@dataclass
class AlterTableStatement:
    table: str
    actions: List[Union[Constraint, IgnoredClause]] = field(default_factory=list)


@dataclass
class IgnoredStatement:
    text: str
    reason: str


Statement = Union[CreateTableStatement, AlterTableStatement, IgnoredStatement]
