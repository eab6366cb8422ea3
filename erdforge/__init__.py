import logging

from erdforge.models import Schema, Table, Column, ForeignKeyReference, Position, Relationship
from erdforge.parsers.ddl import DDLParser
from erdforge.generators.ddl import DDLGenerator

logging.getLogger("erdforge").addHandler(logging.NullHandler())


def parse_sql(sql_content: str, **options) -> Schema:
    return DDLParser(**options).parse(sql_content)


def generate_sql(schema: Schema) -> str:
    return DDLGenerator().generate(schema)
