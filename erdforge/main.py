import argparse
import glob
import json
import os
import sys

from erdforge.constants import ResolutionMode
from erdforge.exceptions import ValidationError
from erdforge.generators.ddl import DDLGenerator
from erdforge.logging_config import setup_logging, get_logger
from erdforge.models import Schema
from erdforge.parsers.ddl import DDLParser

logger = get_logger("cli")


def read_sql_source(path: str) -> str:
    """
    Reads SQL content from a file or recursively from a directory.
    """
    if os.path.isfile(path):
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    elif os.path.isdir(path):
        content = []
        # Recursive glob for .sql files
        sql_files = glob.glob(os.path.join(path, '**/*.sql'), recursive=True)
        # Sort to ensure deterministic order
        sql_files.sort()

        if not sql_files:
            raise ValueError(f"No .sql files found in directory: {path}")

        for sql_file in sql_files:
            logger.debug(f"Reading {sql_file}", extra={'file_path': sql_file, 'operation': 'read'})
            with open(sql_file, 'r', encoding='utf-8', errors='replace') as f:
                content.append(f.read())

        # A file without a trailing semicolon must not swallow the next file's first statement
        return ";\n".join(content)

    else:
        raise ValueError(f"Path not found: {path}")


def read_schema_json(path: str) -> Schema:
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{path} is not a JSON schema document: {e}")
    return Schema.from_dict(data)


def get_version() -> str:
    version_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'VERSION')
    if os.path.exists(version_path):
        with open(version_path, 'r') as f:
            return f.read().strip()
    return 'Unknown'


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='erdforge - SQL DDL to schema model and back')
    parser.add_argument('command', choices=['parse', 'generate', 'format', 'introspect'],
                        help='parse: SQL -> JSON model; generate: JSON model -> SQL; '
                             'format: SQL -> normalized SQL; introspect: database URL -> JSON model')

    parser.add_argument('--source', required=True,
                        help='SQL file or directory (parse, format), JSON model (generate) or DB URL (introspect)')
    parser.add_argument('--json-out', help='Path to save the JSON schema model')
    parser.add_argument('--sql-out', help='Path to save the generated SQL script')
    parser.add_argument('--resolution', choices=[m.value for m in ResolutionMode],
                        default=ResolutionMode.DEFERRED.value,
                        help='deferred: bind constraints after reading every table (default); '
                             'sequential: bind them in source order')

    # Quality of Life flags
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Increase log verbosity (-v, -vv)')
    parser.add_argument('--log-format', choices=['text', 'json'], default='text', help='Log output format')
    parser.add_argument('--version', action='version', version=f'erdforge v{get_version()}')
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, log_format=args.log_format, no_color=args.no_color)

    logger.debug(f"Command={args.command}, Source={args.source}, Resolution={args.resolution}")

    try:
        if args.command == 'parse':
            schema = DDLParser(args.resolution).parse(read_sql_source(args.source))
            _handle_output(args, schema, default='json')

        elif args.command == 'format':
            schema = DDLParser(args.resolution).parse(read_sql_source(args.source))
            _handle_output(args, schema, default='sql')

        elif args.command == 'generate':
            schema = read_schema_json(args.source)
            _handle_output(args, schema, default='sql')

        elif args.command == 'introspect':
            from erdforge.introspector import DBIntrospector

            logger.info(f"Introspecting database at {args.source}")
            schema = DBIntrospector(args.source).introspect()
            _handle_output(args, schema, default='json')

    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _handle_output(args, schema: Schema, default: str):
    # 1. JSON Output
    if args.json_out:
        with open(args.json_out, 'w', encoding='utf-8') as f:
            json.dump(schema.to_dict(), f, indent=2)
        print(f"JSON schema saved to {args.json_out}")

    # 2. SQL Output
    if args.sql_out:
        with open(args.sql_out, 'w', encoding='utf-8') as f:
            f.write(DDLGenerator().generate(schema))
        print(f"SQL script saved to {args.sql_out}")

    # Nothing requested: print the command's natural output
    if not (args.json_out or args.sql_out):
        if default == 'json':
            print(json.dumps(schema.to_dict(), indent=2))
        else:
            sys.stdout.write(DDLGenerator().generate(schema))


if __name__ == '__main__':
    main()
