"""
Tests for DDLParser: full scripts through cleaning, splitting, grammar and linking.
"""
import logging

import pytest
from erdforge import parse_sql
from erdforge.constants import ResolutionMode
from erdforge.exceptions import ParseError
from erdforge.models import ForeignKeyReference
from erdforge.parsers.ddl import DDLParser
from erdforge.parsers.ast import CreateTableStatement, AlterTableStatement, IgnoredStatement


USERS_AND_ROLES = """
CREATE TABLE users (id INT PRIMARY KEY, username VARCHAR(50) NOT NULL, role_id INT);
CREATE TABLE roles (id INT PRIMARY KEY, name VARCHAR(50));
ALTER TABLE users ADD FOREIGN KEY (role_id) REFERENCES roles (id);
"""

MYSQL_DUMP = """
-- MySQL dump 10.13
/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;
SET NAMES utf8mb4;
DROP TABLE IF EXISTS `orders`;
CREATE TABLE `orders` (
  `id` int(11) NOT NULL AUTO_INCREMENT,
  `customer_id` int(11) NOT NULL,
  `total` decimal(10,2) DEFAULT '0.00',
  `note` varchar(255) DEFAULT 'pay; later, it''s fine (maybe)',
  PRIMARY KEY (`id`),
  KEY `idx_customer` (`customer_id`),
  CONSTRAINT `fk_orders_customer` FOREIGN KEY (`customer_id`) REFERENCES `customers` (`id`) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
INSERT INTO `orders` VALUES (1, 7, 10.00, 'CREATE TABLE fake (x INT);');
"""

PG_DUMP = """
SET statement_timeout = 0;
CREATE TABLE public.accounts (
    id integer NOT NULL,
    email character varying(120) NOT NULL,
    created_at timestamp with time zone DEFAULT now()
);
CREATE TABLE public.sessions (
    id bigint NOT NULL,
    account_id integer
);
ALTER TABLE ONLY public.accounts
    ADD CONSTRAINT accounts_pkey PRIMARY KEY (id);
ALTER TABLE ONLY public.sessions
    ADD CONSTRAINT sessions_account_id_fkey FOREIGN KEY (account_id) REFERENCES public.accounts(id);
"""


class TestScenarios:
    """End-to-end scripts."""

    def test_users_and_roles(self):
        schema = DDLParser().parse(USERS_AND_ROLES)

        assert [t.name for t in schema.tables] == ["users", "roles"]
        users, roles = schema.tables
        assert [c.name for c in users.columns] == ["id", "username", "role_id"]
        assert users.get_column("role_id").is_foreign_key
        assert users.get_column("role_id").foreign_key_reference == ForeignKeyReference("roles", "id")
        assert not any(c.is_foreign_key for c in roles.columns)

    def test_users_and_roles_flags(self):
        users = DDLParser().parse(USERS_AND_ROLES).get_table("users")
        id_col, username, role_id = users.columns
        assert id_col.is_primary_key and not id_col.is_nullable
        assert username.data_type == "VARCHAR(50)" and not username.is_nullable
        assert role_id.is_nullable and not role_id.is_primary_key

    def test_insert_is_inert(self):
        with_insert = "INSERT INTO roles VALUES (1, 'admin');\n" + USERS_AND_ROLES + \
            "INSERT INTO users (id, username) VALUES (1, 'CREATE TABLE x (y INT)');"
        assert DDLParser().parse(with_insert) == DDLParser().parse(USERS_AND_ROLES)

    def test_mysql_dump(self):
        schema = DDLParser().parse(MYSQL_DUMP)

        assert [t.name for t in schema.tables] == ["orders"]
        orders = schema.tables[0]
        assert [c.name for c in orders.columns] == ["id", "customer_id", "total", "note"]
        assert orders.get_column("id").is_primary_key
        assert orders.get_column("id").data_type == "int(11)"
        assert orders.get_column("total").data_type == "decimal(10,2)"
        assert orders.get_column("note").data_type == "varchar(255)"
        # Dangling target: customers is never defined
        assert orders.get_column("customer_id").foreign_key_reference == ForeignKeyReference("customers", "id")

    def test_pg_dump(self):
        schema = DDLParser().parse(PG_DUMP)

        accounts = schema.get_table("accounts")
        sessions = schema.get_table("sessions")
        assert accounts.get_column("id").is_primary_key
        assert accounts.get_column("email").data_type == "character varying(120)"
        assert accounts.get_column("created_at").data_type == "timestamp with time zone"
        assert accounts.get_column("created_at").is_nullable
        assert sessions.get_column("account_id").foreign_key_reference == ForeignKeyReference("accounts", "id")

    def test_empty_input(self):
        assert DDLParser().parse("").tables == []
        assert DDLParser().parse("  -- nothing here\n/* at all */ ;;").tables == []

    def test_no_body_yields_zero_columns(self):
        schema = DDLParser().parse("CREATE TABLE orphan; CREATE TABLE copy AS SELECT * FROM orphan;")
        assert [(t.name, t.columns) for t in schema.tables] == [("orphan", []), ("copy", [])]

    def test_unclosed_parenthesis_is_confined_to_its_statement(self):
        schema = parse_sql("CREATE TABLE a (id INT;\nCREATE TABLE b (id INT PRIMARY KEY);\nCREATE TABLE c (x INT);")
        assert [t.name for t in schema.tables] == ["a", "b", "c"]
        assert schema.get_table("a").columns == []
        assert schema.get_table("b").get_column("id").is_primary_key
        assert [c.name for c in schema.get_table("c").columns] == ["x"]

    def test_bytes_input(self):
        schema = DDLParser().parse(b"CREATE TABLE t (id INT);")
        assert schema.tables[0].name == "t"

    @pytest.mark.parametrize("bad", [None, 42, ["CREATE TABLE t (id INT)"]])
    def test_unusable_input_raises(self, bad):
        with pytest.raises(ParseError):
            DDLParser().parse(bad)

    def test_module_level_helper(self):
        assert parse_sql(USERS_AND_ROLES) == DDLParser().parse(USERS_AND_ROLES)


class TestParserProperties:
    """Properties every input must satisfy."""

    def test_column_count_and_order(self):
        sql = "CREATE TABLE t (c1 INT, c2 TEXT, c3 DECIMAL(10,2), c4 ENUM('a','b'), c5 DATE);"
        assert [c.name for c in DDLParser().parse(sql).tables[0].columns] == ["c1", "c2", "c3", "c4", "c5"]

    def test_type_parameters_do_not_split(self):
        table = DDLParser().parse("CREATE TABLE t (price DECIMAL(10,2) NOT NULL, qty INT)").tables[0]
        assert len(table.columns) == 2
        assert table.columns[0].data_type == "DECIMAL(10,2)"

    @pytest.mark.parametrize("sql", [
        "CREATE TABLE t (id INT PRIMARY KEY, name TEXT)",
        "CREATE TABLE t (id INT, name TEXT, PRIMARY KEY (id))",
        "CREATE TABLE t (id INT, name TEXT, CONSTRAINT pk_t PRIMARY KEY (id))",
        "CREATE TABLE t (id INT, name TEXT); ALTER TABLE t ADD PRIMARY KEY (id)",
        "CREATE TABLE t (id INT, name TEXT); ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id)",
    ])
    def test_primary_key_syntax_variants(self, sql):
        table = DDLParser().parse(sql).tables[0]
        assert table.get_column("id").is_primary_key
        assert not table.get_column("name").is_primary_key

    @pytest.mark.parametrize("sql", [
        "CREATE TABLE roles (id INT PRIMARY KEY); CREATE TABLE users (role_id INT REFERENCES roles(id))",
        "CREATE TABLE roles (id INT PRIMARY KEY); CREATE TABLE users (role_id INT REFERENCES roles)",
        "CREATE TABLE roles (id INT PRIMARY KEY); "
        "CREATE TABLE users (role_id INT, FOREIGN KEY (role_id) REFERENCES roles (id))",
        "CREATE TABLE roles (id INT PRIMARY KEY); "
        "CREATE TABLE users (role_id INT, CONSTRAINT fk_role FOREIGN KEY (role_id) REFERENCES roles (id))",
        "CREATE TABLE roles (id INT PRIMARY KEY); CREATE TABLE users (role_id INT); "
        "ALTER TABLE users ADD FOREIGN KEY (role_id) REFERENCES roles (id)",
        "CREATE TABLE roles (id INT PRIMARY KEY); CREATE TABLE users (role_id INT); "
        "ALTER TABLE users ADD CONSTRAINT fk_role FOREIGN KEY (role_id) REFERENCES roles (id)",
    ])
    def test_foreign_key_syntax_variants(self, sql):
        col = DDLParser().parse(sql).get_table("users").get_column("role_id")
        assert col.is_foreign_key
        assert col.foreign_key_reference == ForeignKeyReference("roles", "id")

    def test_comments_do_not_change_columns(self):
        plain = "CREATE TABLE t (id INT, name TEXT, price DECIMAL(10,2));"
        commented = (
            "/* header\n comment */\n"
            "CREATE TABLE t ( -- opening\n"
            "  id INT, /* inline, with comma */\n"
            "  name TEXT, -- trailing ; semicolon\n"
            "  price DECIMAL(10,/* two */2)\n"
            "); -- done"
        )
        assert DDLParser().parse(commented) == DDLParser().parse(plain)

    def test_literals_do_not_split(self):
        sql = ("CREATE TABLE t (a VARCHAR(10) DEFAULT 'x, y', b VARCHAR(10) DEFAULT 'semi;colon', "
               "c VARCHAR(10) DEFAULT '(paren', d TEXT COMMENT 'NOT NULL'); CREATE TABLE u (id INT);")
        schema = DDLParser().parse(sql)
        assert [c.name for c in schema.tables[0].columns] == ["a", "b", "c", "d"]
        assert schema.tables[0].get_column("d").is_nullable
        assert [t.name for t in schema.tables] == ["t", "u"]

    def test_unrecognized_clauses_dropped(self):
        sql = ("CREATE TABLE t (id INT, KEY idx (id), UNIQUE KEY uk (id), CHECK (id > 0), "
               "INDEX i2 (id), FULLTEXT KEY ft (id))")
        assert [c.name for c in DDLParser().parse(sql).tables[0].columns] == ["id"]

    def test_keyword_named_columns_kept(self):
        schema = DDLParser().parse(
            "CREATE TABLE billing (id INT PRIMARY KEY, period VARCHAR(7) NOT NULL, exclude BOOLEAN)"
        )
        table = schema.get_table("billing")
        assert [c.name for c in table.columns] == ["id", "period", "exclude"]
        assert not table.get_column("period").is_nullable

    def test_comment_markers_in_dollar_quotes(self):
        schema = DDLParser().parse("CREATE TABLE t (a TEXT DEFAULT $$x -- y$$, b INT);")
        assert [c.name for c in schema.tables[0].columns] == ["a", "b"]

    def test_case_insensitive_keywords(self):
        schema = DDLParser().parse("create table T (Id int primary key, Name text not null unique);")
        col = schema.tables[0].get_column("Name")
        assert schema.tables[0].name == "T"
        assert schema.tables[0].get_column("Id").is_primary_key
        assert not col.is_nullable and col.is_unique

    def test_parse_is_repeatable(self):
        parser = DDLParser()
        first = parser.parse(USERS_AND_ROLES)
        parser.parse("CREATE TABLE other (x INT);")
        assert parser.parse(USERS_AND_ROLES) == first


class TestResolution:

    OUT_OF_ORDER = """
    ALTER TABLE users ADD FOREIGN KEY (role_id) REFERENCES roles (id);
    CREATE TABLE users (role_id INT, PRIMARY KEY (id), id INT);
    CREATE TABLE roles (id INT PRIMARY KEY);
    """

    def test_deferred_is_default(self):
        assert DDLParser().resolution == ResolutionMode.DEFERRED

    def test_deferred_binds_out_of_order_constraints(self):
        users = DDLParser().parse(self.OUT_OF_ORDER).get_table("users")
        assert users.get_column("id").is_primary_key
        assert users.get_column("role_id").foreign_key_reference == ForeignKeyReference("roles", "id")

    def test_sequential_drops_out_of_order_constraints(self):
        users = DDLParser(ResolutionMode.SEQUENTIAL).parse(self.OUT_OF_ORDER).get_table("users")
        assert not users.get_column("id").is_primary_key
        assert not users.get_column("role_id").is_foreign_key

    def test_modes_agree_on_ordered_input(self):
        assert DDLParser("sequential").parse(USERS_AND_ROLES) == DDLParser("deferred").parse(USERS_AND_ROLES)


class TestParseStatements:

    def test_classification(self):
        statements = DDLParser().parse_statements(
            "CREATE TABLE a (id INT); CREATE VIEW v AS SELECT 1; ALTER TABLE a ADD UNIQUE (id); SET x = 1;"
        )
        assert [type(s) for s in statements] == [CreateTableStatement, IgnoredStatement, AlterTableStatement]


class TestLogging:

    def test_duplicate_table_logged_as_error(self, caplog):
        with caplog.at_level(logging.ERROR, logger="erdforge"):
            schema = DDLParser().parse("CREATE TABLE t (a INT); CREATE TABLE t (b INT);")
        assert [c.name for c in schema.tables[0].columns] == ["b"]
        assert any(r.levelno == logging.ERROR and r.table_name == "t" for r in caplog.records)

    def test_summary_logged_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="erdforge"):
            DDLParser().parse(USERS_AND_ROLES)
        assert "Parsed 2 tables, 1 relationships from 3 statements" in caplog.text

    def test_dropped_clause_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="erdforge"):
            DDLParser().parse("CREATE TABLE t (id INT, KEY idx (id));")
        assert "Ignored clause" in caplog.text
