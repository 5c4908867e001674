"""
Schema contract and SQL bootstrap helpers.

The schema is owned by the Alembic revisions under ``migrations/``. The
database records the revision it was migrated to in ``alembic_version``;
start-up refuses to serve against a database at any revision other than the
script directory's head.
"""
import logging
from collections import namedtuple

import flask_migrate
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from flask import current_app
from sqlalchemy.exc import DBAPIError

from errors import SchemaVersionError

logger = logging.getLogger(__name__)

ReplayReport = namedtuple("ReplayReport", "executed skipped failed")

_ALREADY_EXISTS = ("already exists", "duplicate")


def upgrade_schema():
    """Apply pending migrations up to head."""
    flask_migrate.upgrade()


def head_revision():
    migrate = current_app.extensions["migrate"]
    config = migrate.migrate.get_config(migrate.directory)
    return ScriptDirectory.from_config(config).get_current_head()


def current_revision(session):
    """Revision the database is stamped with, or None if it was never migrated."""
    return MigrationContext.configure(session.connection()).get_current_revision()


def check_schema_version(session):
    revision = current_revision(session)
    if revision is None:
        logger.warning("Database schema is not initialised; run `flask db upgrade`")
        return None
    head = head_revision()
    if revision != head:
        raise SchemaVersionError(
            f"Database is at revision {revision} but the application expects {head}; run `flask db upgrade`"
        )
    return revision


def split_sql_statements(sql: str):
    """Split a SQL script on top-level semicolons.

    ``--`` comments are dropped; semicolons inside quoted strings and
    PostgreSQL dollar-quoted bodies (``$$ ... $$`` or ``$tag$ ... $tag$``)
    do not end a statement.
    """
    statements = []
    buf = []
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]

        if ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
            continue

        if ch == "'":
            end = i + 1
            while end < n:
                if sql[end] == "'":
                    if sql.startswith("''", end):
                        end += 2
                        continue
                    break
                end += 1
            buf.append(sql[i:end + 1])
            i = end + 1
            continue

        if ch == "$":
            close = sql.find("$", i + 1)
            tag = sql[i:close + 1] if close != -1 else ""
            if tag and (tag == "$$" or tag[1:-1].replace("_", "").isalnum()):
                end = sql.find(tag, close + 1)
                end = n if end == -1 else end + len(tag)
                buf.append(sql[i:end])
                i = end
                continue

        if ch == ";":
            statement = "".join(buf).strip()
            if statement:
                statements.append(statement)
            buf = []
            i += 1
            continue

        buf.append(ch)
        i += 1

    statement = "".join(buf).strip()
    if statement:
        statements.append(statement)
    return statements


def replay_sql(engine, sql: str) -> ReplayReport:
    """Execute each statement in its own transaction.

    Statements failing because the object already exists are counted as
    skipped, so a script can be replayed against an initialised database.
    """
    executed = skipped = failed = 0
    for statement in split_sql_statements(sql):
        try:
            with engine.begin() as conn:
                conn.exec_driver_sql(statement)
            executed += 1
        except DBAPIError as e:
            message = str(e.orig if e.orig is not None else e).lower()
            if any(marker in message for marker in _ALREADY_EXISTS):
                skipped += 1
                continue
            failed += 1
            logger.warning("Statement failed: %s... (%s)", statement[:60], e.orig)
    return ReplayReport(executed, skipped, failed)
