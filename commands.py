import click

from extensions import db
from services.schema import replay_sql


def register_commands(app):
    @app.cli.command("replay-sql")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def replay_sql_file(path):
        """Run a SQL script, skipping objects that already exist."""
        with open(path, encoding="utf-8") as fh:
            report = replay_sql(db.engine, fh.read())
        click.echo(f"executed={report.executed} skipped={report.skipped} failed={report.failed}")
        if report.failed:
            raise SystemExit(1)
