"""
Root Typer application for the sqlspine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from sqlspine.cli.schema import check, migrate, show_sql
from sqlspine.core.logging import configure_logging

app = Typer(
    name="sqlspine",
    help="sqlspine: MySQL schema migrations from model definitions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("sqlspine")
        except PackageNotFoundError:
            from sqlspine import __version__ as v
        typer.echo(f"sqlspine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON log lines"),
) -> None:
    """sqlspine CLI: plan and apply schema changes."""
    configure_logging(level=log_level, json_format=log_json)


# ── Commands ─────────────────────────────────────────────────────────────

app.command()(migrate)
app.command()(check)
app.command("show-sql")(show_sql)
