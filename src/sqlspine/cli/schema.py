"""
CLI: ``sqlspine migrate`` / ``check`` / ``show-sql`` — schema commands.
"""

from __future__ import annotations

from pathlib import Path

import typer

from sqlspine.cli.utils import fail, load_models, make_gateway, output_plans
from sqlspine.core.differ import diff
from sqlspine.core.errors import SqlSpineError
from sqlspine.core.repository import migrate_models


def migrate(
    models_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML/JSON model definitions"),
    check_only: bool = typer.Option(False, "--check", help="Show the plan without running it"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database name"),
    host: str | None = typer.Option(None, "--host", help="MySQL host"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Bring every table in line with its model definition."""
    try:
        models = load_models(models_file)
        with make_gateway(database, host) as gateway:
            plans = migrate_models(gateway, models, check_only=check_only)
    except SqlSpineError as e:
        fail(e)
    output_plans(plans, as_json=json_out)


def check(
    models_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML/JSON model definitions"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database name"),
    host: str | None = typer.Option(None, "--host", help="MySQL host"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Exit with status 2 when any table needs a migration."""
    try:
        models = load_models(models_file)
        with make_gateway(database, host) as gateway:
            plans = migrate_models(gateway, models, check_only=True)
    except SqlSpineError as e:
        fail(e)
    output_plans(plans, as_json=json_out)
    if any(plan.changes_required for plan in plans):
        raise typer.Exit(code=2)


def show_sql(
    models_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML/JSON model definitions"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print CREATE TABLE statements without touching a database."""
    try:
        models = load_models(models_file)
    except SqlSpineError as e:
        fail(e)
    plans = [diff(model, None) for model in models]
    output_plans(plans, as_json=json_out)
