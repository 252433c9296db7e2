from __future__ import annotations

import json
import random
import sys
from typing import Optional

import typer

from tigen.config import Settings, get_settings
from tigen.domain.errors import TigenError
from tigen.generators import BatchInsertBuilder, SchemaGenerator, ValueGenerator, render_drop
from tigen.infrastructure.db_factory import ConnectionParams, MySQLConnectionProvider
from tigen.inserter import ConcurrentInserter, RunConfig
from tigen.reporter import print_result
from tigen.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Generate a random table and fill it with test data on TiDB/MySQL.")

log = get_logger(__name__)


def _pick(value, default):
    return default if value is None else value


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    password = "***" if settings.db_password else "(empty)"
    typer.echo(
        f"DB={settings.db_user}:{password}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.table_name} columns={settings.column_count} rows={settings.row_count} "
        f"workers={settings.worker_count} batch={settings.batch_size} "
        f"primary_key={settings.primary_key} seed={settings.seed}"
    )


@app.command()
def preview(
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Table name."),
    columns: Optional[int] = typer.Option(None, "--columns", "-c", help="Column count."),
    sample_rows: int = typer.Option(3, "--sample-rows", min=1, help="Rows in the sample INSERT."),
    no_primary_key: bool = typer.Option(
        False, "--no-primary-key", help="Do not add the auto-increment `pk` column."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Deterministic RNG seed."),
) -> None:
    """
    Print the statements a run would execute, without connecting to a server.
    """
    settings = get_settings()
    table_name = _pick(table, settings.table_name)
    column_count = _pick(columns, settings.column_count)
    if column_count < 1:
        typer.echo(f"Invalid options: column_count must be >= 1, got {column_count}", err=True)
        raise typer.Exit(code=1)

    rng = random.Random(_pick(seed, settings.seed))
    create_statement, registry = SchemaGenerator(rng).generate(
        table_name,
        column_count,
        settings.primary_key and not no_primary_key,
    )
    typer.echo(render_drop(table_name) + ";")
    typer.echo(create_statement + ";")
    typer.echo(BatchInsertBuilder(ValueGenerator(rng)).build(table_name, sample_rows, registry) + ";")


@app.command()
def run(
    host: Optional[str] = typer.Option(None, "--host", help="DB host."),
    port: Optional[int] = typer.Option(None, "--port", help="DB port."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="DB username."),
    password: Optional[str] = typer.Option(None, "--password", "--pass", "-p", help="DB password."),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Database name."),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Table name."),
    columns: Optional[int] = typer.Option(None, "--columns", "-c", help="Column count."),
    rows: Optional[int] = typer.Option(None, "--rows", "-r", help="Row count."),
    workers: Optional[int] = typer.Option(
        None, "--workers", "--threads", "-w", help="Parallel insert workers."
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Maximum rows per INSERT statement."
    ),
    no_primary_key: bool = typer.Option(
        False, "--no-primary-key", help="Do not add the auto-increment `pk` column."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Deterministic RNG seed."),
    as_json: bool = typer.Option(False, "--json", help="Print the run summary as JSON."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON."),
) -> None:
    """
    Create the table and insert rows from parallel workers.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=json_logs or settings.json_logs)

    overrides = {
        "db_host": host,
        "db_port": port,
        "db_user": user,
        "db_password": password,
        "db_name": database,
    }
    effective: Settings = settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )
    params = ConnectionParams.from_settings(effective)

    try:
        config = RunConfig(
            table_name=_pick(table, settings.table_name),
            column_count=_pick(columns, settings.column_count),
            row_count=_pick(rows, settings.row_count),
            worker_count=_pick(workers, settings.worker_count),
            batch_size=_pick(batch_size, settings.batch_size),
            include_primary_key=settings.primary_key and not no_primary_key,
            seed=_pick(seed, settings.seed),
        )
    except ValueError as exc:
        typer.echo(f"Invalid options: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Generating `{config.table_name}` on {params.describe()}: columns={config.column_count} "
        f"rows={config.row_count} workers={config.worker_count} batch={config.batch_size}"
    )
    provider = MySQLConnectionProvider(params, retries=effective.connect_retries)
    try:
        result = ConcurrentInserter(config, provider).run()
    except TigenError as exc:
        log.error(
            f"[RUN FAILED] stage={exc.stage}: {exc}",
            extra={"stage": exc.stage, "table": config.table_name},
        )
        typer.echo(f"Data generation failed during {exc.stage}: {exc}", err=True)
        raise typer.Exit(code=exc.exit_code)

    if as_json:
        typer.echo(json.dumps(result, indent=2))
    else:
        print_result(result)
    log.info("Data generating finished", extra={"table": config.table_name, "rows": result["rows"]})


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
