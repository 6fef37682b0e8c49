# ruff: noqa: I001
"""CLI for the ``admin_records`` package.

Typer console interface over a document store, either a JSON export of the
whole database (``--dump-path``) or the SQL-backed store (``--database-url`` /
``DATABASE_URL``). Settings are loaded from the environment and a local
``.env`` (via ``python-dotenv``) before any command runs; tables are rendered
with ``rich``. Business logic lives in the library modules; handlers here only
read, format and report.

Commands
--------
- ``assets``: asset register (asset collections plus approved petty cash assets)
- ``petty-cash``: petty cash entries and dashboard figures
- ``matrix``: category × month report for one year
- ``deleted``: deleted and rejected petty cash entries
- ``search``: free-text search across store paths
- ``approve``: record an approval decision on a petty cash entry

Handlers print ``Error: ...`` to stderr and exit with status 1 on failure.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from .aggregate import ALL, build_year_month_matrix, filter_rows, group_by_year_month, summarize
from .coercion import format_currency_inr
from .config import Settings, load_settings
from .errors import StoreError
from .export import (
    DisplayTable,
    asset_display_rows,
    deleted_display_rows,
    matrix_display_rows,
    petty_cash_display_rows,
    rows_to_csv,
    write_xlsx,
)
from .logging_setup import configure_logging, get_logger
from .models import CANONICAL_CATEGORIES, NormalizedRecord
from .search import DEFAULT_SEARCH_PATHS, search_paths
from .store import DocumentStore, InMemoryStore
from .views import (
    DELETE_REPORT_PATH,
    PETTY_ADMIN_PATH,
    asset_paths,
    petty_cash_paths,
    read_path_data,
    recompute_assets,
    recompute_deleted,
    recompute_petty_cash,
    set_approval,
)

_logger = get_logger("admin_records.cli")

console = Console()

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize, aggregate and search admin console records. Reads a JSON "
        "dump (--dump-path) or the SQL store (--database-url / DATABASE_URL)."
    ),
)


# ---- Shared options ------------------------------------------------------------

DumpPathOption = Annotated[
    Path | None,
    typer.Option("--dump-path", help="JSON export of the whole database.", dir_okay=False),
]
DatabaseUrlOption = Annotated[
    str | None,
    typer.Option("--database-url", help="Override DATABASE_URL (falls back to env var)."),
]
CsvOutOption = Annotated[
    Path | None,
    typer.Option("--csv-out", help="Also write the displayed rows as CSV.", dir_okay=False),
]
XlsxOutOption = Annotated[
    Path | None,
    typer.Option("--xlsx-out", help="Also write the displayed rows as an XLSX workbook.", dir_okay=False),
]
YearOption = Annotated[int | None, typer.Option("--year", help="Restrict to one calendar year.")]
MonthOption = Annotated[
    int | None,
    typer.Option("--month", min=1, max=12, help="Restrict to one month (1-12); requires --year."),
]


# ---- Small module-level helpers used by commands -------------------------------


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _settings(ctx: typer.Context) -> Settings:
    settings = ctx.obj if isinstance(ctx.obj, Settings) else None
    return settings or load_settings()


def _open_store(settings: Settings, dump_path: Path | None, database_url: str | None) -> DocumentStore:
    if dump_path is not None:
        return InMemoryStore.from_json_file(dump_path)
    url = database_url or settings.database_url
    if not url:
        raise _fail("provide --dump-path or --database-url (or set DATABASE_URL)")
    # Deferred import keeps SQLAlchemy off the JSON-dump path
    from .persistence import SqlDocumentStore

    return SqlDocumentStore(url)


def _render(table: DisplayTable, *, title: str) -> None:
    out = Table(title=title, show_lines=False)
    for name in table.columns:
        out.add_column(name, overflow="fold")
    for row in table.rows:
        out.add_row(*row)
    console.print(out)


def _export(table: DisplayTable, *, title: str, csv_out: Path | None, xlsx_out: Path | None) -> None:
    if csv_out is not None:
        csv_out.parent.mkdir(parents=True, exist_ok=True)
        with open(csv_out, "w", encoding="utf-8", newline="") as fh:
            fh.write(rows_to_csv(table))
        console.print(f"Wrote CSV: {csv_out}", soft_wrap=True)
    if xlsx_out is not None:
        write_xlsx(table, xlsx_out, title=title)
        console.print(f"Wrote XLSX: {xlsx_out}", soft_wrap=True)


def _period(records: list[NormalizedRecord], year: int | None, month: int | None) -> list[NormalizedRecord]:
    if year is None:
        if month is not None:
            raise _fail("--month requires --year")
        return records
    grouping = group_by_year_month(records)
    return filter_rows(grouping, year, month - 1 if month is not None else ALL)


def _totals_line(records: list[NormalizedRecord]) -> str:
    total = sum(r.amount_num for r in records)
    return f"Entries: {len(records)}  Total: {format_currency_inr(total)}"


# ---- Commands --------------------------------------------------------------------


@app.command("assets")
def assets_cmd(
    ctx: typer.Context,
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
    year: YearOption = None,
    month: MonthOption = None,
    csv_out: CsvOutOption = None,
    xlsx_out: XlsxOutOption = None,
) -> None:
    """Asset register built from asset collections and approved petty cash."""

    settings = _settings(ctx)
    try:
        store = _open_store(settings, dump_path, database_url)
        collection = settings.assets_collection
        data = read_path_data(store, (PETTY_ADMIN_PATH, *asset_paths(collection)))
        records = _period(recompute_assets(data, assets_collection=collection), year, month)
        table = asset_display_rows(records)
        _render(table, title="Assets")
        console.print(_totals_line(records), soft_wrap=True)
        _export(table, title="Assets", csv_out=csv_out, xlsx_out=xlsx_out)
    except (StoreError, OSError) as e:
        raise _fail(f"assets failed: {e}") from e


@app.command("petty-cash")
def petty_cash_cmd(
    ctx: typer.Context,
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
    year: YearOption = None,
    month: MonthOption = None,
    approved_only: Annotated[bool, typer.Option("--approved-only", help="Only approved entries.")] = False,
    csv_out: CsvOutOption = None,
    xlsx_out: XlsxOutOption = None,
) -> None:
    """Petty cash entries with dashboard totals."""

    settings = _settings(ctx)
    try:
        store = _open_store(settings, dump_path, database_url)
        data = read_path_data(store, petty_cash_paths(settings.petty_root))
        all_records = recompute_petty_cash(data, petty_root=settings.petty_root)
        records = _period(all_records, year, month)
        if approved_only:
            records = [r for r in records if r.approval.is_approved]
        table = petty_cash_display_rows(records)
        _render(table, title="Petty Cash")
        console.print(_totals_line(records), soft_wrap=True)

        years = sorted({r.date_parsed.year for r in all_records if r.date_parsed is not None})
        if years:
            summary = summarize(all_records, year=year or years[-1])
            console.print(
                f"Approved: {summary.count}  Total: {format_currency_inr(summary.total)}  "
                f"Average: {format_currency_inr(summary.average)}  Top month: {summary.top_month}",
                soft_wrap=True,
            )
        _export(table, title="PettyCash", csv_out=csv_out, xlsx_out=xlsx_out)
    except (StoreError, OSError) as e:
        raise _fail(f"petty-cash failed: {e}") from e


@app.command("matrix")
def matrix_cmd(
    ctx: typer.Context,
    year: Annotated[int, typer.Option("--year", help="Report year.")],
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
    approved_only: Annotated[bool, typer.Option("--approved-only", help="Only approved entries.")] = False,
    csv_out: CsvOutOption = None,
    xlsx_out: XlsxOutOption = None,
) -> None:
    """Category × month petty cash report for one year."""

    settings = _settings(ctx)
    try:
        store = _open_store(settings, dump_path, database_url)
        data = read_path_data(store, petty_cash_paths(settings.petty_root))
        records = recompute_petty_cash(data, petty_root=settings.petty_root)
        if approved_only:
            records = [r for r in records if r.approval.is_approved]
        matrix = build_year_month_matrix(records, CANONICAL_CATEGORIES, year)
        table = matrix_display_rows(matrix)
        _render(table, title=f"Petty Cash {matrix.year}")
        console.print(
            f"Entries: {matrix.year_count}  Total: {format_currency_inr(matrix.year_total)}",
            soft_wrap=True,
        )
        _export(table, title=f"{matrix.year}-PettyCash", csv_out=csv_out, xlsx_out=xlsx_out)
    except (StoreError, OSError) as e:
        raise _fail(f"matrix failed: {e}") from e


@app.command("deleted")
def deleted_cmd(
    ctx: typer.Context,
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
    action: Annotated[
        str | None,
        typer.Option("--action", help="Only 'delete' or only 'rejected' entries (default: both)."),
    ] = None,
    year: YearOption = None,
    month: MonthOption = None,
    csv_out: CsvOutOption = None,
    xlsx_out: XlsxOutOption = None,
) -> None:
    """Deleted and rejected petty cash entries."""

    settings = _settings(ctx)
    if action is not None and action.strip().lower() not in ("delete", "rejected"):
        raise _fail("--action must be 'delete' or 'rejected'")
    try:
        store = _open_store(settings, dump_path, database_url)
        data = read_path_data(store, (DELETE_REPORT_PATH,))
        records = _period(recompute_deleted(data, action=action), year, month)
        table = deleted_display_rows(records)
        _render(table, title="Deleted / Rejected")
        console.print(_totals_line(records), soft_wrap=True)
        _export(table, title="DeletedRecords", csv_out=csv_out, xlsx_out=xlsx_out)
    except (StoreError, OSError) as e:
        raise _fail(f"deleted failed: {e}") from e


@app.command("search")
def search_cmd(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to look for (case-insensitive).")],
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
    path: Annotated[
        list[str] | None,
        typer.Option("--path", help="Store path to search (repeatable); defaults to the console's node list."),
    ] = None,
    max_depth: Annotated[int | None, typer.Option("--max-depth", min=1, help="Tree recursion bound.")] = None,
) -> None:
    """Search record-like nodes across store paths."""

    settings = _settings(ctx)
    if not query.strip():
        raise _fail("query must not be empty")
    try:
        store = _open_store(settings, dump_path, database_url)
        results = search_paths(
            store,
            path or DEFAULT_SEARCH_PATHS,
            query,
            max_depth=max_depth or settings.search_max_depth,
            max_workers=settings.search_workers,
        )
    except (StoreError, OSError) as e:
        raise _fail(f"search failed: {e}") from e

    if not results:
        console.print("No results.")
        return
    for node, records in results.items():
        out = Table(title=f"{node} ({len(records)})")
        out.add_column("id", overflow="fold")
        out.add_column("record", overflow="fold")
        for r in records:
            out.add_row(str(r.get("id")), json.dumps(r, default=str, ensure_ascii=False))
        console.print(out)


@app.command("approve")
def approve_cmd(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Petty cash entry id under PettyCash/admin.")],
    value: Annotated[str, typer.Option("--value", help="Approval value to record.")] = "Approved",
    by: Annotated[str, typer.Option("--by", help="Who approved.")] = "Manager",
    dump_path: DumpPathOption = None,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Write an approval decision; JSON dumps are rewritten in place."""

    settings = _settings(ctx)
    try:
        store = _open_store(settings, dump_path, database_url)
        set_approval(store, record_id, value, by=by)
        if dump_path is not None and isinstance(store, InMemoryStore):
            with open(dump_path, "w", encoding="utf-8") as fh:
                json.dump(store.snapshot() or {}, fh, ensure_ascii=False, indent=2)
    except (StoreError, ValueError, OSError) as e:
        raise _fail(f"approval failed: {e}") from e
    console.print(f"{record_id}: {value} (by {by})", soft_wrap=True)


@app.callback()
def _root(
    ctx: typer.Context,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override ADMIN_RECORDS_LOG_LEVEL (e.g. DEBUG)."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), resolves settings and configures
    logging before dispatching to a subcommand.
    """

    settings = load_settings(dotenv_path=Path.cwd() / ".env")
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings
    _logger.debug("cli:start command=%s", ctx.invoked_subcommand)


if __name__ == "__main__":  # pragma: no cover
    app()
