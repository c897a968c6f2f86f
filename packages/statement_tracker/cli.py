# ruff: noqa: I001
"""CLI for the ``statement_tracker`` package.

Typer-based console interface over the service API. Environment variables
(``DATABASE_URL``, ``OPENAI_API_KEY``, ``STATEMENT_TRACKER_*``) are loaded from
a local ``.env`` using ``python-dotenv`` before any command runs. The caller is
identified with ``--user-id`` (or ``STATEMENT_TRACKER_USER_ID``); business
logic lives in ``statement_tracker.api`` and related modules.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from openai import OpenAIError
from pydantic import ValidationError
from typer.models import OptionInfo

from .auth import AuthContext, require_user_id
from .errors import StatementTrackerError
from .logging_setup import configure_logging
from .models import PaginationOptions, TransactionDict, TransactionListParams
from .settings import Settings

app = typer.Typer(add_completion=False, help="Bank statement ingestion and categorization.")

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer inspects these when used as default values below.
USER_ID_OPTION: OptionInfo = typer.Option(
    None,
    "--user-id",
    envvar="STATEMENT_TRACKER_USER_ID",
    help="Act as this user (falls back to STATEMENT_TRACKER_USER_ID).",
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
SORT_BY_OPTION: OptionInfo = typer.Option("date", help="Sort field: date, amount or description.")
SORT_ORDER_OPTION: OptionInfo = typer.Option("asc", help="Sort direction: asc or desc.")
NUM_ITEMS_OPTION: OptionInfo = typer.Option(20, help="Page size.")
CURSOR_OPTION: OptionInfo = typer.Option(None, help="Continuation cursor from a previous page.")

# Failures reported as "Error: ..." with exit code 1 instead of a traceback.
_EXPECTED_ERRORS = (StatementTrackerError, ValueError, RuntimeError, OpenAIError, OSError)


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _format_validation(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


def _print_transactions(rows: list[TransactionDict]) -> None:
    for tx in rows:
        category = tx["category"]["name"] if tx["category"] else ""
        typer.echo(
            "\t".join(
                [
                    str(tx["id"]),
                    tx["date"],
                    f"{tx['amount']:.2f}",
                    tx["direction"],
                    tx["description"],
                    category,
                    tx["category_note"] or "",
                ]
            )
        )


def _list_params(
    *,
    category_id: int | None,
    sort_by: str,
    sort_order: str,
    num_items: int,
    cursor: str | None,
) -> TransactionListParams:
    try:
        return TransactionListParams(
            category_id=category_id,
            sort_by=sort_by,
            sort_order=sort_order,
            num_items=num_items,
            cursor=cursor,
        )
    except ValidationError as e:
        raise _fail(_format_validation(e)) from e


# ---- Schema / users ----------------------------------------------------------


@app.command("init-db")
def init_db_cmd(database_url: str | None = DATABASE_URL_OPTION) -> None:
    """Create missing tables from the ORM metadata (development databases)."""

    from .api import init_schema

    try:
        init_schema(database_url=database_url)
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo("Schema ready.")


@app.command("create-user")
def create_user_cmd(
    email: Annotated[str | None, typer.Option(help="Email for a password account.")] = None,
    password: Annotated[str | None, typer.Option(help="Password (min 8 chars).")] = None,
    name: Annotated[str | None, typer.Option(help="Optional display name.")] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Create a user and print its id; anonymous when no email is given."""

    from db.client import session_scope

    from .auth import create_anonymous_user, register_user
    from .models import Credentials

    try:
        with session_scope(database_url=database_url) as session:
            if email is None:
                user = create_anonymous_user(session)
            else:
                creds = Credentials(email=email, password=password or "", name=name)
                user = register_user(
                    session, email=creds.email, password=creds.password, name=creds.name
                )
    except ValidationError as e:
        raise _fail(_format_validation(e)) from e
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo(str(user["id"]))


# ---- Ingestion ---------------------------------------------------------------


@app.command("ingest")
def ingest_cmd(
    path: Annotated[Path, typer.Argument(dir_okay=False, help="Statement file to upload.")],
    user_id: int | None = USER_ID_OPTION,
    media_type: Annotated[
        str | None, typer.Option(help="Declared media type (inferred from extension if omitted).")
    ] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Upload one statement file and extract its transactions."""

    from .extraction import OpenAIStatementExtractor
    from .statements import process_statement
    from .uploads import resolve_media_type, validate_upload

    settings = Settings.from_env(database_url=database_url)
    ctx = AuthContext(user_id=user_id)
    try:
        require_user_id(ctx)
        data = path.read_bytes()
        validate_upload(path.name, len(data), max_bytes=settings.max_upload_bytes)
        result = process_statement(
            ctx,
            file_data=data,
            file_name=path.name,
            media_type=resolve_media_type(path.name, media_type),
            extractor=OpenAIStatementExtractor(model=settings.model),
            database_url=settings.database_url,
        )
    except _EXPECTED_ERRORS as e:
        raise _fail(f"Failed to process statement: {e}") from e
    typer.echo(
        f"Statement {result['statement_id']}: "
        f"processed {result['transaction_count']} transactions"
    )


@app.command("statements")
def statements_cmd(
    user_id: int | None = USER_ID_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List uploaded statements, newest first."""

    from db.client import session_scope

    from .statements import get_statements

    try:
        with session_scope(database_url=database_url) as session:
            rows = get_statements(session, AuthContext(user_id=user_id))
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    for st in rows:
        count = "" if st["transaction_count"] is None else str(st["transaction_count"])
        typer.echo(f"{st['id']}\t{st['upload_date']}\t{st['status']}\t{count}\t{st['file_name']}")


# ---- Transactions ------------------------------------------------------------


@app.command("transactions")
def transactions_cmd(
    user_id: int | None = USER_ID_OPTION,
    category_id: Annotated[int | None, typer.Option(help="Only this category.")] = None,
    sort_by: str = SORT_BY_OPTION,
    sort_order: str = SORT_ORDER_OPTION,
    num_items: int = NUM_ITEMS_OPTION,
    cursor: str | None = CURSOR_OPTION,
    uncategorized: Annotated[
        bool, typer.Option("--uncategorized", help="Only transactions without a category.")
    ] = False,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print one page of transactions followed by the continuation cursor."""

    from db.client import session_scope

    from .transactions import get_transactions, get_uncategorized_transactions

    params = _list_params(
        category_id=category_id,
        sort_by=sort_by,
        sort_order=sort_order,
        num_items=num_items,
        cursor=cursor,
    )
    ctx = AuthContext(user_id=user_id)
    pagination = PaginationOptions(num_items=params.num_items, cursor=params.cursor)
    try:
        with session_scope(database_url=database_url) as session:
            if uncategorized:
                page = get_uncategorized_transactions(
                    session,
                    ctx,
                    pagination=pagination,
                    sort_by=params.sort_by,
                    sort_order=params.sort_order,
                )
            else:
                page = get_transactions(
                    session,
                    ctx,
                    pagination=pagination,
                    category_id=params.category_id,
                    sort_by=params.sort_by,
                    sort_order=params.sort_order,
                )
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    _print_transactions(page["page"])
    if not page["is_done"]:
        typer.echo(f"next: {page['continue_cursor']}", err=True)


@app.command("count")
def count_cmd(
    user_id: int | None = USER_ID_OPTION,
    category_id: Annotated[int | None, typer.Option(help="Only this category.")] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Print the number of transactions (optionally for one category)."""

    from db.client import session_scope

    from .transactions import get_transaction_count

    try:
        with session_scope(database_url=database_url) as session:
            n = get_transaction_count(
                session, AuthContext(user_id=user_id), category_id=category_id
            )
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo(str(n))


@app.command("categorize")
def categorize_cmd(
    transaction_id: Annotated[int, typer.Argument(help="Transaction to update.")],
    user_id: int | None = USER_ID_OPTION,
    category_id: Annotated[
        int | None, typer.Option(help="Category to assign; omit to clear.")
    ] = None,
    note: Annotated[str | None, typer.Option(help="Optional note; omit to clear.")] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Set (or clear) a transaction's category and note."""

    from db.client import session_scope

    from .transactions import update_transaction_category

    try:
        with session_scope(database_url=database_url) as session:
            update_transaction_category(
                session,
                AuthContext(user_id=user_id),
                transaction_id=transaction_id,
                category_id=category_id,
                category_note=note,
            )
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo("Updated.")


# ---- Categories --------------------------------------------------------------


@app.command("categories")
def categories_cmd(
    user_id: int | None = USER_ID_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List categories as ``<id>\\t<name>\\t<color>``."""

    from db.client import session_scope

    from .categories import get_categories

    try:
        with session_scope(database_url=database_url) as session:
            rows = get_categories(session, AuthContext(user_id=user_id))
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    for c in rows:
        typer.echo(f"{c['id']}\t{c['name']}\t{c['color']}")


@app.command("create-category")
def create_category_cmd(
    name: Annotated[str, typer.Argument()],
    color: Annotated[str, typer.Argument(help="Any color string, e.g. #22c55e.")],
    user_id: int | None = USER_ID_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    from db.client import session_scope

    from .categories import create_category

    try:
        with session_scope(database_url=database_url) as session:
            row = create_category(session, AuthContext(user_id=user_id), name=name, color=color)
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo(str(row["id"]))


@app.command("update-category")
def update_category_cmd(
    category_id: Annotated[int, typer.Argument()],
    name: Annotated[str, typer.Argument()],
    color: Annotated[str, typer.Argument()],
    user_id: int | None = USER_ID_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    from db.client import session_scope

    from .categories import update_category

    try:
        with session_scope(database_url=database_url) as session:
            update_category(
                session,
                AuthContext(user_id=user_id),
                category_id=category_id,
                name=name,
                color=color,
            )
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo("Updated.")


@app.command("delete-category")
def delete_category_cmd(
    category_id: Annotated[int, typer.Argument()],
    user_id: int | None = USER_ID_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete a category; transactions keep their (now dangling) reference."""

    from db.client import session_scope

    from .categories import delete_category

    try:
        with session_scope(database_url=database_url) as session:
            delete_category(session, AuthContext(user_id=user_id), category_id=category_id)
    except _EXPECTED_ERRORS as e:
        raise _fail(str(e)) from e
    typer.echo("Deleted.")


# ---- Web ---------------------------------------------------------------------


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port.")] = 5000,
    debug: Annotated[bool, typer.Option(help="Enable the Flask debugger.")] = False,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Run the JSON HTTP API with the Flask development server."""

    from .web import create_app

    create_app(Settings.from_env(database_url=database_url)).run(
        host=host, port=port, debug=debug
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current directory and configure logging."""

    # override=False keeps variables already present in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover - `python -m statement_tracker.cli`
    main()
