"""Typer CLI for FarmTrace."""

import asyncio

import typer
from rich.console import Console

from farmtrace.common.config import get_settings
from farmtrace.common.logging import setup_logging

app = typer.Typer(name="farmtrace", help="FarmTrace: supply-chain stage ledger")
console = Console()


def _run(coro):
    return asyncio.run(coro)


def _configure_logging() -> None:
    setup_logging(get_settings().log_level)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(5000, help="Bind port"),
):
    """Start the FarmTrace API server."""
    import uvicorn
    from farmtrace.app import create_app

    console.print(f"[bold green]Starting FarmTrace on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    from farmtrace.deps import get_db

    _configure_logging()

    async def _init():
        db = get_db()
        await db.init()
        await db.create_all()
        await db.close()

    _run(_init())
    console.print("[bold green]Database initialized[/bold green]")


@app.command("create-user")
def create_user(
    full_name: str = typer.Argument(..., help="Display name shown on stages"),
    username: str = typer.Argument(..., help="Unique username"),
    role: str = typer.Option("producer", help="producer, admin or consumer"),
):
    """Register an actor and print a bearer token for it."""
    from farmtrace.common.exceptions import PersistenceError
    from farmtrace.common.security import issue_token
    from farmtrace.deps import get_db, get_user_service

    _configure_logging()

    async def _create():
        db = get_db()
        await db.init()
        await db.create_all()
        try:
            async with db.get_session() as session:
                user = await get_user_service().create_user(
                    session, full_name, username, role=role,
                )
                return user.id, user.role
        finally:
            await db.close()

    try:
        user_id, user_role = _run(_create())
    except (ValueError, PersistenceError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]User {user_id}[/bold] ({user_role}) created")
    console.print(issue_token(user_id, user_role), soft_wrap=True)


@app.command("issue-token")
def issue(
    user_id: int = typer.Argument(..., help="Actor id"),
    role: str = typer.Argument(..., help="Actor role"),
):
    """Sign a bearer token for an existing actor (offline, no DB required)."""
    from farmtrace.common.security import issue_token

    console.print(issue_token(user_id, role), soft_wrap=True)


@app.command()
def verify(
    product_id: int = typer.Argument(..., help="Product id"),
):
    """Run the chronological integrity check for a product."""
    from farmtrace.common.exceptions import ProductNotFoundError
    from farmtrace.deps import get_db, get_ledger_service

    _configure_logging()

    async def _verify():
        db = get_db()
        await db.init()
        try:
            async with db.get_session() as session:
                return await get_ledger_service().verify_integrity(session, product_id)
        finally:
            await db.close()

    try:
        report = _run(_verify())
    except ProductNotFoundError as e:
        console.print(f"[bold red]NOT_FOUND[/bold red] — {e.message}")
        raise typer.Exit(1)

    if report.is_valid:
        console.print(f"[bold green]VALID[/bold green] — {report.message}")
    else:
        console.print(f"[bold red]COMPROMISED[/bold red] — {report.message}")
    console.print(f"  Stages checked: {report.total_stages}")
    if not report.is_valid:
        raise typer.Exit(1)


@app.command()
def health(
    url: str = typer.Option("http://localhost:5000", help="Server URL"),
):
    """Check FarmTrace server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
