import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from enrolment.config import settings
from enrolment.database import Database

APP_NAME = "Student Enrolment CLI"

app = typer.Typer(help=APP_NAME, no_args_is_help=True)
console = Console()


@app.command("init-db")
def cli_init_db(
    db_file: Optional[str] = typer.Option(None, "--db-file", help="SQLite file (default: ENROLMENT_DB_FILE)"),
):
    """Create the database schema if it does not exist."""
    database = Database(db_file or settings.database_file)
    try:
        database.create_tables()
    except Exception as e:
        console.print(f"[bold red]Database initialisation failed: {e}[/]")
        raise typer.Exit(code=1)
    console.print(Panel(f"Database ready at [bold]{database.db_file}[/]", title="init-db", border_style="green"))


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the REST API with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    console.print(f"Starting API on http://{host}:{port}/ (database: {settings.database_file})")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "enrolment.api:app",
        "--host", host,
        "--port", str(port),
        "--log-level", settings.log_level.lower(),
    ]
    if reload:
        args.append("--reload")
    try:
        result = subprocess.run(args)
    except FileNotFoundError:
        console.print("[bold red]Error:[/] `uvicorn` could not be started. Make sure it is installed.")
        raise typer.Exit(code=1)
    if result.returncode:
        raise typer.Exit(code=result.returncode)


if __name__ == "__main__":
    app()
