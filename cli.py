#!/usr/bin/env python3
"""
Lea CLI

Maintenance commands for the Lea clinic backend: run the API, apply the
database schema and RLS policies, manage accounts, verify a deployment.
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from lea import __version__
from lea.admin import (
    DEMO_ACCOUNTS,
    DEMO_ADMIN,
    RESET_CONFIRMATION,
    SetupError,
    apply_statements,
    bootstrap_admin,
    check_connection,
    count_policies,
    create_demo_accounts,
    delete_all_users,
    environment_report,
    login_credentials,
    split_statements,
    verify_deployment,
)
from lea.db.client import get_admin_client, get_config

console = Console()

SQL_DIR = Path(__file__).parent / "sql"

POLICY_OVERVIEW = [
    ("user_profiles", "Role-based access with self-management"),
    ("clients", "Practitioner management + client self-view"),
    ("students", "Practitioner management + student self-view"),
    ("treatments", "Public active view + practitioner management"),
    ("courses", "Public active view + practitioner management"),
    ("bookings", "Role-based access with client view"),
    ("enrollments", "Role-based access with student view"),
    ("consent_forms", "Practitioner management + client signatures"),
    ("payments", "Practitioner management + user view"),
    ("course_content", "Enrolled student access only"),
    ("assessments", "Role-based with student submissions"),
]


def admin_client_or_exit():
    """The service-role client, or a red message and exit code 1."""
    try:
        return get_admin_client()
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        console.print("[dim]Set SUPABASE_URL and SUPABASE_SERVICE_KEY (service_role key).[/dim]")
        sys.exit(1)


def read_sql(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]✗ {path} not found[/red]")
        sys.exit(1)
    return path.read_text()


def run_statements(client, statements: list[str], stop_on_error: bool):
    """Apply statements with a progress bar and print the outcome."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Applying {len(statements)} statements...", total=len(statements))

        def on_statement(index: int, statement: str):
            first_line = statement.splitlines()[0][:60]
            progress.update(task, completed=index - 1, description=f"[{index}/{len(statements)}] {first_line}")

        report = apply_statements(client, statements, stop_on_error=stop_on_error, on_statement=on_statement)
        progress.update(task, completed=report.applied + len(report.failures), description="Done")

    console.print(f"\n[bold]Applied {report.applied}/{report.total} statements[/bold]")
    if report.failures:
        table = Table(title="Failed Statements")
        table.add_column("#", justify="right")
        table.add_column("Statement", style="cyan")
        table.add_column("Error", style="red")
        for failure in report.failures:
            table.add_row(str(failure.index), failure.statement.splitlines()[0][:60], failure.error)
        console.print(table)
        if report.stopped_early:
            console.print("[yellow]Stopped at the first failure; later statements were not run.[/yellow]")
        sys.exit(1)

    console.print("[green]✓ All statements applied[/green]")


@click.group()
@click.version_option(version=__version__, prog_name="lea")
def cli():
    """
    Lea - Clinic and Training Management

    Backend maintenance for bookings, payments, compliance tracking
    and course enrollment.
    """
    pass


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", "-p", type=int, default=8000, show_default=True, help="Port to listen on")
def serve(host: str, port: int):
    """
    Run the API server.
    """
    from server import run_server

    console.print(f"[bold]Starting Lea API on {host}:{port}[/bold]")
    run_server(host=host, port=port)


@cli.command()
def check():
    """
    Check configuration and the Supabase connection.
    """
    report = environment_report()

    table = Table(title="Configuration")
    table.add_column("Variable", style="cyan")
    table.add_column("Status")
    for name, is_set in report["key_variables"].items():
        table.add_row(name, "[green]SET[/green]" if is_set else "[dim]NOT SET[/dim]")
    console.print(table)

    config = get_config()
    if not config.is_configured:
        console.print("[red]✗ Supabase URL or anon key missing[/red]")
        sys.exit(1)
    if not config.has_service_key:
        console.print("[yellow]Service key not set; skipping admin connection test[/yellow]")
        return

    status = check_connection(get_admin_client())
    if status.ok:
        console.print(f"[green]✓ {status.message}[/green]")
    else:
        console.print(f"[red]✗ Connection failed: {status.message}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--file", "sql_file", type=click.Path(dir_okay=False, path_type=Path),
              default=SQL_DIR / "migration.sql", show_default=True, help="SQL file to apply")
@click.option("--dry-run", is_flag=True, help="List the statements without running them")
@click.option("--stop-on-error", is_flag=True, help="Stop at the first failing statement")
def migrate(sql_file: Path, dry_run: bool, stop_on_error: bool):
    """
    Apply a schema migration through the exec_sql RPC.

    The exec_sql function must already exist; create it once from the
    Supabase SQL editor using the top of sql/migration.sql.
    """
    statements = split_statements(read_sql(sql_file))
    console.print(f"[bold]{sql_file.name}[/bold]: {len(statements)} statements")

    if dry_run:
        for index, statement in enumerate(statements, start=1):
            console.print(f"  [dim]{index:>3}[/dim] {statement.splitlines()[0][:80]}")
        return

    run_statements(admin_client_or_exit(), statements, stop_on_error)


@cli.command()
@click.option("--file", "sql_file", type=click.Path(dir_okay=False, path_type=Path),
              default=SQL_DIR / "rls-policies.sql", show_default=True, help="RLS policy file")
@click.option("--apply", "apply_now", is_flag=True, help="Apply the policies through the exec_sql RPC")
@click.option("--stop-on-error", is_flag=True, help="Stop at the first failing statement")
def rls(sql_file: Path, apply_now: bool, stop_on_error: bool):
    """
    Show or apply the Row Level Security policies.
    """
    sql = read_sql(sql_file)
    summary = count_policies(sql)
    console.print(f"[green]✓ {sql_file.name} found[/green]")
    console.print(
        f"File contains [bold]{summary.policy_count}[/bold] RLS policies "
        f"for [bold]{summary.table_count}[/bold] tables\n"
    )

    table = Table(title="Security Policies")
    table.add_column("Table", style="cyan")
    table.add_column("Access")
    for name, description in POLICY_OVERVIEW:
        table.add_row(name, description)
    console.print(table)

    if apply_now:
        run_statements(admin_client_or_exit(), split_statements(sql), stop_on_error)
        return

    console.print(Panel(
        "1. Open your project at https://app.supabase.com\n"
        "2. Click [bold]SQL Editor[/bold] and start a new query\n"
        f"3. Paste the contents of {sql_file.name} and run it\n"
        "4. Check the output for errors\n\n"
        "[dim]Or run this command again with --apply to use the exec_sql RPC.[/dim]\n"
        "[dim]'relation does not exist' means the migration has not been run yet.[/dim]",
        title="How to apply",
        border_style="blue",
    ))


@cli.command("seed-demo")
@click.option("--with-admin", is_flag=True, help="Also create the demo admin account")
def seed_demo(with_admin: bool):
    """
    Create the demo client and practitioner accounts.
    """
    accounts = DEMO_ACCOUNTS + ((DEMO_ADMIN,) if with_admin else ())
    report = create_demo_accounts(admin_client_or_exit(), accounts=accounts)

    for created in report.accounts:
        console.print(f"[green]✓ Created {created['type']}: {created['user']['email']}[/green]")
    for error in report.errors:
        console.print(f"[yellow]• {error['type']}: {error['error']}[/yellow]")

    table = Table(title="Login Credentials")
    table.add_column("Account", style="cyan")
    table.add_column("Email")
    table.add_column("Password")
    for creds in login_credentials(accounts).values():
        table.add_row(creds["name"], creds["email"], creds["password"])
    console.print(table)


@cli.command("create-admin")
@click.option("--email", prompt=True, help="Admin email address")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Admin password")
@click.option("--first-name", prompt=True, help="First name")
@click.option("--last-name", prompt=True, help="Last name")
def create_admin(email: str, password: str, first_name: str, last_name: str):
    """
    Create the first admin user of a fresh project.
    """
    try:
        user = bootstrap_admin(admin_client_or_exit(), email, password, first_name, last_name)
    except SetupError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(1)

    console.print(f"[green]✓ Admin user created: {user['email']}[/green]")
    console.print(f"  ID: {user['id']}")


@cli.command("reset-users")
@click.option("--yes", is_flag=True, help=f"Skip typing {RESET_CONFIRMATION}")
def reset_users(yes: bool):
    """
    Delete ALL auth users. Irreversible.
    """
    if not yes:
        console.print("[bold red]This will permanently delete ALL users![/bold red]")
        typed = click.prompt(f"Type {RESET_CONFIRMATION} to continue", default="", show_default=False)
        if typed != RESET_CONFIRMATION:
            console.print("[yellow]Aborted[/yellow]")
            sys.exit(1)

    report = delete_all_users(admin_client_or_exit())
    if report.total_users == 0:
        console.print("No users to delete")
        return

    console.print(f"[bold]Deleted {report.deleted_count} out of {report.total_users} users[/bold]")
    for error in report.errors:
        console.print(f"[red]✗ {error['email']}: {error['error']}[/red]")
    if report.errors:
        sys.exit(1)


@cli.command()
@click.argument("url")
def verify(url: str):
    """
    Smoke-test a deployed instance at URL.
    """
    console.print(f"[bold]Verifying deployment at {url}[/bold]\n")
    results = verify_deployment(url)

    table = Table(title="Deployment Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Request")
    table.add_column("Status", justify="right")
    table.add_column("Result")
    for result in results:
        table.add_row(
            result.name,
            f"{result.method} {result.path}",
            str(result.status) if result.status is not None else "-",
            f"[green]✓ {result.detail}[/green]" if result.ok else f"[red]✗ {result.detail}[/red]",
        )
    console.print(table)

    if not all(r.ok for r in results):
        console.print("\n[red]Deployment has issues[/red]")
        sys.exit(1)
    console.print("\n[green]✓ Deployment looks healthy[/green]")


@cli.command()
def info():
    """
    Show information about Lea.
    """
    console.print(Panel(
        "[bold]Lea[/bold]\n\n"
        "Clinic and training management backend:\n"
        "• Client records, bookings and consent forms\n"
        "• Treatment and course catalogue\n"
        "• Student enrollments, course content and assessments\n"
        "• Card payments through Stripe\n\n"
        "[dim]Data and auth live in Supabase, protected by Row Level Security.[/dim]",
        title="About",
        border_style="blue",
    ))

    console.print("\n[bold]Quick Start:[/bold]")
    console.print("  lea check")
    console.print("  lea migrate && lea rls --apply")
    console.print("  lea create-admin")
    console.print("  lea serve --port 8000")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
