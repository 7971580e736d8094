"""Command-line interface for lendwise.

Built with Typer for commands and Rich for output. The CLI only parses
and checks input, calls the lending engine and prints what it returns.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .config import LendingConfigError, get_config
from .lending import AccountView, LendingEngine, Result, parse_item_id, require_text

# Create the main app
app = typer.Typer(
    name="lendwise",
    help="Lend catalog items to registered accounts.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
items_app = typer.Typer(help="Browse and manage the catalog.")
app.add_typer(items_app, name="items")

accounts_app = typer.Typer(help="Manage accounts.")
app.add_typer(accounts_app, name="accounts")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def print_text(text: str) -> None:
    """Print engine-rendered text verbatim."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def get_engine() -> LendingEngine:
    """Build an engine from the current configuration."""
    return LendingEngine.from_config(get_config())


def report(result: Result) -> None:
    """Print a result and exit non-zero if it failed."""
    if result.ok:
        print_success(result.message)
    else:
        print_error(result.message)
        raise typer.Exit(code=1)


def login(engine: LendingEngine, username: str, password: str, admin: bool = False) -> AccountView:
    """Authenticate or exit."""
    account = engine.authenticate(username, password)
    if account is None:
        print_error("Invalid credentials.")
        raise typer.Exit(code=1)
    if admin and not account.is_admin:
        print_error("This command needs an admin account.")
        raise typer.Exit(code=1)
    return account


def item_id_or_exit(text: str) -> int:
    parsed = parse_item_id(text)
    if not parsed.ok:
        print_error(parsed.message)
        raise typer.Exit(code=1)
    return parsed.value


def _username_option():
    return typer.Option(..., "--username", "-u", help="Account username")


def _password_option():
    return typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="Account password")


@app.callback()
def main_callback() -> None:
    """Configure logging from the environment."""
    try:
        config = get_config()
    except LendingConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")

    problems = config.validate()
    if problems:
        for problem in problems:
            print_error(problem)
        raise typer.Exit(code=1)


# ============================================================================
# Account Commands
# ============================================================================


@app.command()
def register(
    name: str = typer.Argument(..., help="Display name"),
    username: str = typer.Argument(..., help="Login name"),
    password: str = _password_option(),
) -> None:
    """Register a new user account."""
    check = require_text(name=name, username=username, password=password)
    if not check.ok:
        print_error("All fields are required.")
        raise typer.Exit(code=1)

    report(get_engine().register_account(name, username, password))


@app.command("login")
def login_command(
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Check credentials and show the account."""
    if not username.strip() or not password:
        print_error("Enter username and password.")
        raise typer.Exit(code=1)

    account = login(get_engine(), username, password)
    console.print(f"Welcome, {escape(account.name)} ({account.role.value})")


@accounts_app.command("list")
def accounts_list(
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """List all accounts (admin only)."""
    engine = get_engine()
    login(engine, username, password, admin=True)
    console.print(Panel("Accounts", expand=False))
    print_text(engine.list_accounts())


# ============================================================================
# Catalog Commands
# ============================================================================


@items_app.command("list")
def items_list() -> None:
    """List every item in the catalog."""
    print_text(get_engine().list_items())


@items_app.command("search")
def items_search(
    keyword: str = typer.Argument(..., help="Text to look for in title, author or genre"),
) -> None:
    """Search the catalog."""
    if not keyword.strip():
        print_error("Enter a keyword.")
        raise typer.Exit(code=1)
    print_text(get_engine().search_items(keyword.strip()))


@items_app.command("add")
def items_add(
    title: str = typer.Argument(..., help="Item title"),
    author: str = typer.Argument(..., help="Item author"),
    genre: str = typer.Argument(..., help="Item genre"),
    item_id: Optional[str] = typer.Option(None, "--id", help="Identifier (default: next free)"),
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Add an item to the catalog (admin only)."""
    check = require_text(title=title, author=author, genre=genre)
    if not check.ok:
        print_error("Fill Title, Author, Genre.")
        raise typer.Exit(code=1)

    parsed_id = None
    if item_id is not None and item_id.strip():
        parsed_id = item_id_or_exit(item_id)

    engine = get_engine()
    login(engine, username, password, admin=True)
    report(engine.add_item(parsed_id, title, author, genre))


@items_app.command("remove")
def items_remove(
    item_id: str = typer.Argument(..., help="Identifier of the item to remove"),
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Remove an item from the catalog (admin only)."""
    parsed_id = item_id_or_exit(item_id)
    engine = get_engine()
    login(engine, username, password, admin=True)
    report(engine.remove_item(parsed_id))


# ============================================================================
# Circulation Commands
# ============================================================================


@app.command()
def borrow(
    item_id: str = typer.Argument(..., help="Identifier of the item to borrow"),
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Borrow an item."""
    parsed_id = item_id_or_exit(item_id)
    engine = get_engine()
    account = login(engine, username, password)
    report(engine.borrow_item(account, parsed_id))


@app.command("return")
def return_command(
    item_id: str = typer.Argument(..., help="Identifier of the item to return"),
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Return a borrowed item and show any fine."""
    parsed_id = item_id_or_exit(item_id)
    engine = get_engine()
    account = login(engine, username, password)
    report(engine.return_item(account, parsed_id))


@app.command()
def loans(
    username: str = _username_option(),
    password: str = _password_option(),
) -> None:
    """Show the items an account currently holds."""
    engine = get_engine()
    account = login(engine, username, password)
    print_text(engine.list_loans_of(account))


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"lendwise version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
