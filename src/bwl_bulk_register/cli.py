"""CLI interface for bulk user registration."""

import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import build_run_config, load_settings
from .errors import ConfigError, FileError
from .logging_utils import basic_auth_token, create_file_handler, generate_run_id
from .pipeline import BulkRegistrationPipeline
from .reporting import ERROR_MARKER, RunReporter

app = typer.Typer(
    name="bwl-bulk-register",
    help="Register a list of users for a Blueworks Live account.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)
logger = logging.getLogger(__name__)

USER_LIST_HELP = """\
One user per line, blank lines are ignored:

  username[,fullname[,role[,admin]]]

role is editor, contributor or viewer (a prefix such as 'e' is enough),
admin is true or false.
"""


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=err_console, rich_tracebacks=True, show_path=False)
    handler.setLevel(level)
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def fail(message: str) -> NoReturn:
    """Print an error with a usage hint and exit with status 1."""
    err_console.print(f"{ERROR_MARKER}{message}", markup=False, emoji=False, highlight=False)
    err_console.print("Try 'bwl-bulk-register -h' for help.", markup=False, emoji=False, highlight=False)
    raise typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"bwl-bulk-register {__version__}")
        raise typer.Exit()


@app.command(epilog=USER_LIST_HELP, context_settings={"help_option_names": ["-h", "--help"]})
def main(
    user: Annotated[str, typer.Argument(help="Blueworks Live login used for the API calls")],
    password: Annotated[str, typer.Argument(help="Password of that login")],
    account: Annotated[str, typer.Argument(help="Account the users are registered for")],
    user_list_file: Annotated[Path, typer.Argument(help="Text file with one user per line")],
    role: Annotated[
        str | None,
        typer.Option("--role", "-r", help="Default role for new users (default: viewer)"),
    ] = None,
    admin: Annotated[
        bool,
        typer.Option("--admin", "-a", help="Make new users admins by default"),
    ] = False,
    check: Annotated[
        bool,
        typer.Option("--check", "-c", help="Only check the user list, do not register users"),
    ] = False,
    server: Annotated[
        str | None,
        typer.Option("--server", help="Blueworks Live server URL"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="YAML file with default settings"),
    ] = None,
    log_dir: Annotated[
        Path | None,
        typer.Option("--log-dir", help="Write a per-run log file to this directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = None,
) -> None:
    """Register every valid entry of USER_LIST_FILE as a user of ACCOUNT."""
    setup_logging(verbose)

    try:
        settings = load_settings(config_path)
        config = build_run_config(
            settings,
            username=user,
            password=password,
            account=account,
            user_list_file=user_list_file,
            role=role,
            admin=True if admin else None,
            check_only=check,
            server=server,
        )
    except ConfigError as e:
        fail(str(e))

    file_log_dir = log_dir or settings.log_dir
    handler: logging.Handler | None = None
    if file_log_dir:
        run_id = generate_run_id()
        handler = create_file_handler(
            file_log_dir, run_id, secrets=(password, basic_auth_token(user, password))
        )
        logging.getLogger().addHandler(handler)
        logger.info(f"Run {run_id} for account {account} (check only: {check})")

    pipeline = BulkRegistrationPipeline(config, reporter=RunReporter(console, err_console))
    try:
        pipeline.run()
    except FileError as e:
        fail(str(e))
    finally:
        if handler is not None:
            logging.getLogger().removeHandler(handler)
            handler.close()
