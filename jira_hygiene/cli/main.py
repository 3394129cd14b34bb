"""Main CLI entry point."""

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .options import VERBOSE_OPTION
from .run import check_config, run

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="jira-hygiene",
    help="Jira data hygiene digests and reminder comments",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@app.callback()
def main(verbose: bool = VERBOSE_OPTION) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


app.command(name="run", context_settings={"help_option_names": ["-h", "--help"]})(run)
app.command(
    name="check-config", context_settings={"help_option_names": ["-h", "--help"]}
)(check_config)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from jira_hygiene import __version__

    console.print(f"Jira Data Hygiene v{__version__}")


if __name__ == "__main__":
    app()
