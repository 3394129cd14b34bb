"""Standardized CLI option definitions for consistent shorthand mappings."""

import typer

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Settings file path (defaults to ./appsettings.json)",
)

DRY_RUN_OPTION = typer.Option(
    None,
    "--dry-run/--live",
    "-d/-l",
    help="Redirect emails to the dry-run recipient and post no comments "
    "(overrides SendGrid.DryRun)",
)

MAX_EMAILS_OPTION = typer.Option(
    None,
    "--max-emails",
    "-m",
    help="Maximum emails to send in dry-run mode, 0 for no cap "
    "(overrides SendGrid.DryRunMaxEmails)",
)

COMMENTS_OPTION = typer.Option(
    None,
    "--comments/--no-comments",
    help="Post reminder comments on issues (overrides Jira.EnableComments)",
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
