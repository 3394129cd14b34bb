"""CLI commands for running the hygiene notifier."""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import (
    DEFAULT_SETTINGS_FILE,
    AppSettings,
    load_settings,
    resolve_settings_path,
    validate_settings,
)
from ..hygiene.orchestrator import HygieneRun, RunSummary
from ..jira_client.client import JiraClient
from ..mail.client import SendGridClient, parse_cc_list
from ..run_log import RunLog
from .options import COMMENTS_OPTION, CONFIG_OPTION, DRY_RUN_OPTION, MAX_EMAILS_OPTION

console = Console()


def _load_valid_settings(
    config: str | None,
    dry_run: bool | None = None,
    max_emails: int | None = None,
    comments: bool | None = None,
) -> AppSettings:
    """Load settings, apply CLI overrides and exit on any configuration error."""
    settings_path = resolve_settings_path(config)
    if settings_path is None:
        missing = config or DEFAULT_SETTINGS_FILE
        console.print(
            f"❌ [red]Error: Missing {missing}. Create it based on "
            f"appsettings.example.json.[/red]"
        )
        raise typer.Exit(1)

    try:
        settings = load_settings(settings_path)
    except (OSError, ValueError) as e:
        console.print(
            f"❌ [red]Error: Failed to read {settings_path.name}: "
            f"{escape(str(e))}[/red]"
        )
        raise typer.Exit(1)

    if dry_run is not None:
        settings.send_grid.dry_run = dry_run
    if max_emails is not None:
        settings.send_grid.dry_run_max_emails = max_emails
    if comments is not None:
        settings.jira.enable_comments = comments

    errors = validate_settings(settings)
    if errors:
        for error in errors:
            console.print(f"❌ [red]Error: {escape(error)}[/red]")
        raise typer.Exit(1)

    return settings


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Run Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Duration", str(summary.duration))
    table.add_row("Filters loaded", str(summary.filters_loaded))
    table.add_row("Issues identified", str(summary.issues_identified))
    table.add_row("Emails sent", str(summary.emails_sent))
    table.add_row("Distinct recipients", str(summary.recipients))
    table.add_row("Comments created", str(summary.comments_created))
    if summary.email_failures or summary.comment_failures:
        table.add_row("Email failures", str(summary.email_failures), style="red")
        table.add_row("Comment failures", str(summary.comment_failures), style="red")

    console.print(table)


def run(
    config: str | None = CONFIG_OPTION,
    dry_run: bool | None = DRY_RUN_OPTION,
    max_emails: int | None = MAX_EMAILS_OPTION,
    comments: bool | None = COMMENTS_OPTION,
) -> None:
    """Email every assignee the issues their data hygiene filters found.

    Loads each configured Jira filter, groups the matching issues per
    assignee and sends one digest email per assignee. With comments enabled,
    a reminder comment mentioning the assignee is also posted on each issue,
    unless an identical reminder was posted within Jira.CommentDupDaysSkip
    days.

    Examples:
        # Preview digests, sent to the dry-run recipient, at most 3 emails
        jira-hygiene run --dry-run --max-emails 3

        # Live run with a specific settings file
        jira-hygiene run --config /etc/jira-hygiene/appsettings.json --live
    """
    settings = _load_valid_settings(config, dry_run, max_emails, comments)
    mail = settings.send_grid

    if mail.dry_run:
        console.print(
            f"⚠️  [yellow]Dry run: emails go to {mail.dry_run_email}, "
            f"no comments are posted[/yellow]"
        )

    run_log = RunLog()
    with (
        JiraClient(
            settings.jira.base_url,
            email=settings.jira.email,
            api_token=settings.jira.api_token,
            run_log=run_log,
        ) as jira,
        SendGridClient(
            mail.from_email,
            api_key=mail.api_key,
            from_name=mail.from_name,
            content_type=mail.content_type,
            cc_emails=mail.cc_emails,
            run_log=run_log,
        ) as mailer,
    ):
        summary = HygieneRun(settings, jira, mailer, run_log=run_log).run()

    _print_summary(summary)


def check_config(config: str | None = CONFIG_OPTION) -> None:
    """Validate the settings file and show the effective configuration."""
    settings = _load_valid_settings(config)
    jira = settings.jira
    mail = settings.send_grid

    table = Table(title="Effective Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Jira base URL", jira.base_url)
    table.add_row("Jira account", jira.email)
    for filter_config in jira.filters:
        table.add_row(
            f"Filter {filter_config.id}", filter_config.description or "(no description)"
        )
    table.add_row("Comments", "enabled" if jira.enable_comments else "disabled")
    table.add_row("Comment dup window (days)", str(jira.comment_dup_days_skip))
    table.add_row("From", f"{mail.from_name} <{mail.from_email}>")
    table.add_row("Content type", mail.content_type)
    table.add_row("CC", ", ".join(parse_cc_list(mail.cc_emails)) or "(none)")
    table.add_row("Dry run", "yes" if mail.dry_run else "no")
    if mail.dry_run:
        table.add_row("Dry-run recipient", mail.dry_run_email)
        table.add_row("Dry-run max emails", str(mail.dry_run_max_emails or "unlimited"))
    table.add_row("Run log email", mail.log_email if mail.send_log_email else "(off)")

    console.print(table)
    console.print("✅ [green]Settings are valid[/green]")
