"""Command-line entry points: the repository status scan and the IMAP sender tally."""

from __future__ import annotations

import imaplib
import logging
import shutil
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .config import ConfigError, load_imap_config
from .discovery import DEFAULT_DEPTH, DiscoveryError
from .mail import MailError, Mailbox, connect, list_mailboxes, should_scan, tally_senders
from .remote import DEFAULT_FETCH_TIMEOUT
from .report import ReportRenderer
from .scanner import run_scan

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Log every git command and full error tracebacks.")
@click.option("--color/--no-color", default=None, help="Force or disable colored output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, color: bool | None) -> None:
    """gitsweep: report git status across many repositories."""
    _setup_logging(verbose)
    ctx.color = color
    if ctx.invoked_subcommand is None:
        # make_context parses an empty command line, so envvar defaults apply
        with status.make_context("status", [], parent=ctx) as status_ctx:
            status.invoke(status_ctx)


@main.command("status")
@click.argument("root", default=".", type=click.Path(file_okay=True, path_type=Path))
@click.argument("depth", default=DEFAULT_DEPTH, type=click.IntRange(min=0), envvar="GITSWEEP_DEPTH")
@click.option(
    "--fetch-timeout",
    default=DEFAULT_FETCH_TIMEOUT,
    show_default=True,
    type=click.FloatRange(min=0),
    envvar="GITSWEEP_FETCH_TIMEOUT",
    help="Seconds to wait for 'git fetch' per repository (0 waits forever).",
)
@click.pass_context
def status(ctx: click.Context, root: Path, depth: int, fetch_timeout: float) -> None:
    """Check every git repository under ROOT, at most DEPTH levels down."""
    if shutil.which("git") is None:
        click.echo("gitsweep: git executable not found", err=True)
        raise SystemExit(1)
    renderer = ReportRenderer(color=ctx.color)
    try:
        run_scan(root, depth, renderer=renderer, fetch_timeout=fetch_timeout or None)
    except DiscoveryError as exc:
        click.echo(f"gitsweep: {exc}", err=True)
        raise SystemExit(1)


@main.command("senders")
@click.option("--top", default=10, show_default=True, type=click.IntRange(min=1), help="How many senders to list.")
@click.option(
    "--env-file",
    default=".env",
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="File holding IMAP_* settings.",
)
@click.option("--save/--no-save", default=None, help="Save prompted settings without asking.")
@click.pass_context
def senders(ctx: click.Context, top: int, env_file: Path, save: bool | None) -> None:
    """Count messages per sender across IMAP mailboxes."""
    console = Console(no_color=ctx.color is False)
    try:
        config = load_imap_config(env_file, interactive=sys.stdin.isatty(), save=save)
    except ConfigError as exc:
        click.echo(f"gitsweep: {exc}", err=True)
        raise SystemExit(1)

    def _progress(mailbox: Mailbox, processed: int) -> None:
        console.print(f"Processed {processed} messages in [bold]{escape(mailbox.name)}[/bold]")

    try:
        conn = connect(config)
        try:
            mailboxes = [mailbox for mailbox in list_mailboxes(conn) if should_scan(mailbox)]
            console.print("Mailboxes found:")
            for mailbox in mailboxes:
                console.print(f"  - {escape(mailbox.name)}")
            counts = tally_senders(conn, mailboxes, on_mailbox=_progress)
        finally:
            conn.logout()
    except (MailError, imaplib.IMAP4.error, OSError) as exc:
        click.echo(f"gitsweep: {exc}", err=True)
        raise SystemExit(1)

    lines = [f"  {escape(sender)}: {count}" for sender, count in counts.most_common(top)]
    console.print(Panel("\n".join(lines) or "  (no messages)", title=f"Top {top} senders", expand=False))


if __name__ == "__main__":
    main()
