"""``trustprobe signatures`` - List the embedded dangerous-tooling denylist."""

from __future__ import annotations

import json
import sys

import click

from trustprobe.cli.output import print_signatures
from trustprobe.core.signatures import CATALOG_VERSION, DENYLIST, entries_in


@click.command("signatures")
@click.option("--category", default=None, help="Only list entries with this category label.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def signatures_command(category: str | None, output_format: str) -> None:
    """List denylisted packages and their category labels.

    Examples:

        trustprobe signatures

        trustprobe signatures --category "hook framework" --format json
    """
    entries = entries_in(category) if category else DENYLIST
    if category and not entries:
        labels = sorted({e.category for e in DENYLIST})
        click.echo(
            f"Error: no signatures in category '{category}' (known: {', '.join(labels)})",
            err=True,
        )
        sys.exit(2)

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "version": CATALOG_VERSION,
                    "entries": [
                        {"identifier": e.identifier, "category": e.category} for e in entries
                    ],
                },
                indent=2,
            )
        )
        return
    print_signatures(entries, CATALOG_VERSION)
