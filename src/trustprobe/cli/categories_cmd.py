"""``trustprobe categories`` - List assessment categories and their probes."""

from __future__ import annotations

import json

import click

from trustprobe.categories import default_probe_sets
from trustprobe.cli.output import print_categories


@click.command("categories")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def categories_command(output_format: str) -> None:
    """List categories with probe weights, tiers, policies and thresholds."""
    probe_sets = default_probe_sets()
    if output_format == "text":
        print_categories(probe_sets.values())
        return

    output = [
        {
            "name": ps.name,
            "title": ps.title,
            "progressive": ps.progressive,
            "pass_threshold": ps.policy.pass_threshold,
            "fail_threshold": ps.policy.fail_threshold,
            "probes": [
                {
                    "name": p.name,
                    "title": p.title,
                    "weight": p.weight,
                    "tier": p.tier.value,
                    "failure_policy": p.failure_policy.value,
                    "veto": p.veto,
                    "shared_resource": p.shared_resource,
                }
                for p in ps.probes
            ],
        }
        for ps in probe_sets.values()
    ]
    click.echo(json.dumps(output, indent=2))
