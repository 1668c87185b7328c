"""``trustprobe assess [CATEGORY...]`` - Run trust assessments.

Runs the selected categories (default: all) concurrently against either
the local host or a captured snapshot, streaming progress in text mode.

Exit Codes:
    0 - Every assessed category Passed.
    1 - At least one category is Warning or Failed.
    2 - Usage or configuration error (unknown category, bad settings or snapshot).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import click

from trustprobe.cli.output import (
    configure_logging,
    console,
    print_progress,
    print_result_detail,
    print_summary,
)
from trustprobe.config import load_settings
from trustprobe.core.evidence import HostEvidence, LocalHost, SnapshotHost
from trustprobe.core.orchestrator import AssessmentState, Orchestrator
from trustprobe.core.scoring import AssessmentResult
from trustprobe.core.signatures import CATALOG_VERSION
from trustprobe.exceptions import TrustProbeError


async def collect(
    orchestrator: Orchestrator,
    categories: list[str],
    on_state: Callable[[AssessmentState], None] | None = None,
) -> dict[str, AssessmentResult]:
    """Consume every category stream concurrently, reporting each state.

    Args:
        orchestrator: Orchestrator to run.
        categories: Category names, validated by the caller.
        on_state: Called for every non-terminal state.

    Returns:
        Terminal results keyed by category, in request order.
    """

    async def one(category: str) -> AssessmentResult:
        result: AssessmentResult | None = None
        async for state in orchestrator.assess(category):
            if state.terminal:
                result = state.partial
            elif on_state is not None:
                on_state(state)
        if result is None:
            raise TrustProbeError(f"Assessment of {category} ended without a result")
        return result

    results = await asyncio.gather(*(one(c) for c in categories))
    return dict(zip(categories, results))


def _build_host(snapshot: Path | None, command_timeout_ms: int) -> HostEvidence:
    if snapshot is not None:
        return SnapshotHost.from_file(snapshot)
    return LocalHost(command_timeout_ms)


@click.command("assess")
@click.argument("categories", nargs=-1)
@click.option(
    "--snapshot",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Assess a captured host snapshot (YAML) instead of this machine.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--timeout", type=float, default=None, help="Per-category time budget in seconds.")
@click.option("--sequential", is_flag=True, help="Run probes within a category one at a time.")
@click.option(
    "--reference-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date used for patch-age rules (default: today).",
)
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv).")
def assess_command(
    categories: tuple[str, ...],
    snapshot: Path | None,
    config_path: Path | None,
    output_format: str,
    timeout: float | None,
    sequential: bool,
    reference_date: datetime | None,
    verbose: int,
) -> None:
    """Assess host trustworthiness for one or more categories.

    Examples:

        trustprobe assess

        trustprobe assess bootloader selinux --snapshot device.yaml

        trustprobe assess --format json --timeout 3
    """
    try:
        settings = load_settings(
            config_path,
            category_timeout=timeout,
            concurrent_probes=False if sequential else None,
            reference_date=reference_date.date() if reference_date else None,
        )
        orchestrator = Orchestrator(_build_host(snapshot, settings.command_timeout_ms), settings=settings)
        names = list(categories) or orchestrator.categories
        for name in names:
            orchestrator.probe_set(name)
    except TrustProbeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if verbose:
        configure_logging(logging.DEBUG if verbose > 1 else logging.INFO)
    else:
        configure_logging(settings.logging_level)

    live = print_progress if output_format == "text" else None
    results = asyncio.run(collect(orchestrator, names, on_state=live))

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "catalog_version": CATALOG_VERSION,
                    "results": [r.to_dict() for r in results.values()],
                },
                indent=2,
            )
        )
    else:
        console.print()
        print_summary(results)
        for result in results.values():
            console.print()
            print_result_detail(result)

    sys.exit(0 if all(r.passed for r in results.values()) else 1)
