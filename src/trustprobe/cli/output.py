"""Rich output formatting helpers for the trustprobe CLI.

Provides consistent, classification-colored terminal output for assessment
results, progress updates, category listings and the signature catalog.

Classification Color Mapping:
    PASSED = bold green, WARNING = yellow, FAILED = bold red
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from trustprobe.core.orchestrator import AssessmentState
from trustprobe.core.probes import ProbeSet, Tier
from trustprobe.core.scoring import AssessmentResult, Classification
from trustprobe.core.signatures import SignatureEntry

_CLASSIFICATION_STYLES: dict[Classification, str] = {
    Classification.PASSED: "bold green",
    Classification.WARNING: "yellow",
    Classification.FAILED: "bold red",
}

console = Console()
err_console = Console(stderr=True)


def classification_style(classification: Classification) -> str:
    """Return the Rich style string for a classification."""
    return _CLASSIFICATION_STYLES.get(classification, "white")


def classification_text(classification: Classification) -> Text:
    return Text(classification.name, style=classification_style(classification))


def configure_logging(level: int) -> None:
    """Route library logging to stderr through a Rich handler."""
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
    root = logging.getLogger("trustprobe")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False


def print_progress(state: AssessmentState) -> None:
    """Print one progress line for a RUNNING state."""
    if state.partial is None:
        console.print(f"[dim]\\[{state.category}] running...[/dim]")
        return
    done = len(state.partial.outcomes)
    console.print(
        f"[dim]\\[{state.category}] {done} probes complete, "
        f"{state.partial.score_percent}% so far[/dim]"
    )


def print_summary(results: Mapping[str, AssessmentResult]) -> None:
    """Print a one-row-per-category summary table."""
    table = Table(title="trustprobe Assessment", show_header=True, header_style="bold")
    table.add_column("Category", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Passed", justify="right")
    table.add_column("Failed", justify="right")

    for category, result in results.items():
        table.add_row(
            category,
            classification_text(result.classification),
            f"{result.score_percent}%",
            str(len(result.passed_outcomes)),
            str(len(result.failed_outcomes)),
        )
    console.print(table)


def print_result_detail(result: AssessmentResult) -> None:
    """Print every probe outcome of one category, then warnings and advice."""
    table = Table(
        title=f"{result.category}: {result.classification.name} ({result.score_percent}%)",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Probe", style="bold")
    table.add_column("Tier", style="dim")
    table.add_column("Weight", justify="right")
    table.add_column("Result", justify="center")
    table.add_column("Evidence")

    for outcome in result.passed_outcomes + result.failed_outcomes:
        mark = Text("PASS", style="green") if outcome.passed else Text("FAIL", style="bold red")
        tier = outcome.tier.value + (" (veto)" if outcome.veto else "")
        table.add_row(outcome.label, tier, f"{outcome.weight:g}", mark, outcome.evidence)
    console.print(table)

    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")

    console.print(
        Panel(
            result.recommendation,
            title="Recommendation",
            border_style=classification_style(result.classification),
        )
    )


def print_categories(probe_sets: Iterable[ProbeSet]) -> None:
    """Print the probes, weights, tiers and thresholds of each category."""
    for probe_set in probe_sets:
        policy = probe_set.policy
        mode = "progressive" if probe_set.progressive else "concurrent"
        table = Table(
            title=(
                f"{probe_set.name} ({probe_set.title}) - pass >= {policy.pass_threshold:g}%, "
                f"fail < {policy.fail_threshold:g}%, {mode}"
            ),
            show_header=True,
            header_style="bold",
        )
        table.add_column("Probe", style="bold")
        table.add_column("Weight", justify="right")
        table.add_column("Tier")
        table.add_column("Policy", style="dim")
        for probe in probe_set.probes:
            tier = Text(
                probe.tier.value,
                style="bold" if probe.tier is Tier.CRITICAL else "",
            )
            flags = [probe.failure_policy.value]
            if probe.veto:
                flags.append("veto")
            if probe.shared_resource:
                flags.append(f"serialised on {probe.shared_resource}")
            table.add_row(probe.name, f"{probe.weight:g}", tier, ", ".join(flags))
        console.print(table)


def print_signatures(entries: Iterable[SignatureEntry], version: str) -> None:
    """Print the denylist catalog."""
    entries = list(entries)
    table = Table(
        title=f"Signature catalog {version} ({len(entries)} entries)",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Identifier", style="bold")
    table.add_column("Category")
    for entry in entries:
        table.add_row(entry.identifier, entry.category)
    console.print(table)
