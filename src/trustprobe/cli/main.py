"""trustprobe CLI: heuristic host trust assessment.

Entry point for the ``trustprobe`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    assess      Run one or more assessment categories against a host.
    categories  List categories with their probes, weights and thresholds.
    signatures  List the embedded dangerous-tooling denylist.

Usage::

    trustprobe assess                           # All categories, this host
    trustprobe assess bootloader tee            # Selected categories
    trustprobe assess --snapshot device.yaml    # Replay a captured host
    trustprobe assess --format json
    trustprobe categories
    trustprobe signatures --category "root manager"
"""

from __future__ import annotations

import click

from trustprobe import __version__
from trustprobe.cli.assess_cmd import assess_command
from trustprobe.cli.categories_cmd import categories_command
from trustprobe.cli.signatures_cmd import signatures_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """trustprobe: Heuristic host trust assessment.

    Runs independent security probes (bootloader, TEE, SELinux, system
    integrity, network, dangerous applications) and reduces them to an
    explainable Passed / Warning / Failed verdict per category.
    """


# Register all subcommands
cli.add_command(assess_command)
cli.add_command(categories_command)
cli.add_command(signatures_command)
