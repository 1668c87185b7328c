"""Dangerous applications category: denylisted tooling and root managers.

The signature scan is a zero-tolerance check: it is critical and carries a
veto, so a single denylisted package forces a Failed classification no
matter how the other probes score.

    signature_scan    critical, veto   denylist vs. enumerated packages
    root_managers     critical         su / root manager packages installed
    system_partition  supplementary    core system files read-only
"""

from __future__ import annotations

from collections.abc import Sequence

from trustprobe.categories.common import as_details
from trustprobe.core.evidence import EvidenceChain, EvidenceResult, HostEvidence, known, unknown
from trustprobe.core.probes import (
    FailurePolicy,
    Probe,
    ProbeContext,
    ProbeSet,
    ScoringPolicy,
    Tier,
    Verdict,
)
from trustprobe.core.signatures import (
    DENYLIST,
    ROOT_MANAGER_PACKAGES,
    SignatureEntry,
    SignatureMatcher,
)

CATEGORY = "dangerous_apps"

APP_DATA_PATH = "/sdcard/Android/data"
PROTECTED_FILES = (
    "/system/build.prop",
    "/system/framework/framework.jar",
    "/system/lib/libc.so",
)

POLICY = ScoringPolicy(
    pass_threshold=100,
    fail_threshold=50,
    passed_summary="No dangerous applications or root tooling detected.",
    warning_summary="No dangerous tooling found, but some checks were inconclusive.",
    failed_summary=(
        "Dangerous tooling is present. Uninstall it and consider restoring the device "
        "to factory firmware."
    ),
)


class SignatureScanProbe(Probe):
    """No denylisted package is present on the host.

    Entities are enumerated from the shared app-data directory, falling
    back to the package manager's package list. Fail-closed: when neither
    enumeration works, presence of dangerous tooling cannot be ruled out.

    Args:
        entries: Denylist to match against (defaults to the embedded catalog).
        base_path: Directory whose entries name installed packages.
    """

    name = "signature_scan"
    title = "Dangerous tooling signatures"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    veto = True
    remediation = "Uninstall the detected tools; they can hide root or tamper with other apps."

    def __init__(
        self,
        entries: Sequence[SignatureEntry] = DENYLIST,
        base_path: str = APP_DATA_PATH,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._matcher = SignatureMatcher(entries)
        self._base_path = base_path

    def chain(self, host: HostEvidence, timeout_ms: int) -> EvidenceChain:
        async def directory() -> EvidenceResult[frozenset[str]]:
            return await host.enumerate_entities(self._base_path)

        async def package_list() -> EvidenceResult[frozenset[str]]:
            r = await host.command(["pm", "list", "packages"], timeout_ms)
            if not r.known:
                return unknown(r.reason)
            return known(
                frozenset(
                    line.split(":", 1)[1].strip()
                    for line in str(r.value).splitlines()
                    if line.startswith("package:")
                )
            )

        return EvidenceChain(
            "installed packages",
            [(self._base_path, directory), ("pm list packages", package_list)],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        present = await self.chain(ctx.host, ctx.command_timeout_ms).resolve()
        if not present.known:
            return self.unavailable("Package enumeration", present.reason)
        result = self._matcher.match(present.value)
        details = tuple((e.identifier, e.category) for e in result.matched)
        if result.any_match:
            return Verdict(
                False,
                f"Denylisted packages present: {', '.join(result.identifiers)}",
                details,
            )
        return Verdict(
            True,
            f"None of {len(self._matcher.entries)} denylisted packages present "
            f"(scanned {len(present.value)} via {present.source})",
        )


class RootManagerProbe(Probe):
    """No root-manager package is installed."""

    name = "root_managers"
    title = "Root manager packages"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Remove root manager apps and restore an unrooted system."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        installed: list[str] = []
        unresolved: list[str] = []
        for identifier in ROOT_MANAGER_PACKAGES:
            r = await ctx.host.package_installed(identifier)
            if not r.known:
                unresolved.append(identifier)
            elif r.value:
                installed.append(identifier)
        if installed:
            return Verdict(
                False,
                f"Root managers installed: {', '.join(installed)}",
                as_details({"installed": installed}),
            )
        if len(unresolved) == len(ROOT_MANAGER_PACKAGES):
            return self.unavailable("Package presence", "package lookups unavailable")
        details = as_details({"checked": len(ROOT_MANAGER_PACKAGES) - len(unresolved)})
        return Verdict(True, "No root manager packages installed", details)


class SystemPartitionProbe(Probe):
    """Core system files are readable and no system path is writable."""

    name = "system_partition"
    title = "System partition"
    failure_policy = FailurePolicy.FAIL_OPEN
    remediation = "System files are writable; the system partition has been modified."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        problems: list[str] = []
        inspected = 0
        for path in (*PROTECTED_FILES, "/system"):
            facts = await ctx.host.file_facts(path)
            if not facts.known:
                continue
            inspected += 1
            f = facts.value
            if f.writable:
                problems.append(f"{path} writable")
            elif path != "/system" and not (f.exists and f.readable):
                problems.append(f"{path} unreadable")
        if not inspected:
            return self.unavailable("System partition", "no path could be inspected")
        details = as_details({"inspected": inspected, "problems": problems})
        if problems:
            return Verdict(False, "; ".join(problems), details)
        return Verdict(True, "System files readable and read-only", details)


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="Dangerous applications",
        probes=(SignatureScanProbe(), RootManagerProbe(), SystemPartitionProbe()),
        policy=POLICY,
    )
