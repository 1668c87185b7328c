"""SELinux category: mandatory access control state.

Five equally weighted probes. ``selinux_enabled`` and ``selinux_enforcing``
are critical; the policy and context probes are supplementary and
fail-open, since an unreadable policy file is not itself a risk signal.

Passed needs every probe; at least 70% is Warning; below is Failed.
"""

from __future__ import annotations

from trustprobe.categories.common import SDK_LOLLIPOP, as_details, sdk_level
from trustprobe.core.evidence import (
    PERMISSION_DENIED,
    EvidenceChain,
    EvidenceResult,
    HostEvidence,
    known,
    unknown,
)
from trustprobe.core.probes import (
    FailurePolicy,
    Probe,
    ProbeContext,
    ProbeSet,
    ScoringPolicy,
    Tier,
    Verdict,
)

CATEGORY = "selinux"

SELINUX_ENFORCE = "/sys/fs/selinux/enforce"
SELINUX_POLICY_VERSION = "/sys/fs/selinux/policyvers"
PROCESS_CONTEXT = "/proc/self/attr/current"
POLICY_FILES = (
    "/sepolicy",
    "/system/etc/selinux/plat_sepolicy.cil",
    "/vendor/etc/selinux/vendor_sepolicy.cil",
)
RESTRICTED_PATHS = ("/system/bin", "/system/lib", "/data/system")

# Contexts that only exist on rooted or hooked systems.
_PRIVILEGED_CONTEXT_MARKERS = (":su:", ":magisk:", ":init:", ":kernel:")

POLICY = ScoringPolicy(
    pass_threshold=100,
    fail_threshold=70,
    passed_summary="SELinux is enabled and enforcing. Mandatory access control is intact.",
    warning_summary="SELinux is active but some policy signals are missing or unusual.",
    failed_summary=(
        "SELinux is disabled or permissive. Apps are not isolated by mandatory access control."
    ),
)


def _getenforce(host: HostEvidence, timeout_ms: int):
    async def strategy() -> EvidenceResult[str]:
        r = await host.command(["getenforce"], timeout_ms)
        if not r.known:
            return r
        value = str(r.value).strip().lower()
        if value in ("enforcing", "permissive", "disabled"):
            return known(value)
        return unknown(f"unexpected getenforce output {value!r}")

    return strategy


class SelinuxEnabledProbe(Probe):
    """SELinux is compiled in and active.

    Fallback chain: the selinuxfs enforce node exists, ``getenforce``,
    a labelled process context, ``ro.boot.selinux``, then Android 5+
    inference (SELinux is mandatory from API 21).
    """

    name = "selinux_enabled"
    title = "SELinux enabled"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Boot a kernel and firmware with SELinux enabled."

    def chain(self, host: HostEvidence, timeout_ms: int) -> EvidenceChain:
        getenforce = _getenforce(host, timeout_ms)

        async def enforce_node() -> EvidenceResult[bool]:
            facts = await host.file_facts(SELINUX_ENFORCE)
            if not facts.known:
                return unknown(facts.reason)
            if facts.value.exists:
                return known(True)
            return unknown("selinuxfs not mounted")

        async def command() -> EvidenceResult[bool]:
            r = await getenforce()
            return known(r.value != "disabled") if r.known else unknown(r.reason)

        async def process_context() -> EvidenceResult[bool]:
            r = await host.file_text(PROCESS_CONTEXT)
            if not r.known:
                return unknown(r.reason)
            return known(":" in str(r.value))

        async def boot_property() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.selinux")
            if not r.known:
                return unknown(r.reason)
            return known(str(r.value).strip().lower() != "disabled")

        async def sdk_inference() -> EvidenceResult[bool]:
            sdk = await sdk_level(host)
            if not sdk.known:
                return unknown(sdk.reason)
            return known(sdk.value >= SDK_LOLLIPOP)

        return EvidenceChain(
            "SELinux enabled",
            [
                ("selinuxfs", enforce_node),
                ("getenforce", command),
                ("process context", process_context),
                ("ro.boot.selinux", boot_property),
                ("sdk inference", sdk_inference),
            ],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        result = await self.chain(ctx.host, ctx.command_timeout_ms).resolve()
        details = as_details({"source": result.source, "attempted": result.trail})
        if not result.known:
            return self.unavailable("SELinux state", result.reason, details)
        if result.value:
            return Verdict(True, f"SELinux enabled (via {result.source})", details)
        return Verdict(False, f"SELinux disabled (via {result.source})", details)


class SelinuxEnforcingProbe(Probe):
    """SELinux runs in enforcing mode.

    Fallback chain: the selinuxfs enforce node (1 / 0), ``getenforce``,
    ``ro.boot.selinux``, then a restricted-path heuristic: if system
    directories deny listing to this process, policy is being enforced.
    Fail-closed when nothing is conclusive.
    """

    name = "selinux_enforcing"
    title = "SELinux enforcing"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Switch SELinux to enforcing mode; permissive mode disables isolation."

    def chain(self, host: HostEvidence, timeout_ms: int) -> EvidenceChain:
        getenforce = _getenforce(host, timeout_ms)

        async def enforce_node() -> EvidenceResult[bool]:
            r = await host.file_text(SELINUX_ENFORCE, limit=8)
            if not r.known:
                return unknown(r.reason)
            value = str(r.value).strip()
            if value in ("0", "1"):
                return known(value == "1")
            return unknown(f"unexpected enforce value {value!r}")

        async def command() -> EvidenceResult[bool]:
            r = await getenforce()
            return known(r.value == "enforcing") if r.known else unknown(r.reason)

        async def boot_property() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.selinux")
            if not r.known:
                return unknown(r.reason)
            value = str(r.value).strip().lower()
            if value in ("enforcing", "permissive", "disabled"):
                return known(value == "enforcing")
            return unknown(f"unexpected value {value!r}")

        async def restricted_paths() -> EvidenceResult[bool]:
            denied = 0
            for path in RESTRICTED_PATHS:
                listing = await host.enumerate_entities(path)
                if not listing.known and listing.reason == PERMISSION_DENIED:
                    denied += 1
            if denied:
                return known(True)
            return unknown("no restricted path denied access")

        return EvidenceChain(
            "SELinux mode",
            [
                ("selinuxfs", enforce_node),
                ("getenforce", command),
                ("ro.boot.selinux", boot_property),
                ("restricted paths", restricted_paths),
            ],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        result = await self.chain(ctx.host, ctx.command_timeout_ms).resolve()
        details = as_details({"source": result.source, "attempted": result.trail})
        if not result.known:
            return self.unavailable("SELinux mode", result.reason, details)
        if result.value:
            return Verdict(True, f"SELinux enforcing (via {result.source})", details)
        return Verdict(False, f"SELinux permissive (via {result.source})", details)


class PolicyVersionProbe(Probe):
    """The kernel reports a loaded policy version."""

    name = "policy_version"
    title = "SELinux policy version"
    failure_policy = FailurePolicy.FAIL_OPEN
    remediation = "No SELinux policy appears to be loaded; reflash official firmware."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        r = await ctx.host.file_text(SELINUX_POLICY_VERSION, limit=16)
        if not r.known:
            return self.unavailable("Policy version", r.reason)
        text = str(r.value).strip()
        if not text.isdigit() or int(text) <= 0:
            return Verdict(False, f"Invalid policy version {text!r}")
        return Verdict(True, f"Policy version {text} loaded", as_details({"version": text}))


class ProcessContextProbe(Probe):
    """The assessing process carries an ordinary SELinux label.

    A missing label means SELinux is not labelling processes; a label from
    the ``su``, ``magisk``, ``init`` or ``kernel`` domains means the
    process runs with privileges an app never has.
    """

    name = "process_context"
    title = "Process security context"
    failure_policy = FailurePolicy.FAIL_OPEN
    remediation = "The process runs in an unexpected SELinux domain; check for root tooling."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        r = await ctx.host.file_text(PROCESS_CONTEXT, limit=256)
        if not r.known:
            return self.unavailable("Process context", r.reason)
        label = str(r.value).strip("\x00\n ")
        details = as_details({"context": label or "-"})
        if ":" not in label:
            return Verdict(False, "Process has no SELinux label", details)
        padded = f"{label}:"
        if any(marker in padded for marker in _PRIVILEGED_CONTEXT_MARKERS):
            return Verdict(False, f"Process runs in privileged domain {label}", details)
        return Verdict(True, f"Process context {label}", details)


class PolicyFilesProbe(Probe):
    """At least one platform or vendor policy file is present."""

    name = "policy_files"
    title = "SELinux policy files"
    failure_policy = FailurePolicy.FAIL_OPEN
    remediation = "SELinux policy files are missing; the system image may be modified."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        present: list[str] = []
        unknown_reasons: list[str] = []
        for path in POLICY_FILES:
            facts = await ctx.host.file_facts(path)
            if not facts.known:
                unknown_reasons.append(f"{path}: {facts.reason}")
            elif facts.value.exists:
                present.append(path)
        if present:
            return Verdict(True, f"Policy present: {', '.join(present)}", as_details({"present": present}))
        if len(unknown_reasons) == len(POLICY_FILES):
            return self.unavailable("Policy files", "; ".join(unknown_reasons))
        return Verdict(False, "No SELinux policy file found", as_details({"present": present}))


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="SELinux",
        probes=(
            SelinuxEnabledProbe(),
            SelinuxEnforcingProbe(),
            PolicyVersionProbe(),
            ProcessContextProbe(),
            PolicyFilesProbe(),
        ),
        policy=POLICY,
    )
