"""System integrity category: files, properties, permissions and mounts.

This category is progressive: probes run one at a time in declared order
and the orchestrator reports a cumulative partial result after each.

    system_files           supplementary  readable core files
    system_properties      critical       ro.secure, boot state, patch age
    debug_properties       supplementary  debug and test-build markers
    integrity_files        supplementary  platform binaries present
    directory_permissions  critical       system directories not writable
    mounts                 critical       /system mounted read-only, not overlaid

Passed needs every probe; at least 70% is Warning; below is Failed.
"""

from __future__ import annotations

from datetime import timedelta

from trustprobe.categories.common import as_details, parse_patch_date, prop
from trustprobe.core.probes import (
    FailurePolicy,
    Probe,
    ProbeContext,
    ProbeSet,
    ScoringPolicy,
    Tier,
    Verdict,
)

CATEGORY = "integrity"

ACCESSIBLE_FILES = (
    "/system/build.prop",
    "/system/etc/hosts",
    "/proc/version",
    "/proc/cpuinfo",
    "/proc/meminfo",
)
ACCESSIBLE_MIN_RATIO = 0.6

INTEGRITY_FILES = (
    "/system/framework/framework.jar",
    "/system/framework/services.jar",
    "/system/framework/android.jar",
    "/system/lib/libc.so",
    "/system/lib64/libc.so",
    "/system/lib/libm.so",
    "/system/lib/libdl.so",
    "/system/lib/liblog.so",
    "/system/bin/app_process",
    "/system/bin/app_process32",
    "/system/bin/app_process64",
    "/system/bin/sh",
    "/system/bin/toolbox",
    "/system/etc/security/cacerts",
    "/system/recovery-resource.dat",
)
INTEGRITY_MIN_RATIO = 0.5

SYSTEM_DIRECTORIES = (
    "/system",
    "/system/bin",
    "/system/lib",
    "/system/lib64",
    "/system/etc",
    "/system/framework",
    "/system/app",
    "/system/priv-app",
    "/vendor",
    "/product",
)

PROC_MOUNTS = "/proc/mounts"
SYSTEM_MOUNT_POINTS = ("/system", "/system_root", "/")
_PROTECTED_PREFIXES = ("/system", "/vendor", "/product")
_SUSPICIOUS_FS = frozenset({"tmpfs", "overlay"})

PATCH_FAIL_DAYS = 365
PATCH_WARN_DAYS = 180

POLICY = ScoringPolicy(
    pass_threshold=100,
    fail_threshold=70,
    passed_summary="System files, properties and mounts show no sign of modification.",
    warning_summary="The system shows minor integrity issues. Review the findings below.",
    failed_summary=(
        "The system partition appears modified. Restore official firmware before trusting "
        "this device."
    ),
)


class SystemFilesProbe(Probe):
    """At least 60% of the core system files are readable."""

    name = "system_files"
    title = "System file accessibility"
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Core system files are unreadable; the file system may be restricted or damaged."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        readable = []
        for path in ACCESSIBLE_FILES:
            facts = await ctx.host.file_facts(path)
            if facts.known and facts.value.exists and facts.value.readable:
                readable.append(path)
        ratio = len(readable) / len(ACCESSIBLE_FILES)
        details = as_details({"readable": readable})
        evidence = f"{len(readable)}/{len(ACCESSIBLE_FILES)} core system files readable"
        return Verdict(ratio >= ACCESSIBLE_MIN_RATIO, evidence, details)


class SystemPropertiesProbe(Probe):
    """Security-relevant properties hold.

    Fails when ``ro.secure`` is not 1, verified boot reports orange or
    red, or the security patch is more than a year old.
    """

    name = "system_properties"
    title = "Security properties"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Security properties are weakened; reflash official firmware."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        host = ctx.host
        secure = await host.property("ro.secure")
        if not secure.known:
            return self.unavailable("ro.secure", secure.reason)

        problems: list[str] = []
        if str(secure.value).strip() != "1":
            problems.append(f"ro.secure={secure.value}")
        boot_state = (await prop(host, "ro.boot.verifiedbootstate")).lower()
        if boot_state in ("orange", "red"):
            problems.append(f"verifiedbootstate={boot_state}")
        patch = parse_patch_date(await prop(host, "ro.build.version.security_patch"))
        patch_age = (ctx.today - patch).days if patch else None
        if patch_age is not None and patch_age > PATCH_FAIL_DAYS:
            problems.append(f"security patch {patch_age} days old")

        details = as_details(
            {
                "ro.secure": secure.value,
                "verifiedbootstate": boot_state or "unknown",
                "patch_age_days": patch_age if patch_age is not None else "unknown",
            }
        )
        if problems:
            return Verdict(False, f"Insecure properties: {'; '.join(problems)}", details)
        return Verdict(True, "Security properties intact", details)


class DebugPropertiesProbe(Probe):
    """No debug or test-build markers are set.

    Flags ``ro.debuggable=1``, ``eng``/``userdebug`` builds, test-keys,
    ``service.adb.root=1``, and a security patch older than 180 days.
    """

    name = "debug_properties"
    title = "Debug properties"
    failure_policy = FailurePolicy.FAIL_OPEN
    remediation = "Debug build markers are present; use a production user build."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        host = ctx.host
        markers: list[str] = []
        if await prop(host, "ro.debuggable") == "1":
            markers.append("ro.debuggable=1")
        build_type = await prop(host, "ro.build.type")
        if build_type in ("eng", "userdebug"):
            markers.append(f"ro.build.type={build_type}")
        if "test-keys" in await prop(host, "ro.build.tags"):
            markers.append("test-keys")
        if await prop(host, "service.adb.root") == "1":
            markers.append("service.adb.root=1")
        patch = parse_patch_date(await prop(host, "ro.build.version.security_patch"))
        if patch and ctx.today - patch > timedelta(days=PATCH_WARN_DAYS):
            markers.append(f"security patch older than {PATCH_WARN_DAYS} days")

        details = as_details({"markers": markers})
        if markers:
            return Verdict(False, f"Debug markers: {', '.join(markers)}", details)
        return Verdict(True, "No debug markers", details)


class IntegrityFilesProbe(Probe):
    """At least half of the expected platform files are present."""

    name = "integrity_files"
    title = "Platform files"
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Expected platform files are missing; the system image may be incomplete."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        present = 0
        unknown_count = 0
        for path in INTEGRITY_FILES:
            facts = await ctx.host.file_facts(path)
            if not facts.known:
                unknown_count += 1
            elif facts.value.exists:
                present += 1
        if unknown_count == len(INTEGRITY_FILES):
            return self.unavailable("Platform files", "no path could be inspected")
        ratio = present / len(INTEGRITY_FILES)
        evidence = f"{present}/{len(INTEGRITY_FILES)} platform files present"
        return Verdict(ratio >= INTEGRITY_MIN_RATIO, evidence, as_details({"present": present}))


class DirectoryPermissionsProbe(Probe):
    """No system directory is writable by the assessing process."""

    name = "directory_permissions"
    title = "System directory permissions"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "System directories are writable; the device is likely rooted."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        writable: list[str] = []
        inspected = 0
        for path in SYSTEM_DIRECTORIES:
            facts = await ctx.host.file_facts(path)
            if not facts.known:
                continue
            inspected += 1
            if facts.value.exists and facts.value.writable:
                writable.append(path)
        if not inspected:
            return self.unavailable("Directory permissions", "no directory could be inspected")
        details = as_details({"inspected": inspected, "writable": writable})
        if writable:
            return Verdict(False, f"Writable system directories: {', '.join(writable)}", details)
        return Verdict(True, f"{inspected} system directories read-only", details)


class MountsProbe(Probe):
    """The system partition is mounted read-only and not overlaid.

    Reads ``/proc/mounts``. The system mount is ``/system``, or
    ``/system_root`` / ``/`` on system-as-root devices. Fails on a
    read-write system mount, and on tmpfs, overlay or loop-device mounts
    over system paths (the signature of systemless modification).
    """

    name = "mounts"
    title = "Mount points"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "System partitions are remounted or overlaid; remove root modules and reboot."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        r = await ctx.host.file_text(PROC_MOUNTS, limit=1 << 20)
        if not r.known:
            return self.unavailable("Mount table", r.reason)

        mounts: dict[str, tuple[str, str, list[str]]] = {}
        suspicious: list[str] = []
        for line in str(r.value).splitlines():
            fields = line.split()
            if len(fields) < 4:
                continue
            device, point, fstype, options = fields[0], fields[1], fields[2], fields[3].split(",")
            mounts[point] = (device, fstype, options)
            if point.startswith(_PROTECTED_PREFIXES) and (
                fstype in _SUSPICIOUS_FS or "loop" in device
            ):
                suspicious.append(f"{fstype} {device} on {point}")

        system_point = next((p for p in SYSTEM_MOUNT_POINTS if p in mounts), None)
        if system_point is None:
            return Verdict(False, "No system mount found", as_details({"mounts": len(mounts)}))
        _, _, options = mounts[system_point]
        read_write = "rw" in options
        details = as_details(
            {"system_mount": system_point, "read_only": not read_write, "suspicious": suspicious}
        )
        if read_write:
            return Verdict(False, f"{system_point} is mounted read-write", details)
        if suspicious:
            return Verdict(False, f"Suspicious mounts: {'; '.join(suspicious)}", details)
        return Verdict(True, f"{system_point} mounted read-only", details)


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="System integrity",
        probes=(
            SystemFilesProbe(),
            SystemPropertiesProbe(),
            DebugPropertiesProbe(),
            IntegrityFilesProbe(),
            DirectoryPermissionsProbe(),
            MountsProbe(),
        ),
        policy=POLICY,
        progressive=True,
    )
