"""Bootloader category: lock state, build integrity, verified boot, patches.

Probe weights follow the device-security priority of each signal::

    bootloader_lock   0.30  critical
    build_integrity   0.25  critical
    verified_boot     0.25  critical
    security_patch    0.10  supplementary
    anti_tamper       0.10  supplementary

Passed needs every critical probe and at least 90%; below 50% is Failed.
"""

from __future__ import annotations

from trustprobe.categories.common import (
    SDK_NOUGAT,
    SDK_OREO,
    SDK_R,
    as_details,
    months_before,
    parse_patch_date,
    prop,
    sdk_level,
)
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

CATEGORY = "bootloader"

PATCH_MAX_AGE_MONTHS = 18
LEGACY_PATCH_FLOOR = "2020-01-01"
ANTI_TAMPER_MIN_RATIO = 0.7

_EMULATOR_HARDWARE = frozenset({"goldfish", "ranchu", "vbox86"})

POLICY = ScoringPolicy(
    pass_threshold=90,
    fail_threshold=50,
    passed_summary=(
        "Device security is excellent. Install system updates regularly to keep it that way."
    ),
    warning_summary=(
        "The device is basically secure but some protections are weakened. "
        "Address the failed checks below."
    ),
    failed_summary=(
        "The device has serious boot-chain risks. Avoid sensitive apps and consider "
        "reflashing official firmware."
    ),
)


def _tainted(*values: str) -> bool:
    """Any value advertising an unlocked bootloader or test signing keys."""
    return any("unlocked" in v.lower() or "test-keys" in v.lower() for v in values)


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------


class BootloaderLockProbe(Probe):
    """Bootloader lock state.

    Fallback chain, highest privilege first:
        1. ``ro.boot.flash.locked`` (1 / 0)
        2. ``ro.boot.vbmeta.device_state`` (locked / unlocked)
        3. ``ro.boot.verifiedbootstate`` (green, yellow = locked; orange = unlocked)
        4. Build metadata: an ``unlocked`` bootloader string or test-keys
           mean unlocked; release-keys tags mean locked.

    Fail-closed when every strategy is exhausted.
    """

    name = "bootloader_lock"
    title = "Bootloader lock"
    weight = 0.30
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Re-lock the bootloader using the vendor's official firmware."

    def chain(self, host: HostEvidence) -> EvidenceChain:
        async def flash_locked() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.flash.locked")
            if not r.known:
                return r
            value = str(r.value).strip()
            if value in ("0", "1"):
                return known(value == "1")
            return unknown(f"unexpected value {value!r}")

        async def vbmeta_state() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.vbmeta.device_state")
            if not r.known:
                return r
            value = str(r.value).strip().lower()
            if value in ("locked", "unlocked"):
                return known(value == "locked")
            return unknown(f"unexpected value {value!r}")

        async def boot_state() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.verifiedbootstate")
            if not r.known:
                return r
            value = str(r.value).strip().lower()
            if value in ("green", "yellow"):
                return known(True)
            if value == "orange":
                return known(False)
            return unknown(f"boot state {value!r} does not reveal lock state")

        async def build_metadata() -> EvidenceResult[bool]:
            bootloader = await host.property("ro.bootloader")
            tags = await host.property("ro.build.tags")
            fingerprint = await host.property("ro.build.fingerprint")
            values = [r.value for r in (bootloader, tags, fingerprint) if r.known]
            if not values:
                return unknown("no build metadata")
            if _tainted(*values):
                return known(False)
            if tags.known and "release-keys" in str(tags.value):
                return known(True)
            return unknown("build metadata inconclusive")

        return EvidenceChain(
            "bootloader lock state",
            [
                ("ro.boot.flash.locked", flash_locked),
                ("ro.boot.vbmeta.device_state", vbmeta_state),
                ("ro.boot.verifiedbootstate", boot_state),
                ("build metadata", build_metadata),
            ],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        result = await self.chain(ctx.host).resolve()
        details = as_details({"source": result.source, "attempted": result.trail})
        if not result.known:
            return self.unavailable("Bootloader lock state", result.reason, details)
        if result.value:
            return Verdict(True, f"Bootloader is locked (via {result.source})", details)
        return Verdict(False, f"Bootloader is unlocked (via {result.source})", details)


class BuildIntegrityProbe(Probe):
    """Official, consistent, non-emulated user build.

    Every sub-check must hold: release-keys tags, ``user`` build type,
    fingerprint naming the manufacturer or brand, valid board and product,
    non-empty brand/model/device, and no emulator indicators.
    """

    name = "build_integrity"
    title = "System build integrity"
    weight = 0.25
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Run an official release build; custom, test or emulator builds are untrusted."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        host = ctx.host
        keys = (
            "ro.build.tags", "ro.build.type", "ro.build.fingerprint", "ro.product.manufacturer",
            "ro.product.brand", "ro.product.model", "ro.product.device", "ro.product.board",
            "ro.product.name", "ro.hardware", "ro.kernel.qemu",
        )
        props = {key: await prop(host, key) for key in keys}
        if not props["ro.build.fingerprint"] and not props["ro.build.tags"]:
            return self.unavailable("Build metadata", "fingerprint and tags not readable")

        fingerprint = props["ro.build.fingerprint"].lower()
        manufacturer = props["ro.product.manufacturer"].lower()
        brand = props["ro.product.brand"].lower()
        model = props["ro.product.model"].lower()
        board = props["ro.product.board"].lower()
        product = props["ro.product.name"].lower()

        checks = {
            "official_build": "release-keys" in props["ro.build.tags"],
            "user_build": props["ro.build.type"] == "user",
            "fingerprint_consistent": bool(fingerprint)
            and "test-keys" not in fingerprint
            and any(n and n in fingerprint for n in (manufacturer, brand)),
            "board_valid": bool(board) and "unknown" not in board,
            "product_valid": bool(product) and "unknown" not in product,
            "build_consistent": all(
                props[k] for k in ("ro.product.brand", "ro.product.model", "ro.product.device")
            ),
            "not_emulator": not (
                "sdk" in model
                or "emulator" in model
                or "genymotion" in manufacturer
                or props["ro.kernel.qemu"] == "1"
                or props["ro.hardware"] in _EMULATOR_HARDWARE
            ),
        }
        details = as_details({**checks, "model": props["ro.product.model"] or "-"})
        failed = [name for name, ok in checks.items() if not ok]
        if not failed:
            return Verdict(True, "Build metadata matches an official release build", details)
        return Verdict(False, f"Build metadata inconsistent: {', '.join(failed)}", details)


class VerifiedBootProbe(Probe):
    """Verified boot state.

    Fallback chain:
        1. ``ro.boot.verifiedbootstate`` (green, yellow pass; orange, red fail)
        2. ``ro.boot.veritymode`` (enforcing passes; logging, disabled, eio fail)
        3. Build metadata inference: release-keys user build with a clean
           bootloader string, fingerprint and display id (Android 7+), or
           simply no test-keys on a user build for older releases.
    """

    name = "verified_boot"
    title = "Verified boot"
    weight = 0.25
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Restore stock boot and vbmeta images so verified boot reports green."

    def chain(self, host: HostEvidence) -> EvidenceChain:
        async def boot_state() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.verifiedbootstate")
            if not r.known:
                return r
            value = str(r.value).strip().lower()
            if value in ("green", "yellow", "orange", "red"):
                return known(value in ("green", "yellow"))
            return unknown(f"unexpected value {value!r}")

        async def verity_mode() -> EvidenceResult[bool]:
            r = await host.property("ro.boot.veritymode")
            if not r.known:
                return r
            value = str(r.value).strip().lower()
            if value in ("enforcing", "logging", "disabled", "eio"):
                return known(value == "enforcing")
            return unknown(f"unexpected value {value!r}")

        async def build_metadata() -> EvidenceResult[bool]:
            tags = await host.property("ro.build.tags")
            build_type = await host.property("ro.build.type")
            if not tags.known or not build_type.known:
                return unknown("build tags or type unavailable")
            user_build = build_type.value == "user"
            sdk = await sdk_level(host)
            if sdk.value_or(0) >= SDK_NOUGAT:
                bootloader = await prop(host, "ro.bootloader")
                fingerprint = await prop(host, "ro.build.fingerprint")
                display = await prop(host, "ro.build.display.id")
                return known(
                    "release-keys" in str(tags.value)
                    and user_build
                    and not _tainted(bootloader, fingerprint)
                    and bool(display)
                    and "test" not in display.lower()
                )
            return known("test-keys" not in str(tags.value) and user_build)

        return EvidenceChain(
            "verified boot state",
            [
                ("ro.boot.verifiedbootstate", boot_state),
                ("ro.boot.veritymode", verity_mode),
                ("build metadata", build_metadata),
            ],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        result = await self.chain(ctx.host).resolve()
        details = as_details({"source": result.source, "attempted": result.trail})
        if not result.known:
            return self.unavailable("Verified boot state", result.reason, details)
        if result.value:
            return Verdict(True, f"Verified boot intact (via {result.source})", details)
        return Verdict(False, f"Verified boot compromised or bypassed (via {result.source})", details)


class SecurityPatchProbe(Probe):
    """Security patch recency.

    Android 11+ requires a patch no older than 18 months before the
    reference date; Android 8-10 requires a 2020 or later patch; older
    releases pass. A missing patch string falls back to passing on
    Android 8+, where the patch level is tracked by the platform.
    """

    name = "security_patch"
    title = "Security patch level"
    weight = 0.10
    tier = Tier.SUPPLEMENTARY
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Install the latest security update from the device vendor."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        host = ctx.host
        sdk = await sdk_level(host)
        patch_raw = await host.property("ro.build.version.security_patch")
        patch = parse_patch_date(str(patch_raw.value)) if patch_raw.known else None

        if patch is None:
            if not sdk.known:
                return self.unavailable("Security patch level", patch_raw.reason or "unparseable")
            passed = sdk.value >= SDK_OREO
            details = as_details({"sdk": sdk.value, "patch": "unknown"})
            return Verdict(
                passed,
                f"Patch level unreadable; {'Android 8+ assumed patched' if passed else 'release too old'}",
                details,
            )

        level = sdk.value if sdk.known else SDK_R
        if level >= SDK_R:
            floor = months_before(ctx.today, PATCH_MAX_AGE_MONTHS)
            rule = f"within {PATCH_MAX_AGE_MONTHS} months"
        elif level >= SDK_OREO:
            floor = parse_patch_date(LEGACY_PATCH_FLOOR)
            rule = f"on or after {LEGACY_PATCH_FLOOR}"
        else:
            floor = None
            rule = "no requirement before Android 8"

        passed = floor is None or patch >= floor
        details = as_details(
            {"sdk": sdk.value if sdk.known else "unknown", "patch": patch.isoformat(), "rule": rule}
        )
        if passed:
            return Verdict(True, f"Security patch {patch.isoformat()} ({rule})", details)
        return Verdict(False, f"Security patch {patch.isoformat()} is outdated ({rule})", details)


class AntiTamperProbe(Probe):
    """Debugging and developer surfaces are closed.

    Four signals, at least 70% must be secure:
        - the assessing process is not traced (``TracerPid`` is 0),
        - ADB is disabled,
        - developer options are disabled,
        - the build is a release-keys ``user`` build.

    When a settings read is denied, that signal falls back to the
    release-build inference. An unreadable process status counts as
    not traced.
    """

    name = "anti_tamper"
    title = "Anti-tamper protection"
    weight = 0.10
    tier = Tier.SUPPLEMENTARY
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Disable USB debugging and developer options when not in use."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        host = ctx.host
        tags = await prop(host, "ro.build.tags")
        build_type = await prop(host, "ro.build.type")
        release_user = build_type == "user" and "release-keys" in tags

        async def setting_disabled(key: str) -> tuple[bool, str]:
            r = await host.command(["settings", "get", "global", key], ctx.command_timeout_ms)
            if r.known and str(r.value).strip() in ("0", "1"):
                return str(r.value).strip() == "0", "settings"
            return release_user, "build inference"

        status = await host.file_text("/proc/self/status")
        not_traced = True
        if status.known:
            for line in str(status.value).splitlines():
                if line.startswith("TracerPid:"):
                    not_traced = line.split(":", 1)[1].strip() == "0"

        adb_off, adb_source = await setting_disabled("adb_enabled")
        dev_off, dev_source = await setting_disabled("development_settings_enabled")
        signals = {
            "not_traced": not_traced,
            "adb_disabled": adb_off,
            "developer_options_disabled": dev_off,
            "release_user_build": release_user,
        }
        secure = sum(signals.values())
        ratio = secure / len(signals)
        details = as_details({**signals, "adb_source": adb_source, "developer_source": dev_source})
        evidence = f"{secure}/{len(signals)} anti-tamper signals secure"
        return Verdict(ratio >= ANTI_TAMPER_MIN_RATIO, evidence, details)


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="Bootloader",
        probes=(
            BootloaderLockProbe(),
            BuildIntegrityProbe(),
            VerifiedBootProbe(),
            SecurityPatchProbe(),
            AntiTamperProbe(),
        ),
        policy=POLICY,
    )
