"""TEE category: trusted execution environment and hardware key store.

The key-store probes are stateful: each creates a key under a unique,
namespaced alias and deletes it in a ``finally`` block, so no key outlives
the probe on success, failure, timeout or cancellation. All of them name
the ``keystore`` shared resource and therefore never run concurrently.

    tee_environment        0.25  critical
    hardware_keystore      0.35  critical
    key_attestation        0.15  supplementary
    strongbox              0.10  supplementary
    encryption_round_trip  0.10  supplementary
    biometric_binding      0.05  supplementary

A device without a StrongBox secure element still reaches exactly 90%
and passes.
"""

from __future__ import annotations

import logging

from trustprobe.categories.common import SDK_MARSHMALLOW, as_details, sdk_level
from trustprobe.core.evidence import (
    EvidenceChain,
    EvidenceResult,
    HardwareKeyFacts,
    HostEvidence,
    KeyAlgorithm,
    KeySpec,
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

logger = logging.getLogger(__name__)

CATEGORY = "tee"
KEYSTORE_RESOURCE = "keystore"
STRONGBOX_FEATURE = "android.hardware.strongbox_keystore"
BIOMETRIC_FEATURES = (
    "android.hardware.fingerprint",
    "android.hardware.biometrics.face",
    "android.hardware.biometrics.iris",
)
ATTESTATION_CHALLENGE = b"trustprobe-attestation-challenge"
MIN_ATTESTATION_CHAIN = 1
# Slowest acceptable AES-GCM encrypt/decrypt of a 2 KiB buffer.
ROUND_TRIP_LIMIT_MS = 400.0

POLICY = ScoringPolicy(
    pass_threshold=90,
    fail_threshold=50,
    passed_summary="Hardware-backed key storage is available and verified.",
    warning_summary=(
        "Hardware-backed key storage works but some assurances are missing. "
        "Review the failed checks below."
    ),
    failed_summary=(
        "No trustworthy hardware-backed key storage was found. Do not rely on this "
        "device for credentials or payment keys."
    ),
)


class KeystoreProbe(Probe):
    """Base for probes that create a temporary hardware-backed key."""

    shared_resource = KEYSTORE_RESOURCE
    failure_policy = FailurePolicy.FAIL_CLOSED

    async def with_key(self, ctx: ProbeContext, spec: KeySpec) -> HardwareKeyFacts:
        """Create a key under a fresh alias, always deleting it afterwards."""
        alias = ctx.unique_alias(self.name)
        try:
            return await ctx.host.create_hardware_key(alias, spec)
        finally:
            await ctx.host.delete_hardware_key(alias)
            logger.debug("Deleted temporary key %s", alias)


def feature_chain(
    host: HostEvidence, timeout_ms: int, label: str, features: tuple[str, ...]
) -> EvidenceChain:
    """Whether the platform advertises any of ``features``.

    Checks the package manager feature list, then the feature permission
    files under the vendor and system partitions.
    """

    async def feature_list() -> EvidenceResult[bool]:
        r = await host.command(["pm", "list", "features"], timeout_ms)
        if not r.known:
            return r
        advertised = str(r.value)
        return known(any(f"feature:{feature}" in advertised for feature in features))

    async def permission_file() -> EvidenceResult[bool]:
        for feature in features:
            for root in ("/vendor/etc/permissions", "/system/etc/permissions"):
                facts = await host.file_facts(f"{root}/{feature}.xml")
                if not facts.known:
                    return unknown(facts.reason)
                if facts.value.exists:
                    return known(True)
        return known(False)

    return EvidenceChain(
        label, [("feature list", feature_list), ("permission file", permission_file)]
    )


class TeeEnvironmentProbe(Probe):
    """Platform supports a hardware-backed key store.

    Requires Android 6 (API 23) or later and a key store service, found
    through: the keystore2 binary, the legacy keystore binary, then the
    service manager.
    """

    name = "tee_environment"
    title = "TEE environment"
    weight = 0.25
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Use a device running Android 6 or later with a working key store service."

    def keystore_chain(self, host: HostEvidence, timeout_ms: int) -> EvidenceChain:
        def binary(path: str):
            async def strategy() -> EvidenceResult[bool]:
                facts = await host.file_facts(path)
                if not facts.known:
                    return unknown(facts.reason)
                if facts.value.exists:
                    return known(True)
                return unknown(f"{path} missing")

            return strategy

        async def service_manager() -> EvidenceResult[bool]:
            r = await host.command(
                ["service", "check", "android.system.keystore2.IKeystoreService/default"],
                timeout_ms,
            )
            if not r.known:
                return r
            return known("not found" not in str(r.value).lower())

        return EvidenceChain(
            "key store service",
            [
                ("keystore2 binary", binary("/system/bin/keystore2")),
                ("keystore binary", binary("/system/bin/keystore")),
                ("service manager", service_manager),
            ],
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        sdk = await sdk_level(ctx.host)
        if not sdk.known:
            return self.unavailable("SDK level", sdk.reason)
        service = await self.keystore_chain(ctx.host, ctx.command_timeout_ms).resolve()
        if not service.known:
            return self.unavailable("Key store service", service.reason)
        details = as_details(
            {"sdk": sdk.value, "keystore": service.value, "keystore_source": service.source}
        )
        if sdk.value < SDK_MARSHMALLOW:
            return Verdict(False, f"API level {sdk.value} predates hardware key attestation", details)
        if not service.value:
            return Verdict(False, "Key store service not registered", details)
        return Verdict(True, f"API level {sdk.value} with key store ({service.source})", details)


class HardwareKeystoreProbe(KeystoreProbe):
    """An AES key is created inside secure hardware and round-trips data."""

    name = "hardware_keystore"
    title = "Hardware key store"
    weight = 0.35
    tier = Tier.CRITICAL
    remediation = "Keys are not protected by secure hardware; avoid storing credentials on this device."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        facts = await self.with_key(ctx, KeySpec(KeyAlgorithm.AES, 256))
        details = as_details(
            {
                "created": facts.created,
                "inside_secure_hardware": facts.inside_secure_hardware,
                "round_trip": facts.self_test_passed,
            }
        )
        if facts.created and facts.inside_secure_hardware and facts.self_test_passed:
            return Verdict(True, "AES key generated in secure hardware; round trip verified", details)
        if not facts.inside_secure_hardware:
            return Verdict(False, "Key material is software-backed", details)
        return Verdict(False, "Hardware key could not be created or verified", details)


class KeyAttestationProbe(KeystoreProbe):
    """An EC key returns an attestation certificate chain and signs data."""

    name = "key_attestation"
    title = "Key attestation"
    weight = 0.15
    tier = Tier.SUPPLEMENTARY
    remediation = "Key attestation is unavailable; remote services cannot verify this device's keys."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        spec = KeySpec(KeyAlgorithm.EC, 256, attestation_challenge=ATTESTATION_CHALLENGE)
        facts = await self.with_key(ctx, spec)
        details = as_details(
            {
                "chain_length": facts.attestation_chain_length,
                "sign_verify": facts.self_test_passed,
            }
        )
        if facts.attestation_chain_length >= MIN_ATTESTATION_CHAIN and facts.self_test_passed:
            return Verdict(
                True, f"Attestation chain of {facts.attestation_chain_length} certificates", details
            )
        return Verdict(False, "No attestation certificate chain returned", details)


class StrongBoxProbe(KeystoreProbe):
    """A dedicated secure element (StrongBox) backs generated keys.

    Only attempts key creation when the platform advertises the StrongBox
    feature, found through the package manager feature list, then the
    feature permission file.
    """

    name = "strongbox"
    title = "StrongBox secure element"
    weight = 0.10
    tier = Tier.SUPPLEMENTARY
    remediation = "This device has no StrongBox secure element; prefer one that does for high-value keys."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        chain = feature_chain(
            ctx.host, ctx.command_timeout_ms, "StrongBox feature", (STRONGBOX_FEATURE,)
        )
        feature = await chain.resolve()
        if not feature.known:
            return self.unavailable("StrongBox feature", feature.reason)
        if not feature.value:
            return Verdict(False, "StrongBox not present", as_details({"feature": False}))
        facts = await self.with_key(ctx, KeySpec(KeyAlgorithm.AES, 128, strongbox=True))
        details = as_details({"feature": True, "strongbox_backed": facts.strongbox_backed})
        if facts.created and facts.strongbox_backed:
            return Verdict(True, "Key generated inside StrongBox", details)
        return Verdict(False, "StrongBox advertised but key not StrongBox-backed", details)


class EncryptionRoundTripProbe(KeystoreProbe):
    """An AES-GCM key encrypts and decrypts a buffer within a time limit."""

    name = "encryption_round_trip"
    title = "TEE encryption round trip"
    weight = 0.10
    tier = Tier.SUPPLEMENTARY
    remediation = "Hardware encryption is slow or unreliable; expect degraded credential handling."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        facts = await self.with_key(ctx, KeySpec(KeyAlgorithm.AES, 256))
        details = as_details(
            {"round_trip": facts.self_test_passed, "round_trip_ms": facts.self_test_ms}
        )
        if not (facts.created and facts.self_test_passed):
            return Verdict(False, "Encrypt/decrypt round trip failed", details)
        if facts.self_test_ms > ROUND_TRIP_LIMIT_MS:
            return Verdict(
                False,
                f"Round trip took {facts.self_test_ms:g} ms (limit {ROUND_TRIP_LIMIT_MS:g} ms)",
                details,
            )
        return Verdict(True, f"AES-GCM round trip in {facts.self_test_ms:g} ms", details)


class BiometricBindingProbe(KeystoreProbe):
    """A key bound to biometric authentication can be created in the TEE.

    Skips key creation when no fingerprint, face or iris hardware is
    advertised. A key store that refuses the binding (for example because
    no strong biometric is enrolled) fails the probe with its error.
    """

    name = "biometric_binding"
    title = "Biometric key binding"
    weight = 0.05
    tier = Tier.SUPPLEMENTARY
    remediation = "Enroll a strong biometric so keys can require user authentication."

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        chain = feature_chain(
            ctx.host, ctx.command_timeout_ms, "biometric hardware", BIOMETRIC_FEATURES
        )
        feature = await chain.resolve()
        if not feature.known:
            return self.unavailable("Biometric hardware", feature.reason)
        if not feature.value:
            return Verdict(False, "No biometric hardware", as_details({"hardware": False}))
        spec = KeySpec(KeyAlgorithm.AES, 256, user_authentication=True)
        facts = await self.with_key(ctx, spec)
        details = as_details(
            {"hardware": True, "inside_secure_hardware": facts.inside_secure_hardware}
        )
        if facts.created and facts.inside_secure_hardware:
            return Verdict(True, "Biometric-bound key generated in secure hardware", details)
        return Verdict(False, "Biometric-bound key is not hardware-backed", details)


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="TEE",
        probes=(
            TeeEnvironmentProbe(),
            HardwareKeystoreProbe(),
            KeyAttestationProbe(),
            StrongBoxProbe(),
            EncryptionRoundTripProbe(),
            BiometricBindingProbe(),
        ),
        policy=POLICY,
    )
