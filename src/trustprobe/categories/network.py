"""Network category: connectivity, transport security and trust anchors.

Seven equally weighted probes share one ``NetworkFacts`` acquisition per
probe. ``tls`` and ``certificate_store`` are critical; the rest are
supplementary and fail-open, since an unknown connection state is not in
itself a risk.

Passed needs every probe; at least 60% is Warning; below is Failed.
"""

from __future__ import annotations

from abc import abstractmethod

from trustprobe.categories.common import as_details
from trustprobe.core.evidence import (
    EvidenceChain,
    EvidenceResult,
    HostEvidence,
    NetworkFacts,
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

CATEGORY = "network"

SECURE_DNS_SERVERS = frozenset(
    {
        "8.8.8.8", "8.8.4.4",
        "1.1.1.1", "1.0.0.1",
        "208.67.222.222", "208.67.220.220",
        "9.9.9.9", "149.112.112.112",
    }
)
MODERN_TLS = ("TLSv1.2", "TLSv1.3")
INSECURE_WIFI = frozenset({"open", "none", "wep"})
SUSPICIOUS_INTERFACE_MARKERS = ("tun", "tap", "vpn", "ppp")
USER_CA_STORE = "/data/misc/user/0/cacerts-added"

POLICY = ScoringPolicy(
    pass_threshold=100,
    fail_threshold=60,
    passed_summary="Network configuration is secure.",
    warning_summary=(
        "The network configuration has risks. Avoid sensitive transactions until they "
        "are resolved."
    ),
    failed_summary=(
        "The network path is not trustworthy. Traffic may be intercepted; do not use "
        "this connection for sensitive data."
    ),
)


class NetworkProbe(Probe):
    """Base for probes that judge the host's ``NetworkFacts``."""

    failure_policy = FailurePolicy.FAIL_OPEN

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        facts = await ctx.host.network()
        if not facts.known:
            return self.unavailable("Network state", facts.reason)
        return self.judge(facts.value)

    @abstractmethod
    def judge(self, facts: NetworkFacts) -> Verdict:
        """Apply the probe rule to acquired network facts."""


class ConnectivityProbe(NetworkProbe):
    name = "connectivity"
    title = "Connectivity"
    remediation = "The host is offline; connect to a trusted network and re-run."

    def judge(self, facts: NetworkFacts) -> Verdict:
        details = as_details({"connection_type": facts.connection_type})
        if facts.connected:
            return Verdict(True, f"Connected via {facts.connection_type}", details)
        return Verdict(False, "No active network connection", details)


class WifiSecurityProbe(NetworkProbe):
    """Connected WiFi networks use encryption. Unknown security passes."""

    name = "wifi_security"
    title = "WiFi security"
    remediation = "Avoid open or WEP WiFi networks; use WPA2 or WPA3."

    def judge(self, facts: NetworkFacts) -> Verdict:
        if facts.connection_type != "wifi":
            return Verdict(True, "Not connected over WiFi")
        security = facts.wifi_security
        if security is None:
            return Verdict(True, "WiFi security type unknown; assumed encrypted (fail-open)")
        details = as_details({"wifi_security": security})
        if security.strip().lower() in INSECURE_WIFI:
            return Verdict(False, f"WiFi network is {security}", details)
        return Verdict(True, f"WiFi network uses {security}", details)


class ProxyVpnProbe(NetworkProbe):
    name = "proxy_vpn"
    title = "Proxy and VPN"
    remediation = "Traffic is routed through a proxy or VPN; verify it is one you trust."

    def judge(self, facts: NetworkFacts) -> Verdict:
        details = as_details({"vpn": facts.vpn_active, "proxy": facts.proxy_configured})
        routes = [
            name
            for name, on in (("VPN", facts.vpn_active), ("proxy", facts.proxy_configured))
            if on
        ]
        if routes:
            return Verdict(False, f"Traffic routed through {' and '.join(routes)}", details)
        return Verdict(True, "No proxy or VPN in the path", details)


class DnsProbe(NetworkProbe):
    """Resolvers are configured. Notes whether well-known secure resolvers are used."""

    name = "dns"
    title = "DNS configuration"
    remediation = "No DNS resolver is configured; check the network settings."

    def judge(self, facts: NetworkFacts) -> Verdict:
        servers = facts.dns_servers
        secure = [s for s in servers if s in SECURE_DNS_SERVERS]
        details = as_details({"servers": servers, "well_known_secure": secure})
        if not servers:
            return Verdict(False, "No DNS servers configured", details)
        note = f"; {len(secure)} well-known secure" if secure else ""
        return Verdict(True, f"{len(servers)} DNS servers configured{note}", details)


class TlsProbe(NetworkProbe):
    name = "tls"
    title = "TLS support"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "The TLS stack lacks TLS 1.2 and 1.3; update the operating system."

    def judge(self, facts: NetworkFacts) -> Verdict:
        modern = [p for p in MODERN_TLS if p in facts.tls_protocols]
        details = as_details({"supported": facts.tls_protocols})
        if modern:
            return Verdict(True, f"Supports {', '.join(modern)}", details)
        return Verdict(False, "Neither TLS 1.2 nor TLS 1.3 is supported", details)


class InterfacesProbe(NetworkProbe):
    name = "interfaces"
    title = "Network interfaces"
    remediation = "Tunnel interfaces are present; traffic may be captured by another app."

    def judge(self, facts: NetworkFacts) -> Verdict:
        suspicious = [
            name for name in facts.interfaces
            if any(marker in name.lower() for marker in SUSPICIOUS_INTERFACE_MARKERS)
        ]
        details = as_details({"interfaces": facts.interfaces, "suspicious": suspicious})
        if suspicious:
            return Verdict(False, f"Tunnel interfaces present: {', '.join(suspicious)}", details)
        return Verdict(True, f"{len(facts.interfaces)} interfaces, none tunnelled", details)


class CertificateStoreProbe(Probe):
    """No user-installed CA certificates.

    Fallback chain: list the user CA directory, then confirm the directory
    does not exist (no user certificates were ever added). Fail-closed,
    since a user CA enables interception of TLS traffic.
    """

    name = "certificate_store"
    title = "Certificate store"
    tier = Tier.CRITICAL
    failure_policy = FailurePolicy.FAIL_CLOSED
    remediation = "Remove user-installed CA certificates unless you installed them deliberately."

    def chain(self, host: HostEvidence) -> EvidenceChain:
        async def listing() -> EvidenceResult[frozenset[str]]:
            return await host.enumerate_entities(USER_CA_STORE)

        async def absence() -> EvidenceResult[frozenset[str]]:
            facts = await host.file_facts(USER_CA_STORE)
            if not facts.known:
                return unknown(facts.reason)
            if not facts.value.exists:
                return known(frozenset())
            return unknown("directory exists but cannot be listed")

        return EvidenceChain(
            "user CA certificates", [("listing", listing), ("absence", absence)]
        )

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        result = await self.chain(ctx.host).resolve()
        if not result.known:
            return self.unavailable("User CA store", result.reason)
        added = sorted(result.value)
        details = as_details({"user_certificates": len(added)})
        if added:
            return Verdict(False, f"{len(added)} user-installed CA certificates", details)
        return Verdict(True, "No user-installed CA certificates", details)


def probe_set() -> ProbeSet:
    return ProbeSet(
        name=CATEGORY,
        title="Network security",
        probes=(
            ConnectivityProbe(),
            WifiSecurityProbe(),
            ProxyVpnProbe(),
            DnsProbe(),
            TlsProbe(),
            InterfacesProbe(),
            CertificateStoreProbe(),
        ),
        policy=POLICY,
    )
