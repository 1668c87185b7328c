"""Embedded, versioned denylist of known-dangerous tooling.

The catalog is loaded once at import time and is immutable for the
process lifetime; it may be shared across concurrent probe runs without
locking. Each entry carries a category label derived from its identifier.
"""

from __future__ import annotations

from dataclasses import dataclass

CATALOG_VERSION = "2025.1"


@dataclass(frozen=True)
class SignatureEntry:
    """One denylisted entity.

    Attributes:
        identifier: Package identifier as it appears on the host.
        category: Human-readable class of tooling (e.g. ``"root manager"``).
    """

    identifier: str
    category: str


# ---------------------------------------------------------------------------
# Category labels
# ---------------------------------------------------------------------------

ROOT_MANAGER = "root manager"
HOOK_FRAMEWORK = "hook framework"
CRACKING_TOOL = "cracking tool"
SYSTEM_TOOL = "system tool"
PRIVACY_BYPASS = "privacy bypass"
MODIFICATION_TOOL = "modification tool"

# Checked in order; the first matching substring decides the label.
_CATEGORY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("magisk", "ksu", "sukisu", "superuser", "supersu"), ROOT_MANAGER),
    (("xposed", "lsposed", "lspatch", "xlua"), HOOK_FRAMEWORK),
    (("hook", "vip"), CRACKING_TOOL),
    (("termux", "termex", "adb", "shizuku", "apktool"), SYSTEM_TOOL),
    (("fake", "emulator", "hide", "spoof", "deviceid", "privacy"), PRIVACY_BYPASS),
)


def categorize(identifier: str) -> str:
    """Label an identifier by the first matching substring rule."""
    lowered = identifier.lower()
    if lowered.endswith(".su"):
        return ROOT_MANAGER
    for needles, label in _CATEGORY_RULES:
        if any(n in lowered for n in needles):
            return label
    return MODIFICATION_TOOL


# ---------------------------------------------------------------------------
# Raw identifiers
# ---------------------------------------------------------------------------

_DANGEROUS_IDENTIFIERS: tuple[str, ...] = (
    "com.silverlab.app.deviceidchanger.free", "me.bingyue.IceCore", "com.modify.installer",
    "o.dyoo", "com.zhufucdev.motion_emulator", "me.simpleHook", "com.cshlolss.vipkill",
    "io.github.a13e300.ksuwebui", "com.demo.serendipity", "me.iacn.biliroaming",
    "me.teble.xposed.autodaily", "com.example.ourom", "dialog.box", "top.hookvip.pro",
    "tornaco.apps.shortx", "moe.fuqiuluo.portal", "com.github.tianma8023.xposed.smscode",
    "moe.shizuku.privileged.api", "lin.xposed", "com.lerist.fakelocation",
    "com.yxer.packageinstalles", "xzr.hkf", "web1n.stopapp", "Hook.JiuWu.Xp",
    "io.github.qauxv", "com.houvven.guise", "xzr.konabess", "com.xayah.databackup.foss",
    "com.sevtinge.hyperceiler", "github.tornaco.android.thanos", "nep.timeline.freezer",
    "cn.geektang.privacyspace", "org.lsposed.lspatch", "zako.zako.zako",
    "com.topmiaohan.hidebllist", "com.tsng.hidemyapplist", "com.tsng.pzyhrx.hma",
    "com.rifsxd.ksunext", "com.byyoung.setting", "com.omarea.vtools", "cn.myflv.noactive",
    "io.github.vvb2060.magisk", "com.bug.hookvip", "com.junge.algorithmAidePro",
    "bin.mt.termex", "tmgp.atlas.toolbox", "com.wn.app.np", "com.sukisu.ultra",
    "ru.maximoff.apktool", "top.bienvenido.saas.i18n", "com.syyf.quickpay",
    "tornaco.apps.shortx.ext", "com.mio.kitchen", "eu.faircode.xlua", "com.dna.tools",
    "cn.myflv.monitor.noactive", "com.yuanwofei.cardemulator.pro", "com.termux",
    "com.suqi8.oshin", "me.hd.wauxv", "have.fun", "miko.client", "com.kooritea.fcmfix",
    "com.twifucker.hachidori", "com.luckyzyx.luckytool", "com.padi.hook.hookqq",
    "cn.lyric.getter", "com.parallelc.micts", "me.plusne", "com.hchen.appretention",
    "com.hchen.switchfreeform", "name.monwf.customiuizer", "com.houvven.impad",
    "cn.aodlyric.xiaowine", "top.sacz.timtool", "nep.timeline.re_telegram",
    "com.fuck.android.rimet", "cn.kwaiching.hook", "cn.android.x",
    "cc.aoeiuv020.iamnotdisabled.hook", "vn.kwaiching.tao", "com.nnnen.plusne",
    "com.fkzhang.wechatxposed", "one.yufz.hmspush", "cn.fuckhome.xiaowine",
    "com.fankes.tsbattery", "com.rkg.IAMRKG", "me.gm.cleaner",
    "moe.shizuku.redirectstorage", "com.ddm.qute", "kk.dk.anqu", "com.qq.qcxm",
    "com.wei.vip", "dknb.con", "dknb.coo8", "com.tencent.jingshi", "com.tencent.JYNB",
    "com.apocalua.run", "com.coderstory.toolkit", "com.didjdk.adbhelper",
    "org.lsposed.manager", "io.github.Retmon403.oppotheme",
    "com.fankes.enforcehighrefreshrate", "es.chiteroman.bootloaderspoofer",
    "com.hchai.rescueplan", "com.topjohnwu.magisk",
)

ROOT_MANAGER_PACKAGES: tuple[str, ...] = (
    "com.topjohnwu.magisk",
    "com.sukisu.ultra",
    "com.noshufou.android.su",
    "com.noshufou.android.su.elite",
    "eu.chainfire.supersu",
    "com.koushikdutta.superuser",
    "com.thirdparty.superuser",
    "com.yellowes.su",
)


def _build(identifiers: tuple[str, ...]) -> tuple[SignatureEntry, ...]:
    seen: set[str] = set()
    entries = []
    for identifier in identifiers:
        if identifier in seen:
            continue
        seen.add(identifier)
        entries.append(SignatureEntry(identifier, categorize(identifier)))
    return tuple(entries)


DENYLIST: tuple[SignatureEntry, ...] = _build(_DANGEROUS_IDENTIFIERS)


def entries_in(category: str) -> tuple[SignatureEntry, ...]:
    """Denylist entries carrying the given category label."""
    return tuple(e for e in DENYLIST if e.category == category)
