import logging
import re
from dataclasses import dataclass
from enum import Enum

from helpers.environment import EnvironmentInfo, default_environment
from helpers.globals import cfg
from helpers.reactive import Computed


class DeviceCategory(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


AUTO_MODE = "auto"
OVERRIDE_MODES = (AUTO_MODE, "desktop", "tablet", "mobile")

# Handheld OS families (case-insensitive)
_HARMONY_PATTERN = re.compile(r"harmonyos|hongmeng|hm os", re.IGNORECASE)
_HUAWEI_PATTERN = re.compile(r"huaweibrowser|huawei", re.IGNORECASE)
_IOS_PATTERN = re.compile(r"iphone|ipad|ipod", re.IGNORECASE)
_MOBILE_UA_PATTERN = re.compile(r"mobi|mobile|android|iphone|ipod|ipad", re.IGNORECASE)

# Widths below these are mobile / tablet respectively
_DEFAULT_MOBILE_BREAKPOINT = 768
_DEFAULT_DESKTOP_BREAKPOINT = 1024


def _breakpoint(key: str, default: int) -> int:
    value = cfg(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        logging.warning(f"[Device] Invalid {key}={value!r}; using {default}")
        return default


def load_breakpoints() -> tuple:
    """
    Read (mobile, desktop) breakpoints from config.

    Both must be positive with mobile below desktop; anything else falls
    back to 768/1024 so a bad override never inverts the tiers.
    """
    mobile = _breakpoint("classifier.mobile_breakpoint", _DEFAULT_MOBILE_BREAKPOINT)
    desktop = _breakpoint("classifier.desktop_breakpoint", _DEFAULT_DESKTOP_BREAKPOINT)

    if not 0 < mobile < desktop:
        logging.warning(
            f"[Device] Breakpoints mobile={mobile} desktop={desktop} are out of order; "
            f"using {_DEFAULT_MOBILE_BREAKPOINT}/{_DEFAULT_DESKTOP_BREAKPOINT}"
        )
        return _DEFAULT_MOBILE_BREAKPOINT, _DEFAULT_DESKTOP_BREAKPOINT

    return mobile, desktop


MOBILE_BREAKPOINT, DESKTOP_BREAKPOINT = load_breakpoints()


@dataclass(frozen=True)
class BrowserFlags:
    is_harmony: bool = False
    is_huawei_browser: bool = False
    is_android: bool = False
    is_ios: bool = False
    is_mobile_ua: bool = False
    is_via: bool = False
    is_quark: bool = False
    is_uc: bool = False
    is_safari: bool = False

    @property
    def treat_as_handheld(self) -> bool:
        return (
            self.is_harmony
            or self.is_huawei_browser
            or self.is_android
            or self.is_ios
            or self.is_mobile_ua
        )


def detect_browser_flags(user_agent: str) -> BrowserFlags:
    """
    Match the user agent against the handheld-OS and browser patterns.

    OS families are matched case-insensitively. Browser tokens are matched
    case-sensitively against the raw string, since real user agents
    capitalise them ("Chrome", "Safari", ...).
    """
    ua = user_agent or ""

    return BrowserFlags(
        is_harmony=bool(_HARMONY_PATTERN.search(ua)),
        is_huawei_browser=bool(_HUAWEI_PATTERN.search(ua)),
        is_android="android" in ua.lower(),
        is_ios=bool(_IOS_PATTERN.search(ua)),
        is_mobile_ua=bool(_MOBILE_UA_PATTERN.search(ua)),
        is_via="Via" in ua,
        is_quark="Quark" in ua,
        is_uc="UCBrowser" in ua or "UBrowser" in ua,
        is_safari=(
            "Safari" in ua
            and "Chrome" not in ua
            and "CriOS" not in ua
            and "Android" not in ua
        ),
    )


def root_css_classes(flags: BrowserFlags) -> list:
    """Classes the host should put on its root element for this user agent."""
    if flags.is_harmony or flags.is_huawei_browser:
        return ["harmony-os"]
    return []


def resolve_mode(mode) -> str:
    """Normalise an override value. Anything unrecognised means auto."""
    mode = mode or AUTO_MODE
    if isinstance(mode, DeviceCategory):
        return mode.value
    if mode in OVERRIDE_MODES:
        return mode
    return AUTO_MODE


def classify_device(
        flags: BrowserFlags,
        width: int,
        height: int,
        mode=None,
        mobile_breakpoint: int = None,
        desktop_breakpoint: int = None,
) -> DeviceCategory:
    """
    Derive the device category.

    An explicit override (desktop/tablet/mobile) always wins. Otherwise
    handheld user agents are sized by their shorter side, so a rotated
    phone or tablet is not mistaken for a desktop, and everything else is
    sized by width alone.
    """
    mode = resolve_mode(mode)
    if mode != AUTO_MODE:
        return DeviceCategory(mode)

    mobile_bp = MOBILE_BREAKPOINT if mobile_breakpoint is None else mobile_breakpoint
    desktop_bp = DESKTOP_BREAKPOINT if desktop_breakpoint is None else desktop_breakpoint

    size = min(width, height) if flags.treat_as_handheld else width

    if size < mobile_bp:
        return DeviceCategory.MOBILE
    if size < desktop_bp:
        return DeviceCategory.TABLET
    return DeviceCategory.DESKTOP


class DeviceClassifier:
    """
    Reactive device classification for one consuming context.

    Browser flags are computed once from the environment's user agent.
    device_key (and the is_mobile / is_tablet / is_desktop shortcuts) are
    Computed values that follow viewport and override changes.
    """

    def __init__(self, device_mode=None, environment: EnvironmentInfo = None):
        self.environment = environment or default_environment()
        self.device_mode = device_mode
        self.user_agent = self.environment.user_agent
        self.flags = detect_browser_flags(self.user_agent)

        deps = [self.environment.viewport]
        if device_mode is not None:
            deps.append(device_mode)

        self.device_key = Computed(self._compute_device_key, deps)
        self.is_mobile = Computed(lambda: self.device_key.value == DeviceCategory.MOBILE, [self.device_key])
        self.is_tablet = Computed(lambda: self.device_key.value == DeviceCategory.TABLET, [self.device_key])
        self.is_desktop = Computed(lambda: self.device_key.value == DeviceCategory.DESKTOP, [self.device_key])

        self.device_key.subscribe(
            lambda key: logging.debug(f"[Device] Device key changed to {key.value}")
        )

    def _compute_device_key(self) -> DeviceCategory:
        viewport = self.environment.viewport.value
        mode = self.device_mode.value if self.device_mode is not None else None
        return classify_device(self.flags, viewport.width, viewport.height, mode)

    # Browser identity and handheld-family flags never change after construction

    @property
    def is_via(self) -> bool:
        return self.flags.is_via

    @property
    def is_quark(self) -> bool:
        return self.flags.is_quark

    @property
    def is_uc(self) -> bool:
        return self.flags.is_uc

    @property
    def is_safari(self) -> bool:
        return self.flags.is_safari

    @property
    def is_harmony(self) -> bool:
        return self.flags.is_harmony

    @property
    def is_huawei_browser(self) -> bool:
        return self.flags.is_huawei_browser

    @property
    def is_android(self) -> bool:
        return self.flags.is_android

    @property
    def is_ios(self) -> bool:
        return self.flags.is_ios

    @property
    def root_classes(self) -> list:
        return root_css_classes(self.flags)

    def snapshot(self) -> dict:
        """Current classification as plain values, all taken from one read of device_key."""
        key = self.device_key.value
        return {
            "device_key": key.value,
            "is_mobile": key == DeviceCategory.MOBILE,
            "is_tablet": key == DeviceCategory.TABLET,
            "is_desktop": key == DeviceCategory.DESKTOP,
            "is_via": self.is_via,
            "is_quark": self.is_quark,
            "is_uc": self.is_uc,
            "is_safari": self.is_safari,
            "is_harmony": self.is_harmony,
            "is_huawei_browser": self.is_huawei_browser,
            "is_android": self.is_android,
            "is_ios": self.is_ios,
            "root_classes": self.root_classes,
        }
