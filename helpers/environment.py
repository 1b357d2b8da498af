from dataclasses import dataclass

from helpers.globals import cfg
from helpers.reactive import Computed, Ref


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int

    @staticmethod
    def of(width, height) -> "Viewport":
        # host-provided sizes are never negative; clamp anything that is
        return Viewport(max(0, int(width or 0)), max(0, int(height or 0)))


class EnvironmentInfo:
    """
    Host environment as seen by the device classifier.

    Holds the user agent (read once, never changes) and the live viewport.
    Width and height live in a single Ref so a resize is one atomic change:
    observers never see a new width paired with a stale height.
    """

    def __init__(self, user_agent: str = "", width: int = 0, height: int = 0):
        self.user_agent = user_agent or ""
        self.viewport = Ref(Viewport.of(width, height))
        self.viewport_width = Computed(lambda: self.viewport.value.width, [self.viewport])
        self.viewport_height = Computed(lambda: self.viewport.value.height, [self.viewport])

    def resize(self, width: int, height: int) -> bool:
        """Report a new viewport size. Returns True when the size changed."""
        return self.viewport.set(Viewport.of(width, height))


def default_environment() -> EnvironmentInfo:
    """
    Environment for a non-browser execution context: no user agent and the
    configured fallback viewport.
    """
    width = cfg("classifier.default_viewport.width", 1024)
    height = cfg("classifier.default_viewport.height", 768)

    try:
        return EnvironmentInfo("", int(width), int(height))
    except (TypeError, ValueError):
        return EnvironmentInfo("", 1024, 768)
