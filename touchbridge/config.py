"""Editor settings read from the optional `capture:` and `surface:` YAML sections"""
import logging
from dataclasses import dataclass, field

import pygame

from touchbridge.core.state import DEVICE_HEIGHT, DEVICE_WIDTH

LOG = logging.getLogger("touchbridge.config")


@dataclass
class CaptureConfig:
    poll_interval_ms: int = 200
    timeout_ms: int = 5000
    cancel_key: str = "escape"

    @property
    def cancel_key_code(self) -> int:
        try:
            return pygame.key.key_code(self.cancel_key)
        except ValueError:
            LOG.warning("unknown cancel key %r, using escape", self.cancel_key)
            return pygame.K_ESCAPE


@dataclass
class SurfaceConfig:
    width: int = DEVICE_WIDTH
    height: int = DEVICE_HEIGHT


@dataclass
class EditorConfig:
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        cap = data.get("capture") or {}
        surf = data.get("surface") or {}
        capture = CaptureConfig(
            poll_interval_ms=int(cap.get("poll_interval_ms", 200)),
            timeout_ms=int(cap.get("timeout_ms", 5000)),
            cancel_key=str(cap.get("cancel_key", "escape")),
        )
        surface = SurfaceConfig(
            width=max(1, int(surf.get("width", DEVICE_WIDTH))),
            height=max(1, int(surf.get("height", DEVICE_HEIGHT))),
        )
        return cls(capture, surface)

    def to_dict(self) -> dict:
        return {
            "capture": {
                "poll_interval_ms": self.capture.poll_interval_ms,
                "timeout_ms": self.capture.timeout_ms,
                "cancel_key": self.capture.cancel_key,
            },
            "surface": {"width": self.surface.width, "height": self.surface.height},
        }
