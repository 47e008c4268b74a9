"""State models and lightweight DTOs"""
from dataclasses import dataclass, field
from typing import List

from touchbridge.core.descriptor import EventDescriptor

# Bottom touch screen resolution
DEVICE_WIDTH = 320
DEVICE_HEIGHT = 240


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass
class Binding:
    descriptor: EventDescriptor = field(default_factory=EventDescriptor)
    x: int = 0
    y: int = 0

    def place(self, x: int, y: int, width: int = DEVICE_WIDTH, height: int = DEVICE_HEIGHT):
        """Move to (x, y), clamped into the device grid."""
        self.x = clamp(int(x), 0, width - 1)
        self.y = clamp(int(y), 0, height - 1)


@dataclass
class Profile:
    name: str
    bindings: List[Binding] = field(default_factory=list)


@dataclass
class Marker:
    id: int
    row: int  # index into the selected profile's bindings
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class RowView:
    text: str
    x: int
    y: int
    marker_id: int
    selected: bool = False


@dataclass(frozen=True)
class MarkerView:
    id: int
    px: int
    py: int
    highlighted: bool = False
