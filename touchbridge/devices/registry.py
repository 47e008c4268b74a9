"""Device sources available for capturing a binding"""
from typing import List

from touchbridge.core.reader import DeviceSource
from touchbridge.devices.gamepad import GamepadSource

BUTTON = "button"


def get_sources(device_type: str = BUTTON) -> List[DeviceSource]:
    """Fresh sources for one capture session. The keyboard is handled by the editor directly."""
    if device_type == BUTTON:
        return [GamepadSource()]
    return []
