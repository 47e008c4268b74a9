"""Event descriptors: serializable key/value records for one input event.

A descriptor is stored and exchanged as text, e.g.::

    engine:keyboard,code:97
    button:3,engine:sdl,guid:030000005e040000,port:0

The `engine` key selects how the remaining keys are read. Code that needs to
branch on the kind of input should call `resolve()` once and dispatch on the
returned variant instead of comparing engine strings.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

import pygame

LOG = logging.getLogger("touchbridge.descriptor")

PAIR_DELIMITER = ","
KEY_VALUE_DELIMITER = ":"

ENGINE_KEYBOARD = "keyboard"
ENGINE_GAMEPAD = "sdl"


class EventDescriptor:
    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    def has(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str, default=""):
        """Return the value for `key`, coerced to the type of `default`.

        Missing keys and values that cannot be coerced return `default`.
        """
        if key not in self._values:
            return default
        raw = self._values[key]
        if isinstance(default, bool):
            return raw.lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            try:
                return int(raw)
            except ValueError:
                try:
                    return int(float(raw))
                except ValueError:
                    return default
        if isinstance(default, float):
            try:
                return float(raw)
            except ValueError:
                return default
        return raw

    def set(self, key: str, value):
        if isinstance(value, bool):
            value = "1" if value else "0"
        self._values[str(key)] = str(value)

    def erase(self, key: str):
        self._values.pop(key, None)

    def copy(self) -> "EventDescriptor":
        return EventDescriptor(dict(self._values))

    def items(self):
        return sorted(self._values.items())

    @property
    def engine(self) -> str:
        return self._values.get("engine", "")

    @property
    def is_bound(self) -> bool:
        return bool(self.engine)

    def serialize(self) -> str:
        return PAIR_DELIMITER.join(f"{k}{KEY_VALUE_DELIMITER}{v}" for k, v in self.items())

    @classmethod
    def parse(cls, text) -> "EventDescriptor":
        """Parse descriptor text. Never raises; bad pairs are dropped."""
        desc = cls()
        if not isinstance(text, str) or not text.strip():
            return desc
        for pair in text.split(PAIR_DELIMITER):
            key, sep, value = pair.partition(KEY_VALUE_DELIMITER)
            if not sep or not key:
                LOG.warning("invalid key pair %r in descriptor %r", pair, text)
                continue
            desc._values[key] = value
        return desc

    def __eq__(self, other):
        if not isinstance(other, EventDescriptor):
            return NotImplemented
        return self._values == other._values

    def __repr__(self):
        return f"EventDescriptor({self.serialize()!r})"


def keyboard_descriptor(key_code: int) -> EventDescriptor:
    return EventDescriptor({"engine": ENGINE_KEYBOARD, "code": int(key_code)})


# ---------------------------------------------------------------
# Resolved input kinds
# ---------------------------------------------------------------
@dataclass(frozen=True)
class Unbound:
    pass


@dataclass(frozen=True)
class KeyboardInput:
    code: int


@dataclass(frozen=True)
class GamepadButton:
    port: int
    guid: str
    button: int


@dataclass(frozen=True)
class GamepadAxis:
    port: int
    guid: str
    axis: int
    direction: str  # "+" or "-"
    threshold: float


@dataclass(frozen=True)
class GamepadHat:
    port: int
    guid: str
    hat: int
    direction: str  # up / down / left / right


@dataclass(frozen=True)
class Unrecognized:
    engine: str


BoundInput = Union[Unbound, KeyboardInput, GamepadButton, GamepadAxis, GamepadHat, Unrecognized]


def resolve(desc: EventDescriptor) -> BoundInput:
    """Turn a descriptor into its typed input kind."""
    engine = desc.engine
    if not engine:
        return Unbound()
    if engine == ENGINE_KEYBOARD:
        return KeyboardInput(desc.get("code", 0))
    if engine == ENGINE_GAMEPAD:
        port = desc.get("port", 0)
        guid = desc.get("guid", "")
        if desc.has("hat"):
            return GamepadHat(port, guid, desc.get("hat", 0), desc.get("direction", ""))
        if desc.has("axis"):
            return GamepadAxis(port, guid, desc.get("axis", 0), desc.get("direction", ""),
                               desc.get("threshold", 0.5))
        if desc.has("button"):
            return GamepadButton(port, guid, desc.get("button", 0))
    return Unrecognized(engine)


_MODIFIER_NAMES = {
    pygame.K_LSHIFT: "Shift",
    pygame.K_RSHIFT: "Shift",
    pygame.K_LCTRL: "Ctrl",
    pygame.K_RCTRL: "Ctrl",
    pygame.K_LALT: "Alt",
    pygame.K_RALT: "Alt",
    pygame.K_LMETA: "",
    pygame.K_RMETA: "",
}


def key_name(key_code: int) -> str:
    if key_code in _MODIFIER_NAMES:
        return _MODIFIER_NAMES[key_code]
    return pygame.key.name(key_code).title()


def describe(desc: EventDescriptor) -> str:
    """Human readable text for a binding's input."""
    kind = resolve(desc)
    if isinstance(kind, Unbound):
        return "[not set]"
    if isinstance(kind, KeyboardInput):
        return key_name(kind.code)
    if isinstance(kind, GamepadHat):
        return f"Hat {kind.hat} {kind.direction}"
    if isinstance(kind, GamepadAxis):
        return f"Axis {kind.axis}{kind.direction}"
    if isinstance(kind, GamepadButton):
        return f"Button {kind.button}"
    if kind.engine == ENGINE_GAMEPAD:
        # gamepad descriptor without a button/hat/axis
        return ""
    return "[unknown]"
