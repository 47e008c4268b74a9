"""Gamepad source using pygame.joystick

`GamepadSource` turns pygame joystick events into `sdl` engine descriptors
while a binding is being captured:

  button:3,engine:sdl,guid:...,port:0                  (button released)
  direction:up,engine:sdl,guid:...,hat:0,port:0        (hat pushed)
  axis:1,direction:+,engine:sdl,guid:...,port:0,threshold:0.5
"""
import logging
from typing import Dict, Optional, Tuple

import pygame

from touchbridge.core.descriptor import ENGINE_GAMEPAD, EventDescriptor
from touchbridge.core.reader import DeviceSource

LOG = logging.getLogger("touchbridge.gamepad")

JOYSTICK_EVENTS = (pygame.JOYBUTTONUP, pygame.JOYBUTTONDOWN, pygame.JOYHATMOTION, pygame.JOYAXISMOTION)

HAT_DIRECTIONS = {
    (0, 1): "up",
    (0, -1): "down",
    (-1, 0): "left",
    (1, 0): "right",
}

AXIS_THRESHOLD = 0.5


def descriptor_from_event(event, port: int, guid: str,
                          axis_threshold: float = AXIS_THRESHOLD) -> Optional[EventDescriptor]:
    """Descriptor for a joystick event, or None if the event does not make a binding."""
    desc = EventDescriptor({"engine": ENGINE_GAMEPAD, "port": port, "guid": guid})
    if event.type == pygame.JOYBUTTONUP:
        desc.set("button", event.button)
        return desc
    if event.type == pygame.JOYHATMOTION:
        direction = HAT_DIRECTIONS.get(tuple(event.value))
        if direction is None:
            return None  # centred or diagonal
        desc.set("hat", event.hat)
        desc.set("direction", direction)
        return desc
    if event.type == pygame.JOYAXISMOTION:
        if abs(event.value) < axis_threshold:
            return None
        desc.set("axis", event.axis)
        desc.set("direction", "+" if event.value > 0 else "-")
        desc.set("threshold", axis_threshold)
        return desc
    return None


class GamepadSource(DeviceSource):
    """Polls every attached joystick through the pygame event queue."""

    def __init__(self, axis_threshold: float = AXIS_THRESHOLD):
        self.axis_threshold = axis_threshold
        self._joysticks: Dict[int, Tuple[int, str, object]] = {}  # instance id -> (port, guid, js)

    def start(self):
        pygame.init()
        pygame.joystick.init()
        self._joysticks = {}
        for i in range(pygame.joystick.get_count()):
            js = pygame.joystick.Joystick(i)
            js.init()
            guid = js.get_guid()
            self._joysticks[js.get_instance_id()] = (i, guid, js)
            LOG.info(f"Found joystick: {js.get_name()} (index {i}, axes={js.get_numaxes()}, buttons={js.get_numbuttons()}, hats={js.get_numhats()})")
        if not self._joysticks:
            LOG.debug("no joysticks attached")
        # ignore anything queued before the capture started
        pygame.event.clear(JOYSTICK_EVENTS)

    def stop(self):
        if pygame.get_init():
            # closed joysticks stop feeding the event queue between captures
            for _, _, js in self._joysticks.values():
                js.quit()
            pygame.event.clear(JOYSTICK_EVENTS)
        self._joysticks = {}

    def get_next_input(self) -> Optional[EventDescriptor]:
        for event in pygame.event.get(JOYSTICK_EVENTS):
            entry = self._joysticks.get(getattr(event, "instance_id", -1))
            if entry is None:
                continue
            port, guid, _ = entry
            desc = descriptor_from_event(event, port, guid, self.axis_threshold)
            if desc is not None:
                LOG.debug("gamepad input -> %s", desc.serialize())
                return desc
        return None
