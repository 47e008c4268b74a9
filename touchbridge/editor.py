"""Touch profile editor: keeps the binding list and the canvas markers in step.

The `ProfileStore` is the only place binding data lives. The editor owns the
marker map (marker id -> bound row), the selection, the pointer drag state and
the capture session; `rows()` and `markers()` derive both views from the store
on demand, so the list and the canvas cannot drift apart.
"""
import logging
from typing import Dict, List, Optional, Tuple

import pygame

from touchbridge.capture import CaptureSession
from touchbridge.core.descriptor import EventDescriptor, describe
from touchbridge.core.geometry import CoordinateMapper
from touchbridge.core.state import DEVICE_HEIGHT, DEVICE_WIDTH, Binding, Marker, MarkerView, Profile, RowView, clamp
from touchbridge.devices.registry import get_sources
from touchbridge.profiles import ProfileStore

LOG = logging.getLogger("touchbridge.editor")

PRESS_KEY_TEXT = "[press key]"
DRAG_DISTANCE = 4  # manhattan pixels before a marker press becomes a drag


class TouchEditor:
    def __init__(self, store: ProfileStore, session: Optional[CaptureSession] = None,
                 mapper: Optional[CoordinateMapper] = None):
        self.store = store
        self.session = session or CaptureSession(get_sources)
        self.mapper = mapper or CoordinateMapper(DEVICE_WIDTH, DEVICE_HEIGHT)
        self._markers: Dict[int, Marker] = {}
        self._max_marker_id = 0
        self._selected_row: Optional[int] = None
        self._capture_row: Optional[int] = None
        self._drag = None  # [marker_id, start_px, start_py, active]
        self._rebuild_markers()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return self.mapper.device_width

    @property
    def height(self) -> int:
        return self.mapper.device_height

    @property
    def capturing(self) -> bool:
        return self.session.capturing

    @property
    def bindings(self) -> List[Binding]:
        return self.store.selected.bindings

    @property
    def selected_row(self) -> Optional[int]:
        return self._selected_row

    def _busy(self, action: str) -> bool:
        if self.capturing:
            LOG.debug("%s ignored while capturing", action)
            return True
        return False

    def _valid_row(self, row) -> bool:
        return row is not None and 0 <= row < len(self.bindings)

    def _new_marker(self, row: int) -> int:
        self._max_marker_id += 1
        binding = self.bindings[row]
        self._markers[self._max_marker_id] = Marker(self._max_marker_id, row, binding.x, binding.y)
        return self._max_marker_id

    def _rebuild_markers(self):
        self._markers = {}
        self._selected_row = None
        self._drag = None
        for row in range(len(self.bindings)):
            self._new_marker(row)

    def _sync_markers(self):
        for marker in self._markers.values():
            binding = self.bindings[marker.row]
            marker.x, marker.y = binding.x, binding.y

    def marker_for_row(self, row: int) -> Optional[int]:
        for marker in self._markers.values():
            if marker.row == row:
                return marker.id
        return None

    def row_for_marker(self, marker_id: int) -> Optional[int]:
        marker = self._markers.get(marker_id)
        return marker.row if marker else None

    def _remove_row(self, row: int):
        """Drop a binding row together with its marker and shift later rows up."""
        marker_id = self.marker_for_row(row)
        if marker_id is not None:
            del self._markers[marker_id]
        del self.bindings[row]
        for marker in self._markers.values():
            if marker.row > row:
                marker.row -= 1
        if self._selected_row is not None:
            if self._selected_row == row:
                self._selected_row = None
            elif self._selected_row > row:
                self._selected_row -= 1
        if self._drag and self._drag[0] == marker_id:
            self._drag = None

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    def rows(self) -> List[RowView]:
        views = []
        for row, binding in enumerate(self.bindings):
            text = PRESS_KEY_TEXT if row == self._capture_row else describe(binding.descriptor)
            views.append(RowView(text, binding.x, binding.y, self.marker_for_row(row),
                                 row == self._selected_row))
        return views

    def markers(self) -> List[MarkerView]:
        views = []
        for marker in self._markers.values():
            binding = self.bindings[marker.row]
            px, py = self.mapper.device_to_pixel(binding.x, binding.y)
            views.append(MarkerView(marker.id, px, py, marker.row == self._selected_row))
        return views

    def marker_position(self, marker_id: int) -> Optional[Tuple[int, int]]:
        marker = self._markers.get(marker_id)
        return (marker.x, marker.y) if marker else None

    def hover_text(self, px: int, py: int) -> str:
        point = self.mapper.pixel_to_device(px, py)
        if point is None:
            return ""
        return f"X: {point[0]}, Y: {point[1]}"

    def resize(self, mapper: CoordinateMapper):
        self.mapper = mapper

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------
    def add_binding_at(self, x: int, y: int) -> Optional[int]:
        """Append a binding at a device point and capture its input. Returns the marker id."""
        if self._busy("add binding"):
            return None
        previous_row = self._selected_row
        binding = Binding(EventDescriptor())
        binding.place(x, y, self.width, self.height)
        self.bindings.append(binding)
        row = len(self.bindings) - 1
        marker_id = self._new_marker(row)
        self.select_row(row)
        LOG.debug("new binding row %d at (%d, %d), marker %d", row, binding.x, binding.y, marker_id)
        self._capture(row, True, previous_row)
        return marker_id

    def edit_binding(self, row: int) -> bool:
        if self._busy("edit binding") or not self._valid_row(row):
            return False
        self._capture(row, False)
        return True

    def _capture(self, row: int, is_new: bool, previous_row: Optional[int] = None):
        self._capture_row = row
        marker_id = self.marker_for_row(row)

        def on_complete(desc: Optional[EventDescriptor], cancelled: bool):
            self._capture_row = None
            current = self.row_for_marker(marker_id)
            if current is None:
                return
            if not cancelled:
                self.bindings[current].descriptor = desc
            elif is_new:
                self._remove_row(current)
                if previous_row is not None and self._valid_row(previous_row):
                    self._selected_row = previous_row

        self.session.start(on_complete, is_new)

    def delete_binding(self, row: Optional[int] = None) -> bool:
        if row is None:
            row = self._selected_row
        if self._busy("delete binding") or not self._valid_row(row):
            return False
        self._remove_row(row)
        return True

    def move_marker(self, marker_id: int, x: int, y: int) -> bool:
        row = self.row_for_marker(marker_id)
        if row is None:
            return False
        self.bindings[row].place(x, y, self.width, self.height)
        self._sync_markers()
        return True

    def edit_coordinate_field(self, row: int, axis: str, raw_value) -> bool:
        """Write a typed x/y value into a row, clamped to the device grid."""
        if not self._valid_row(row) or axis not in ("x", "y"):
            return False
        try:
            value = int(raw_value)
        except (TypeError, ValueError):
            value = 0
        binding = self.bindings[row]
        if axis == "x":
            binding.x = clamp(value, 0, self.width - 1)
        else:
            binding.y = clamp(value, 0, self.height - 1)
        self._sync_markers()
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_row(self, row: Optional[int]) -> bool:
        if self._busy("row selection"):
            return False
        if row is not None and not self._valid_row(row):
            return False
        self._selected_row = row
        return True

    def clear_selection(self):
        self._selected_row = None

    def highlight_marker(self, marker_id: int) -> bool:
        row = self.row_for_marker(marker_id)
        if row is None:
            return False
        return self.select_row(row)

    @property
    def highlighted_marker(self) -> Optional[int]:
        if self._selected_row is None:
            return None
        return self.marker_for_row(self._selected_row)

    # ------------------------------------------------------------------
    # Input routing
    # ------------------------------------------------------------------
    def key_pressed(self, key_code: int) -> bool:
        if self.session.key_pressed(key_code):
            return True
        if key_code == pygame.K_DELETE:
            return self.delete_binding()
        return False

    def tick(self, now: Optional[float] = None):
        self.session.tick(now)

    def press_canvas(self, px: int, py: int) -> Optional[int]:
        point = self.mapper.pixel_to_device(px, py)
        if point is None:
            return None
        return self.add_binding_at(*point)

    def press_marker(self, marker_id: int, px: int, py: int) -> bool:
        if self._busy("marker press") or not self.highlight_marker(marker_id):
            return False
        self._drag = [marker_id, px, py, False]
        return True

    def drag_to(self, px: int, py: int) -> bool:
        if self._drag is None or self.capturing:
            return False
        marker_id, start_x, start_y, active = self._drag
        if not active:
            if abs(px - start_x) + abs(py - start_y) < DRAG_DISTANCE:
                return False
            self._drag[3] = True
        point = self.mapper.pixel_to_device(*self.mapper.clamp_pixel(px, py))
        if point is None:
            return False
        return self.move_marker(marker_id, *point)

    def release_pointer(self):
        self._drag = None

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def flush(self):
        """Commit in-progress edits of the selected profile into the store."""
        self.session.cancel()
        for row in reversed(range(len(self.bindings))):
            if not self.bindings[row].descriptor.is_bound:
                self._remove_row(row)

    def new_profile(self, name: str) -> Optional[int]:
        if not name or self._busy("new profile"):
            return None
        self.flush()
        index = self.store.create_profile(name)
        self._rebuild_markers()
        return index

    def delete_profile(self) -> bool:
        if self._busy("delete profile"):
            return False
        if not self.store.delete_profile(self.store.selected_index):
            return False
        self._rebuild_markers()
        return True

    def rename_profile(self, name: str) -> bool:
        if not name or self._busy("rename profile"):
            return False
        return self.store.rename_profile(self.store.selected_index, name)

    def select_profile(self, index: int) -> bool:
        if self._busy("select profile"):
            return False
        self.flush()
        if not self.store.select_profile(index):
            return False
        self._rebuild_markers()
        return True

    def get_selected_profile_index(self) -> int:
        return self.store.selected_index

    def get_all_profiles(self) -> List[Profile]:
        return self.store.profiles

    def commit(self) -> List[Profile]:
        self.flush()
        return self.get_all_profiles()
