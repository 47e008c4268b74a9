"""pygame window for editing touch profiles

Left: the touch surface with one marker per binding. Right: the binding list.

  left click on surface    add a binding there, then press a key/button
  drag a marker            move it
  right click a marker     re-bind it
  up/down                  select a row, Enter re-binds it, Delete removes it
  Tab                      next profile, Ctrl+N new profile, Ctrl+S save
  Escape while capturing   cancel
"""
import logging

import pygame

from touchbridge.core.geometry import CoordinateMapper
from touchbridge.devices.gamepad import JOYSTICK_EVENTS

LOG = logging.getLogger("touchbridge.preview")

WINDOW_SIZE = (900, 520)
LIST_WIDTH = 300
MARGIN = 16
MARKER_SIZE = 16
ROW_HEIGHT = 22
FPS = 60

BACKGROUND = (30, 30, 36)
SURFACE = (235, 235, 235)
MARKER = (20, 20, 20)
HIGHLIGHT = (200, 40, 160)
TEXT = (220, 220, 220)
SELECTED_ROW = (70, 70, 110)

# Joystick events stay queued for the gamepad source.
UI_EVENTS = (pygame.QUIT, pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP,
             pygame.MOUSEMOTION, pygame.VIDEORESIZE)


class WindowFocus:
    """Grabs pointer and keyboard input for the window while a capture runs."""

    def grab(self):
        pygame.event.set_grab(True)

    def release(self):
        pygame.event.set_grab(False)


def fit_mapper(window_size, device_width, device_height) -> CoordinateMapper:
    avail_w = max(1, window_size[0] - LIST_WIDTH - 2 * MARGIN)
    avail_h = max(1, window_size[1] - 2 * MARGIN - ROW_HEIGHT)
    return CoordinateMapper.fitted(avail_w, avail_h, MARGIN, MARGIN, device_width, device_height)


class PreviewWindow:
    def __init__(self, editor, on_save=None):
        self.editor = editor
        self.on_save = on_save
        self.screen = None
        self.font = None
        self.hover = ""
        self.running = False

    def _marker_at(self, pos):
        half = MARKER_SIZE // 2
        for view in reversed(self.editor.markers()):
            if abs(pos[0] - view.px) <= half and abs(pos[1] - view.py) <= half:
                return view.id
        return None

    def _row_at(self, pos):
        list_x = self.screen.get_width() - LIST_WIDTH
        if pos[0] < list_x:
            return None
        row = (pos[1] - MARGIN - ROW_HEIGHT) // ROW_HEIGHT
        if 0 <= row < len(self.editor.bindings):
            return row
        return None

    def _move_selection(self, step):
        count = len(self.editor.bindings)
        if not count:
            return
        current = self.editor.selected_row
        row = 0 if current is None else (current + step) % count
        self.editor.select_row(row)

    def _handle_key(self, event):
        ed = self.editor
        if ed.key_pressed(event.key):
            return
        ctrl = event.mod & pygame.KMOD_CTRL
        if event.key == pygame.K_s and ctrl:
            ed.flush()
            if self.on_save:
                self.on_save()
        elif event.key == pygame.K_n and ctrl:
            ed.new_profile(f"profile {len(ed.store.profiles) + 1}")
        elif event.key == pygame.K_TAB:
            ed.select_profile((ed.get_selected_profile_index() + 1) % len(ed.store.profiles))
        elif event.key == pygame.K_UP:
            self._move_selection(-1)
        elif event.key == pygame.K_DOWN:
            self._move_selection(1)
        elif event.key == pygame.K_RETURN and ed.selected_row is not None:
            ed.edit_binding(ed.selected_row)
        elif event.key == pygame.K_ESCAPE:
            self.running = False

    def _handle_mouse_down(self, event):
        ed = self.editor
        if ed.capturing:
            return
        marker_id = self._marker_at(event.pos)
        if event.button == 1:
            if marker_id is not None:
                ed.press_marker(marker_id, *event.pos)
                return
            row = self._row_at(event.pos)
            if row is not None:
                ed.select_row(row)
                return
            ed.press_canvas(*event.pos)
        elif event.button == 3 and marker_id is not None:
            ed.edit_binding(ed.row_for_marker(marker_id))

    def handle(self, event):
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN:
            self._handle_key(event)
        elif event.type == pygame.MOUSEBUTTONDOWN:
            self._handle_mouse_down(event)
        elif event.type == pygame.MOUSEBUTTONUP:
            self.editor.release_pointer()
        elif event.type == pygame.MOUSEMOTION:
            self.editor.drag_to(*event.pos)
            self.hover = self.editor.hover_text(*event.pos)
        elif event.type == pygame.VIDEORESIZE:
            self.editor.resize(fit_mapper(event.size, self.editor.width, self.editor.height))

    def pump(self):
        """Handle pending window events and advance the capture by one frame."""
        for event in pygame.event.get(UI_EVENTS):
            self.handle(event)
        if not self.editor.capturing:
            pygame.event.clear(JOYSTICK_EVENTS)
        self.editor.tick()

    def draw(self):
        ed = self.editor
        screen = self.screen
        screen.fill(BACKGROUND)
        m = ed.mapper
        pygame.draw.rect(screen, SURFACE, (m.margin_left, m.margin_top, m.canvas_width, m.canvas_height))
        for view in ed.markers():
            colour = HIGHLIGHT if view.highlighted else MARKER
            x0, y0 = view.px - MARKER_SIZE // 2, view.py - MARKER_SIZE // 2
            pygame.draw.line(screen, colour, (x0, y0), (x0 + MARKER_SIZE, y0 + MARKER_SIZE), 3)
            pygame.draw.line(screen, colour, (x0, y0 + MARKER_SIZE), (x0 + MARKER_SIZE, y0), 3)

        list_x = screen.get_width() - LIST_WIDTH
        title = f"{ed.store.selected.name}  ({ed.get_selected_profile_index() + 1}/{len(ed.store.profiles)})"
        screen.blit(self.font.render(title, True, TEXT), (list_x, MARGIN))
        for row, view in enumerate(ed.rows()):
            y = MARGIN + ROW_HEIGHT * (row + 1)
            if view.selected:
                pygame.draw.rect(screen, SELECTED_ROW, (list_x - 4, y, LIST_WIDTH - MARGIN, ROW_HEIGHT))
            line = f"{view.text:<16} {view.x:>4} {view.y:>4}"
            screen.blit(self.font.render(line, True, TEXT), (list_x, y + 3))

        status = "press a key or button (Esc cancels)" if ed.capturing else self.hover
        if status:
            screen.blit(self.font.render(status, True, TEXT),
                        (m.margin_left, m.margin_top + m.canvas_height + 4))
        pygame.display.flip()

    def run(self):
        pygame.init()
        self.screen = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
        pygame.display.set_caption("touchbridge")
        pygame.event.set_blocked(None)
        pygame.event.set_allowed(list(UI_EVENTS + JOYSTICK_EVENTS))
        self.font = pygame.font.SysFont("monospace", 15)
        self.editor.resize(fit_mapper(WINDOW_SIZE, self.editor.width, self.editor.height))
        clock = pygame.time.Clock()
        self.running = True
        LOG.info("editor window open")
        try:
            while self.running:
                self.pump()
                self.draw()
                clock.tick(FPS)
        finally:
            self.editor.commit()
            pygame.quit()
        return self.editor.get_all_profiles()
