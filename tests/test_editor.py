import pygame

from touchbridge.capture import CaptureSession
from touchbridge.core.descriptor import EventDescriptor, keyboard_descriptor
from touchbridge.core.geometry import CoordinateMapper
from touchbridge.core.state import Binding, Profile
from touchbridge.editor import PRESS_KEY_TEXT, TouchEditor
from touchbridge.profiles import ProfileStore


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_editor(store=None, sources=()):
    clock = Clock()
    session = CaptureSession(lambda: list(sources), clock=clock)
    editor = TouchEditor(store or ProfileStore(), session, CoordinateMapper(640, 480))
    return editor, clock


def bound_store():
    return ProfileStore([Profile("default", [
        Binding(keyboard_descriptor(pygame.K_a), 10, 10),
        Binding(keyboard_descriptor(pygame.K_b), 100, 50),
        Binding(keyboard_descriptor(pygame.K_c), 200, 150),
    ])])


def assert_bijection(editor):
    rows = editor.rows()
    marker_ids = {m.id for m in editor.markers()}
    assert len(marker_ids) == len(editor.bindings)
    assert {r.marker_id for r in rows} == marker_ids
    for row, view in enumerate(rows):
        assert editor.row_for_marker(view.marker_id) == row


def test_scenario_keyboard_binding_on_new_profile():
    editor, clock = make_editor()
    editor.new_profile("Custom")
    assert editor.store.selected.name == "Custom"

    marker_id = editor.add_binding_at(10, 10)
    assert editor.capturing
    assert editor.rows()[0].text == PRESS_KEY_TEXT
    editor.key_pressed(pygame.K_x)

    assert not editor.capturing
    bindings = editor.store.get_bindings(editor.get_selected_profile_index())
    assert len(bindings) == 1
    assert bindings[0].descriptor.engine == "keyboard"
    assert (bindings[0].x, bindings[0].y) == (10, 10)
    assert editor.marker_position(marker_id) == (10, 10)
    assert editor.rows()[0].text == "X"


def test_scenario_timeout_discards_new_binding():
    editor, clock = make_editor(bound_store())
    before = len(editor.bindings)
    editor.select_row(1)
    editor.add_binding_at(5, 5)
    assert len(editor.bindings) == before + 1
    assert len(editor.markers()) == before + 1

    clock.now += 5.0
    editor.tick()

    assert not editor.capturing
    assert len(editor.bindings) == before
    assert editor.selected_row == 1
    assert_bijection(editor)


def test_scenario_delete_profiles():
    store = ProfileStore([Profile("a"), Profile("b")], selected_index=1)
    editor, clock = make_editor(store)
    assert editor.delete_profile() is True
    assert len(store.profiles) == 1
    assert editor.get_selected_profile_index() == 0
    assert editor.delete_profile() is False
    assert len(store.profiles) == 1


def test_add_binding_clamps_point():
    editor, clock = make_editor()
    editor.add_binding_at(-20, 500)
    editor.key_pressed(pygame.K_q)
    b = editor.bindings[0]
    assert (b.x, b.y) == (0, 239)


def test_edit_binding_replaces_or_keeps_descriptor():
    editor, clock = make_editor(bound_store())
    original = editor.bindings[1].descriptor

    assert editor.edit_binding(1)
    assert editor.rows()[1].text == PRESS_KEY_TEXT
    editor.key_pressed(pygame.K_ESCAPE)
    assert editor.bindings[1].descriptor == original
    assert editor.rows()[1].text == "B"
    assert len(editor.bindings) == 3

    editor.edit_binding(1)
    editor.key_pressed(pygame.K_z)
    assert editor.bindings[1].descriptor == keyboard_descriptor(pygame.K_z)
    assert_bijection(editor)


def test_gamepad_source_resolves_capture():
    class PadSource:
        def start(self):
            pass

        def stop(self):
            pass

        def get_next_input(self):
            return EventDescriptor.parse("engine:sdl,port:0,guid:g,button:2")

    editor, clock = make_editor(sources=[PadSource()])
    editor.add_binding_at(30, 40)
    clock.now = 0.25
    editor.tick()
    assert editor.rows()[0].text == "Button 2"


def test_delete_binding_removes_marker_and_shifts_rows():
    editor, clock = make_editor(bound_store())
    last_marker = editor.rows()[2].marker_id
    assert editor.delete_binding(0)
    assert len(editor.bindings) == 2
    assert editor.row_for_marker(last_marker) == 1
    assert_bijection(editor)
    assert not editor.delete_binding(7)


def test_delete_key_removes_selected_binding():
    editor, clock = make_editor(bound_store())
    editor.select_row(1)
    assert editor.key_pressed(pygame.K_DELETE)
    assert [b.descriptor.get("code", 0) for b in editor.bindings] == [pygame.K_a, pygame.K_c]
    assert editor.selected_row is None


def test_no_orphans_after_mixed_operations():
    editor, clock = make_editor(bound_store())
    editor.add_binding_at(1, 1)
    editor.key_pressed(pygame.K_1)
    editor.add_binding_at(2, 2)
    editor.key_pressed(pygame.K_ESCAPE)
    editor.delete_binding(1)
    editor.add_binding_at(3, 3)
    clock.now += 10
    editor.tick()
    editor.delete_binding(0)
    assert len(editor.bindings) == 2
    assert_bijection(editor)


def test_marker_ids_are_never_reused():
    editor, clock = make_editor()
    first = editor.add_binding_at(1, 1)
    editor.key_pressed(pygame.K_ESCAPE)
    second = editor.add_binding_at(1, 1)
    editor.key_pressed(pygame.K_a)
    assert second > first


def test_move_marker_updates_binding():
    editor, clock = make_editor(bound_store())
    marker_id = editor.rows()[0].marker_id
    assert editor.move_marker(marker_id, 400, -3)
    assert (editor.bindings[0].x, editor.bindings[0].y) == (319, 0)
    assert editor.marker_position(marker_id) == (319, 0)
    assert not editor.move_marker(999, 1, 1)


def test_edit_coordinate_field_clamps_and_moves_marker():
    editor, clock = make_editor(bound_store())
    marker_id = editor.rows()[0].marker_id
    editor.edit_coordinate_field(0, "x", -5)
    assert editor.bindings[0].x == 0
    editor.edit_coordinate_field(0, "x", 320 + 100)
    assert editor.bindings[0].x == 319
    editor.edit_coordinate_field(0, "y", "77")
    assert editor.bindings[0].y == 77
    editor.edit_coordinate_field(0, "y", "abc")
    assert editor.bindings[0].y == 0
    assert editor.marker_position(marker_id) == (319, 0)
    view = next(m for m in editor.markers() if m.id == marker_id)
    assert (view.px, view.py) == editor.mapper.device_to_pixel(319, 0)


def test_selection_and_highlight_follow_each_other():
    editor, clock = make_editor(bound_store())
    marker_2 = editor.rows()[2].marker_id
    editor.select_row(0)
    assert editor.highlighted_marker == editor.rows()[0].marker_id

    editor.highlight_marker(marker_2)
    assert editor.selected_row == 2
    highlighted = [m.id for m in editor.markers() if m.highlighted]
    assert highlighted == [marker_2]
    assert [r.selected for r in editor.rows()] == [False, False, True]

    editor.clear_selection()
    assert editor.highlighted_marker is None
    assert not any(m.highlighted for m in editor.markers())


def test_pointer_press_and_drag():
    editor, clock = make_editor(bound_store())
    marker_id = editor.rows()[0].marker_id
    px, py = editor.mapper.device_to_pixel(10, 10)

    assert editor.press_marker(marker_id, px, py)
    assert editor.selected_row == 0
    # below drag threshold: nothing moves
    assert not editor.drag_to(px + 1, py + 1)
    assert editor.marker_position(marker_id) == (10, 10)

    tx, ty = editor.mapper.device_to_pixel(50, 60)
    assert editor.drag_to(tx, ty)
    assert (editor.bindings[0].x, editor.bindings[0].y) == (50, 60)

    # dragging past the canvas edge pins to the border
    assert editor.drag_to(-500, 5000)
    assert (editor.bindings[0].x, editor.bindings[0].y) == (0, 239)

    editor.release_pointer()
    assert not editor.drag_to(tx, ty)


def test_press_canvas_adds_binding_only_on_surface():
    editor, clock = make_editor()
    assert editor.press_canvas(-10, 5) is None
    assert editor.bindings == []
    marker_id = editor.press_canvas(*editor.mapper.device_to_pixel(120, 80))
    assert marker_id is not None
    assert editor.capturing
    editor.key_pressed(pygame.K_a)
    assert (editor.bindings[0].x, editor.bindings[0].y) == (120, 80)


def test_editor_is_locked_while_capturing():
    editor, clock = make_editor(bound_store())
    editor.add_binding_at(1, 1)
    assert editor.add_binding_at(2, 2) is None
    assert not editor.delete_binding(0)
    assert not editor.edit_binding(0)
    assert not editor.press_marker(editor.rows()[0].marker_id, 0, 0)
    assert editor.new_profile("x") is None
    assert not editor.select_profile(0)
    assert not editor.select_row(0)
    editor.key_pressed(pygame.K_ESCAPE)
    assert len(editor.bindings) == 3


def test_hover_text():
    editor, clock = make_editor()
    assert editor.hover_text(*editor.mapper.device_to_pixel(12, 34)) == "X: 12, Y: 34"
    assert editor.hover_text(-1, -1) == ""


def test_switching_profiles_rebuilds_markers():
    store = ProfileStore([
        Profile("one", [Binding(keyboard_descriptor(pygame.K_a), 1, 1)]),
        Profile("two", [Binding(keyboard_descriptor(pygame.K_b), 2, 2),
                        Binding(keyboard_descriptor(pygame.K_c), 3, 3)]),
    ])
    editor, clock = make_editor(store)
    old_ids = {m.id for m in editor.markers()}
    editor.select_row(0)
    assert editor.select_profile(1)
    assert len(editor.markers()) == 2
    assert not old_ids & {m.id for m in editor.markers()}
    assert editor.selected_row is None
    assert_bijection(editor)
    assert not editor.select_profile(5)


def test_rename_and_new_profile_refuse_empty_names():
    editor, clock = make_editor()
    assert editor.new_profile("") is None
    assert not editor.rename_profile("")
    assert editor.rename_profile("renamed")
    assert editor.store.selected.name == "renamed"


def test_commit_cancels_capture_and_returns_profiles():
    editor, clock = make_editor(bound_store())
    editor.add_binding_at(9, 9)
    editor.bindings.append(Binding(EventDescriptor(), 4, 4))
    profiles = editor.commit()
    assert not editor.capturing
    assert len(profiles[0].bindings) == 3
    assert all(b.descriptor.is_bound for b in profiles[0].bindings)
    assert profiles is editor.get_all_profiles()


def test_cancelled_new_binding_restores_previous_selection():
    editor, clock = make_editor(bound_store())
    editor.select_row(2)
    editor.add_binding_at(5, 5)
    assert editor.selected_row == 3
    editor.key_pressed(pygame.K_ESCAPE)
    assert editor.selected_row == 2
    assert editor.highlighted_marker == editor.rows()[2].marker_id

    editor.clear_selection()
    editor.add_binding_at(6, 6)
    editor.key_pressed(pygame.K_ESCAPE)
    assert editor.selected_row is None
