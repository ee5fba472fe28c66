from unittest.mock import Mock
import pytest

from wallplanner.canvas.interaction import (
    Gesture, Handle, InteractionController, PointerEvent, ResizeData, resize_geometry,
)
from wallplanner.canvas.scene import GEOMETRY, MARQUEE


def make_controller(state):
    commit = Mock()
    return InteractionController(state, on_commit=commit), commit

# Drag tests
def test_drag_single_item(state):
    ctl, commit = make_controller(state)
    item = state.store.create_block("b", 200, 100, 100, 50)
    ctl.press_item(item.id, PointerEvent(110, 60))
    assert ctl.gesture is Gesture.DRAGGING
    assert state.selection.selected == [item.id]
    ctl.move(PointerEvent(160, 60))
    assert (item.x, item.y) == (150, 50)
    ctl.release()
    assert ctl.is_idle
    commit.assert_called_once()

def test_drag_respects_scroll_offset(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 100, 50)
    ctl.press_item(item.id, PointerEvent(10, 10, scroll_x=100, scroll_y=50))
    ctl.move(PointerEvent(20, 10, scroll_x=100, scroll_y=50))
    assert (item.x, item.y) == (110, 50)

def test_drag_clamps_at_origin(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 100, 50)
    ctl.press_item(item.id, PointerEvent(110, 60))
    ctl.move(PointerEvent(-500, -500))
    assert (item.x, item.y) == (0, 0)

def test_drag_converts_to_real_units(state):
    state.transform.set_zoom(0.5)
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 100, 50)  # visual (50, 25)
    ctl.press_item(item.id, PointerEvent(60, 30))
    ctl.move(PointerEvent(90, 30))
    assert item.x == 160
    assert item.y == 50

def test_group_drag_moves_every_member(state):
    state.transform.set_zoom(0.5)
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 100, 100, 100, 0)
    b = state.store.create_block("b", 100, 100, 300, 50)
    state.selection.select(a.id)
    state.selection.select(b.id, additive=True)
    ctl.press_item(a.id, PointerEvent(51, 1))
    ctl.move(PointerEvent(81, 1))
    delta = state.transform.to_real(30)
    assert a.x == 100 + delta
    assert b.x == 300 + delta
    assert b.x - a.x == 200
    assert (a.y, b.y) == (0, 50)
    assert state.selection.selected == [a.id, b.id]

def test_group_drag_clamps_members_independently(state):
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 50, 50, 100, 0)
    b = state.store.create_block("b", 50, 50, 10, 0)
    state.selection.select(a.id)
    state.selection.select(b.id, additive=True)
    ctl.press_item(a.id, PointerEvent(105, 5))
    ctl.move(PointerEvent(65, 5))
    assert a.x == 60
    assert b.x == 0

def test_press_unselected_item_replaces_selection(state):
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 50, 50, 0, 0)
    b = state.store.create_block("b", 50, 50, 100, 0)
    state.selection.select(a.id)
    ctl.press_item(b.id, PointerEvent(110, 10))
    assert state.selection.selected == [b.id]

def test_shift_press_extends_selection(state):
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 50, 50, 0, 0)
    b = state.store.create_block("b", 50, 50, 100, 0)
    state.selection.select(a.id)
    ctl.press_item(b.id, PointerEvent(110, 10, shift=True))
    assert state.selection.selected == [a.id, b.id]
    assert state.selection.primary == b.id

def test_press_unknown_item_raises(state):
    ctl, _ = make_controller(state)
    with pytest.raises(KeyError):
        ctl.press_item("image-42", PointerEvent(0, 0))

def test_non_primary_button_is_ignored(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 50, 50, 0, 0)
    ctl.press_item(item.id, PointerEvent(10, 10, button=3))
    assert ctl.is_idle

def test_press_during_gesture_is_ignored(state):
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 50, 50, 0, 0)
    b = state.store.create_block("b", 50, 50, 100, 0)
    ctl.press_item(a.id, PointerEvent(10, 10))
    ctl.press_item(b.id, PointerEvent(110, 10))
    assert state.selection.selected == [a.id]

# Resize tests
def test_resize_bottom_right_keeps_aspect(state):
    ctl, commit = make_controller(state)
    item = state.store.create_block("b", 200, 100, 0, 0)
    ctl.press_handle(item.id, "bottom-right", PointerEvent(200, 100))
    assert ctl.gesture is Gesture.RESIZING
    ctl.move(PointerEvent(250, 300))
    assert (item.width, item.height, item.x, item.y) == (250, 125, 0, 0)
    ctl.release()
    commit.assert_called_once()

def test_resize_top_left_anchors_bottom_right(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 100, 100)
    ctl.press_handle(item.id, Handle.TOP_LEFT, PointerEvent(100, 100))
    ctl.move(PointerEvent(50, 100))
    assert (item.width, item.height, item.x, item.y) == (250, 125, 50, 75)
    assert item.right == 300
    assert item.bottom == 200

def test_resize_below_minimum_is_rejected(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 0, 0)
    ctl.press_handle(item.id, "bottom-right", PointerEvent(200, 100))
    ctl.move(PointerEvent(80, 100))
    assert (item.width, item.height) == (200, 100)
    # Gesture continues; exactly the minimum is allowed
    ctl.move(PointerEvent(100, 100))
    assert (item.width, item.height) == (100, 50)

def test_resize_unknown_handle_raises(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 0, 0)
    with pytest.raises(ValueError):
        ctl.press_handle(item.id, "middle", PointerEvent(0, 0))

def test_resize_geometry_top_right():
    rd = ResizeData(
        item_id="b", handle=Handle.TOP_RIGHT, start_x=0, start_y=0,
        start_width=200, start_height=100, start_pos_x=10, start_pos_y=10, aspect_ratio=2.0,
    )
    assert resize_geometry(rd, 100) == (300, 150, 10, -40)

def test_resize_geometry_bottom_left():
    rd = ResizeData(
        item_id="b", handle=Handle.BOTTOM_LEFT, start_x=0, start_y=0,
        start_width=200, start_height=100, start_pos_x=10, start_pos_y=10, aspect_ratio=2.0,
    )
    assert resize_geometry(rd, 20) == (180, 90, 30, 10)

# Marquee tests
def test_marquee_selects_on_release_without_commit(state):
    ctl, commit = make_controller(state)
    hit = state.store.create_block("a", 20, 20, 10, 10)
    state.store.create_block("b", 20, 20, 200, 200)
    ctl.press_background(PointerEvent(0, 0))
    assert ctl.gesture is Gesture.MARQUEE
    ctl.move(PointerEvent(100, 100))
    assert tuple(ctl.marquee.rect()) == (0, 0, 100, 100)
    ctl.release()
    assert state.selection.selected == [hit.id]
    assert ctl.marquee is None
    commit.assert_not_called()

def test_background_press_clears_selection(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("a", 20, 20, 10, 10)
    state.selection.select(item.id)
    ctl.press_background(PointerEvent(500, 500))
    assert not state.selection

def test_shift_background_press_keeps_selection(state):
    ctl, _ = make_controller(state)
    a = state.store.create_block("a", 20, 20, 500, 500)
    b = state.store.create_block("b", 20, 20, 10, 10)
    state.selection.select(a.id)
    ctl.press_background(PointerEvent(0, 0, shift=True))
    ctl.move(PointerEvent(100, 100))
    ctl.release()
    assert state.selection.selected == [a.id, b.id]

def test_notifications_during_gestures(state):
    ctl, _ = make_controller(state)
    seen = []
    state.subscribe(lambda change: seen.append(change.kind))
    item = state.store.create_block("a", 20, 20, 10, 10)
    ctl.press_item(item.id, PointerEvent(15, 15))
    ctl.move(PointerEvent(25, 15))
    ctl.release()
    assert GEOMETRY in seen
    seen.clear()
    ctl.press_background(PointerEvent(300, 300))
    ctl.move(PointerEvent(310, 310))
    assert seen.count(MARQUEE) == 2

def test_release_when_idle_is_noop(state):
    ctl, commit = make_controller(state)
    ctl.release()
    assert ctl.is_idle
    commit.assert_not_called()

def test_resize_past_origin_is_rejected(state):
    ctl, _ = make_controller(state)
    item = state.store.create_block("b", 200, 100, 10, 10)
    ctl.press_handle(item.id, "top-right", PointerEvent(210, 10))
    ctl.move(PointerEvent(310, 10))
    assert (item.width, item.height, item.x, item.y) == (200, 100, 10, 10)
    ctl.move(PointerEvent(220, 10))
    assert (item.width, item.height, item.x, item.y) == (210, 105, 10, 5)
