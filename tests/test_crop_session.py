from __future__ import annotations

import pytest

from rename_zip.crop.crop_controller import DisplayRect
from rename_zip.crop.session import CropSession, CropState
from rename_zip.models import CropArea


class RecordingGrab:
    def __init__(self) -> None:
        self.events: list[str] = []

    @property
    def attached(self) -> bool:
        return self.events.count("attach") > self.events.count("detach")

    def attach(self) -> None:
        self.events.append("attach")

    def detach(self) -> None:
        self.events.append("detach")


@pytest.fixture
def grab() -> RecordingGrab:
    return RecordingGrab()


@pytest.fixture
def session(grab: RecordingGrab) -> CropSession:
    s = CropSession(grab)
    # 4000x3000 photo shown at 400x300
    s.open((4000, 3000), (400, 300))
    return s


def test_open_seeds_centered_rect(session: CropSession) -> None:
    assert session.state is CropState.ACTIVE
    assert session.rect == DisplayRect(40.0, 30.0, 320.0, 240.0)


def test_open_requires_measured_image() -> None:
    with pytest.raises(ValueError):
        CropSession().open((0, 0), (400, 300))
    with pytest.raises(ValueError):
        CropSession().open((400, 300), (0, 300))


def test_drag_is_computed_from_snapshot_not_previous_frame(session: CropSession) -> None:
    session.press("move", 100, 100)
    for x in range(101, 160):
        session.drag_to(x, 100)
    session.drag_to(110, 105)
    assert session.rect == DisplayRect(50.0, 35.0, 320.0, 240.0)


def test_grab_is_attached_only_while_dragging(session: CropSession, grab: RecordingGrab) -> None:
    assert grab.events == []
    assert session.press("se", 360, 270)
    assert session.state is CropState.DRAGGING
    assert grab.attached
    session.drag_to(370, 280)
    session.release()
    assert session.state is CropState.ACTIVE
    assert grab.events == ["attach", "detach"]
    assert session.control is None


def test_abort_drag_releases_grab_and_keeps_rect(session: CropSession, grab: RecordingGrab) -> None:
    session.press("e", 360, 150)
    moved = session.drag_to(370, 150)
    session.abort_drag()
    assert not grab.attached
    assert session.state is CropState.ACTIVE
    assert session.rect == moved


def test_cancel_while_dragging_releases_grab(session: CropSession, grab: RecordingGrab) -> None:
    session.press("move", 200, 150)
    session.cancel()
    assert not grab.attached
    assert session.state is CropState.IDLE
    assert session.rect is None


def test_commit_while_dragging_releases_grab(session: CropSession, grab: RecordingGrab) -> None:
    session.press("move", 200, 150)
    area = session.commit()
    assert not grab.attached
    assert area == CropArea(400, 300, 3200, 2400)
    assert session.state is CropState.IDLE


def test_error_during_move_releases_grab(grab: RecordingGrab) -> None:
    session = CropSession(grab)
    session.open((100, 100), (100, 100))
    session.press("move", 10, 10)
    with pytest.raises(ValueError):
        session.drag_to("not-a-number", 10)  # type: ignore[arg-type]
    assert not grab.attached
    assert session.state is CropState.ACTIVE


def test_press_ignored_unless_active(grab: RecordingGrab) -> None:
    session = CropSession(grab)
    assert session.press("move", 0, 0) is False
    session.open((100, 100), (100, 100))
    assert session.press("move", 50, 50) is True
    # re-entrant press while dragging is ignored
    assert session.press("n", 50, 10) is False
    assert session.control == "move"
    assert grab.events == ["attach"]


def test_move_ignored_when_not_dragging(session: CropSession) -> None:
    before = session.rect
    assert session.drag_to(0, 0) == before


def test_unknown_control_rejected(session: CropSession, grab: RecordingGrab) -> None:
    with pytest.raises(ValueError):
        session.press("middle", 0, 0)
    assert grab.events == []


def test_commit_scales_to_natural(session: CropSession) -> None:
    session.press("nw", 40, 30)
    session.drag_to(0, 0)
    session.release()
    session.press("se", 360, 270)
    session.drag_to(400, 300)
    session.release()
    assert session.commit() == CropArea(0, 0, 4000, 3000)


def test_commit_never_exceeds_natural_bounds() -> None:
    session = CropSession()
    session.open((3, 3), (2, 2))
    session.press("nw", 0.2, 0.2)
    session.drag_to(-10, -10)
    session.release()
    area = session.commit()
    assert area.right <= 3 and area.bottom <= 3


def test_commit_without_session_fails() -> None:
    with pytest.raises(RuntimeError):
        CropSession().commit()


def test_cancel_produces_nothing_and_allows_reopen(session: CropSession) -> None:
    session.cancel()
    assert session.rect is None
    session.open((1000, 1000), (500, 500))
    assert session.rect == DisplayRect(50.0, 50.0, 400.0, 400.0)


def test_resize_display_keeps_rect_proportional(session: CropSession) -> None:
    session.resize_display((200, 150))
    assert session.rect == DisplayRect(20.0, 15.0, 160.0, 120.0)
    assert session.natural_preview() == CropArea(400, 300, 3200, 2400)


def test_custom_min_size_and_fraction() -> None:
    session = CropSession(min_size=50, initial_fraction=0.5)
    session.open((200, 200), (200, 200))
    assert session.rect == DisplayRect(50.0, 50.0, 100.0, 100.0)
    session.press("e", 150, 100)
    out = session.drag_to(0, 100)
    assert out is not None and out.w == 50.0
