from __future__ import annotations

import pytest

from rename_zip.models import CropArea, FileList, SourceFile


def test_crop_area_invariants() -> None:
    with pytest.raises(ValueError):
        CropArea(-1, 0, 10, 10)
    with pytest.raises(ValueError):
        CropArea(0, 0, 0, 10)
    area = CropArea(5, 6, 10, 20)
    assert (area.right, area.bottom) == (15, 26)
    assert area.fits(15, 26)
    assert not area.fits(14, 26)


def test_crop_area_clipping() -> None:
    area = CropArea(10, 10, 50, 50)
    assert area.clipped_to(100, 100) == area
    assert area.clipped_to(30, 40) == CropArea(10, 10, 20, 30)
    assert area.clipped_to(10, 100) is None


def test_crop_area_parse() -> None:
    assert CropArea.parse("1, 2,30,40") == CropArea(1, 2, 30, 40)
    with pytest.raises(ValueError):
        CropArea.parse("1,2,3")


def test_source_media_type_guessed_from_name() -> None:
    assert SourceFile(b"", "a.jpg").media_type == "image/jpeg"
    assert SourceFile(b"", "a.png").is_image
    assert not SourceFile(b"", "notes.txt").is_image
    assert SourceFile(b"", "blob").media_type == "application/octet-stream"


def test_source_from_path(tmp_path) -> None:
    p = tmp_path / "pic.png"
    p.write_bytes(b"abc")
    src = SourceFile.from_path(p)
    assert (src.data, src.name, src.media_type) == (b"abc", "pic.png", "image/png")


def test_file_list_operations() -> None:
    a, b, c = (SourceFile(b"", n) for n in ("a.png", "b.png", "c.png"))
    files = FileList([a, b])
    files.append(c)
    files.move(2, 0)
    assert [f.name for f in files] == ["c.png", "a.png", "b.png"]
    snap = files.snapshot()
    assert files.remove_at(1) is a
    assert len(files) == 2
    # snapshots are unaffected by later edits
    assert [f.name for f in snap] == ["c.png", "a.png", "b.png"]
    files.clear()
    assert len(files) == 0
