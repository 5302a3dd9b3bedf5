from __future__ import annotations

import io
import threading
import zipfile

from rename_zip.archive import Archive


def test_concurrent_adds_all_land() -> None:
    archive = Archive()
    barrier = threading.Barrier(8)

    def worker(n: int) -> None:
        barrier.wait()
        for i in range(25):
            idx = n * 25 + i
            archive.add(f"item-{idx:03d}.bin", bytes([idx % 256]), order=idx)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(archive) == 200
    assert archive.filenames() == [f"item-{i:03d}.bin" for i in range(200)]


def test_same_filename_last_write_wins() -> None:
    archive = Archive()
    archive.add("a.jpg", b"first")
    archive.add("a.jpg", b"second")
    assert len(archive) == 1
    assert archive.get("a.jpg") == b"second"
    assert "a.jpg" in archive
    assert archive.get("missing.jpg") is None


def test_build_writes_zip_in_order() -> None:
    archive = Archive()
    archive.add("t-02.png", b"two", order=1)
    archive.add("t-01.png", b"one", order=0)
    built = archive.build("t.zip")

    assert built.name == "t.zip"
    assert built.entries == ("t-01.png", "t-02.png")
    with zipfile.ZipFile(io.BytesIO(built.content)) as zf:
        assert zf.namelist() == ["t-01.png", "t-02.png"]
        assert zf.read("t-02.png") == b"two"
