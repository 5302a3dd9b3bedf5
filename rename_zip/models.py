"""Plain data types shared by the crop tool and the export pipeline.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CropArea:
    """Crop rectangle in natural (source pixel) coordinates."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError(f"crop origin must be non-negative: {self}")
        if self.width < 1 or self.height < 1:
            raise ValueError(f"crop size must be at least 1x1: {self}")

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height

    def fits(self, width: int, height: int) -> bool:
        return self.right <= width and self.bottom <= height

    def clipped_to(self, width: int, height: int) -> CropArea | None:
        """Intersection with a ``width`` x ``height`` image, or None if empty."""
        right = min(self.right, width)
        bottom = min(self.bottom, height)
        if right <= self.x or bottom <= self.y:
            return None
        return CropArea(self.x, self.y, right - self.x, bottom - self.y)

    @classmethod
    def parse(cls, text: str) -> CropArea:
        """Parse ``"x,y,width,height"`` (as given on the command line)."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:  # noqa: PLR2004
            raise ValueError(f"expected x,y,width,height but got {text!r}")
        x, y, w, h = (int(p) for p in parts)
        return cls(x, y, w, h)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One input image: raw bytes plus the name and media type it came with."""

    data: bytes
    name: str
    media_type: str = ""

    def __post_init__(self) -> None:
        if not self.media_type:
            guessed, _ = mimetypes.guess_type(self.name)
            object.__setattr__(self, "media_type", guessed or "application/octet-stream")

    @classmethod
    def from_path(cls, path: str | Path) -> SourceFile:
        p = Path(path)
        return cls(p.read_bytes(), p.name)

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")


@dataclass(frozen=True, slots=True)
class BatchItem:
    source: SourceFile
    index: int


class FileList:
    """Ordered, mutable list of input files.

    The export pipeline only ever sees a ``snapshot()``; reordering after that
    point has no effect on a running batch.
    """

    def __init__(self, files: Iterable[SourceFile] = ()):
        self._files: list[SourceFile] = list(files)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self._files)

    def __getitem__(self, index: int) -> SourceFile:
        return self._files[index]

    def append(self, source: SourceFile) -> None:
        self._files.append(source)

    def extend(self, sources: Iterable[SourceFile]) -> None:
        self._files.extend(sources)

    def remove_at(self, index: int) -> SourceFile:
        return self._files.pop(index)

    def move(self, from_index: int, to_index: int) -> None:
        if from_index == to_index:
            return
        item = self._files.pop(from_index)
        self._files.insert(to_index, item)

    def clear(self) -> None:
        self._files.clear()

    def snapshot(self) -> tuple[SourceFile, ...]:
        return tuple(self._files)
