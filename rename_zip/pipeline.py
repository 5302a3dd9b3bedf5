"""Batch rename/crop/zip pipeline.

All per-file transforms are submitted at once to a thread pool (libvips
releases the GIL while it decodes and encodes). A failed transform never fails
the batch: the item falls back to its original bytes under its new name. Only
archive assembly or delivery can fail the batch, as a single PackagingError.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from rename_zip.archive import Archive, BuiltArchive
from rename_zip.errors import PackagingError, PreconditionError, TransformError
from rename_zip.logger import get_logger
from rename_zip.models import BatchItem, CropArea, SourceFile
from rename_zip.naming import archive_filename, generate_new_filename
from rename_zip.transform import DEFAULT_QUALITY, transform_image

_logger = get_logger("pipeline")

Deliver = Callable[[bytes, str], object]
ProgressCallback = Callable[[int, int, str], None]


def _default_workers(count: int) -> int:
    return max(1, min(count, os.cpu_count() or 1))


def build_archive(
    files: Sequence[SourceFile],
    title: str,
    crop: CropArea | None,
    *,
    quality: int = DEFAULT_QUALITY,
    max_workers: int | None = None,
    progress: ProgressCallback | None = None,
) -> BuiltArchive:
    """Rename (and optionally crop) every file and pack the results into a zip.

    Args:
        files: input files in output order (read once, as a snapshot)
        title: album title used for entry names and the archive name
        crop: one crop in natural pixels applied to every file, or None
        progress: called as ``progress(done, total, filename)`` after each item

    Raises:
        PreconditionError: ``files`` is empty
        PackagingError: the zip could not be assembled
    """
    items = [BatchItem(source, i) for i, source in enumerate(files)]
    if not items:
        raise PreconditionError("no files to export")

    total = len(items)
    archive = Archive()
    names = {item.index: generate_new_filename(title, item.index, item.source.name) for item in items}
    workers = max_workers if max_workers and max_workers > 0 else _default_workers(total)

    _logger.info("exporting %d file(s) as %r (crop=%s)", total, title, crop.as_tuple() if crop else None)

    fallbacks = 0
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rename_zip") as executor:
        future_to_item: dict[Future[bytes], BatchItem] = {
            executor.submit(transform_image, item.source, crop, quality): item for item in items
        }
        for done, future in enumerate(as_completed(future_to_item), start=1):
            item = future_to_item[future]
            name = names[item.index]
            try:
                data = future.result()
            except TransformError as e:
                _logger.warning("Failed to crop image %s, keeping original: %s", item.source.name, e)
                data = item.source.data
                fallbacks += 1
            except Exception as e:
                # One item never fails the batch, whatever went wrong in it
                _logger.warning(
                    "Unexpected error cropping %s, keeping original: %s", item.source.name, e, exc_info=True
                )
                data = item.source.data
                fallbacks += 1
            archive.add(name, data, order=item.index)
            if progress is not None:
                progress(done, total, name)

    if fallbacks:
        _logger.info("%d of %d file(s) exported uncropped", fallbacks, total)

    return archive.build(archive_filename(title))


def export_batch(
    files: Sequence[SourceFile],
    title: str,
    crop: CropArea | None,
    deliver: Deliver,
    *,
    set_busy: Callable[[bool], None] | None = None,
    quality: int = DEFAULT_QUALITY,
    max_workers: int | None = None,
    progress: ProgressCallback | None = None,
) -> BuiltArchive:
    """Build the archive and hand it to ``deliver(content, suggested_name)``.

    ``set_busy(True)`` is called first and ``set_busy(False)`` on every exit
    path. Anything that goes wrong after the items resolve is re-raised as one
    PackagingError; nothing partial is delivered.
    """
    if set_busy is not None:
        set_busy(True)
    try:
        try:
            built = build_archive(
                files, title, crop, quality=quality, max_workers=max_workers, progress=progress
            )
        except (PackagingError, PreconditionError):
            raise
        except Exception as e:
            _logger.error("Failed to zip files: %s", e, exc_info=True)
            raise PackagingError(f"could not build archive: {e}") from e

        try:
            deliver(built.content, built.name)
        except Exception as e:
            _logger.error("Failed to deliver %s: %s", built.name, e, exc_info=True)
            raise PackagingError(f"could not save {built.name}: {e}") from e

        _logger.info("archive delivered: %s (%d entries, %d bytes)", built.name, len(built.entries), len(built.content))
        return built
    finally:
        if set_busy is not None:
            set_busy(False)
