from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from rename_zip.delivery import save_to_directory
from rename_zip.errors import PackagingError, PreconditionError
from rename_zip.logger import get_logger
from rename_zip.models import CropArea, SourceFile
from rename_zip.pipeline import export_batch
from rename_zip.settings_manager import SettingsManager

EXIT_OK = 0
EXIT_PACKAGING = 1
EXIT_USAGE = 2


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    """Map --log-level/--log-cats to env vars and return the remaining args."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv)
    if args.log_level:
        os.environ["RENAME_ZIP_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["RENAME_ZIP_LOG_CATS"] = args.log_cats
    return remaining


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rename-zip",
        description="Batch rename images into a numbered sequence, optionally crop them, and zip the result.",
    )
    parser.add_argument("files", nargs="*", help="Images in output order. Without files the GUI starts.")
    parser.add_argument("-t", "--title", default="", help="Tour / album title used for the file names")
    parser.add_argument("--crop", type=CropArea.parse, help="Crop every image to x,y,width,height (source pixels)")
    parser.add_argument("-o", "--out", default=".", help="Directory the archive is written to")
    parser.add_argument("--quality", type=int, help="Re-encode quality for cropped JPEG/WebP (default 95)")
    parser.add_argument("--settings", help="Settings file (default: user config dir)")
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    return parser


def run_headless(args: argparse.Namespace, settings: SettingsManager) -> int:
    logger = get_logger("main")
    if not args.title.strip():
        logger.error("a title is required (--title)")
        return EXIT_USAGE

    sources: list[SourceFile] = []
    for p in args.files:
        try:
            sources.append(SourceFile.from_path(p))
        except OSError as e:
            logger.error("cannot read %s: %s", p, e)
            return EXIT_USAGE

    quality = args.quality if args.quality is not None else settings.quality
    try:
        built = export_batch(
            sources,
            args.title,
            args.crop,
            save_to_directory(Path(args.out)),
            quality=quality,
            max_workers=settings.max_workers,
        )
    except PreconditionError as e:
        logger.error("%s", e)
        return EXIT_USAGE
    except PackagingError as e:
        logger.error("export failed: %s", e)
        return EXIT_PACKAGING

    print(built.name)
    return EXIT_OK


def run_gui(argv: list[str], settings: SettingsManager) -> int:
    from PySide6.QtWidgets import QApplication

    from rename_zip.ui_main import MainWindow

    app = QApplication.instance() or QApplication(argv)
    window = MainWindow(settings)
    window.show()
    return app.exec()


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint: headless export with files, GUI without."""
    if argv is None:
        argv = sys.argv
    remaining = _apply_cli_logging_options(argv[1:])

    try:
        args = build_parser().parse_args(remaining)
    except SystemExit as e:
        return int(e.code or 0)

    settings = SettingsManager(args.settings)
    if args.files:
        return run_headless(args, settings)
    return run_gui([argv[0]], settings)


if __name__ == "__main__":
    sys.exit(run())
