from __future__ import annotations

import json
from pathlib import Path

from rename_zip.settings_manager import SettingsManager


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    assert sm.quality == 95
    assert sm.min_crop_size == 20.0
    assert sm.initial_crop_fraction == 0.8
    assert sm.max_workers is None
    assert sm.last_output_dir is None


def test_set_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    sm = SettingsManager(str(path))
    sm.set("jpeg_quality", 80)
    sm.set("max_workers", 3)

    again = SettingsManager(str(path))
    assert again.quality == 80
    assert again.max_workers == 3
    assert json.loads(path.read_text(encoding="utf-8"))["jpeg_quality"] == 80


def test_out_of_range_values_fall_back(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    sm.set("jpeg_quality", 150)
    assert sm.quality == 100
    sm.set("jpeg_quality", "high")
    assert sm.quality == 95
    sm.set("initial_crop_fraction", 1.5)
    assert sm.initial_crop_fraction == 0.8
    sm.set("min_crop_size", 0)
    assert sm.min_crop_size == 1.0


def test_last_dirs_must_exist(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    sm.set("last_output_dir", str(tmp_path / "gone"))
    assert sm.last_output_dir is None
    sm.set("last_input_dir", str(tmp_path))
    assert sm.last_input_dir == str(tmp_path)


def test_corrupt_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    sm = SettingsManager(str(path))
    assert sm.data == {}
    assert sm.quality == 95
