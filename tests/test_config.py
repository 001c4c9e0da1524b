"""Tests for assetpack.config."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from assetpack.config import (
    MAX_MTIME,
    UNITY_DEFAULT_IGNORES,
    ConfigError,
    ProjectConfig,
    build_unity_config,
    build_zip_config,
    load_config,
    parse_date,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ProjectConfig)
    assert config.root == tmp_path.resolve()
    assert config.ignore == []
    assert config.preview is None
    assert config.mtime is None
    assert config.on_guid_collision is None
    assert config.jobs is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".assetpack.yml").write_text(
        """
ignore:
  - "Assets/Scratch/"
  - "*.tmp"
preview: Thumb.png
mtime: 1700000000
on_guid_collision: error
jobs: 3
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.ignore == ["Assets/Scratch/", "*.tmp"]
    assert config.preview == "Thumb.png"
    assert config.mtime == 1_700_000_000
    assert config.on_guid_collision == "error"
    assert config.jobs == 3


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".assetpack.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".assetpack.yml").write_text("ignore: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_build_unity_config_merges_file_and_cli(tmp_path: Path) -> None:
    source = tmp_path / "project"
    source.mkdir()
    (source / ".assetpack.yml").write_text("ignore: ['*.bak']\njobs: 2\nmtime: 10\n", encoding="utf-8")

    config = build_unity_config(
        str(source),
        "MyPackage",
        str(tmp_path / "out"),
        ignore=["Assets/Temp/"],
        mtime=20,
    )

    assert config.source == source.resolve()
    assert config.ignore == [*UNITY_DEFAULT_IGNORES, "*.bak", "Assets/Temp/"]
    assert config.jobs == 2
    assert config.mtime == 20
    assert config.on_collision == "last"
    assert config.archive_path == (tmp_path / "out").resolve() / "MyPackage.unitypackage"
    assert config.checksum_path.name == "MyPackage.unitypackage.md5"


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"on_collision": "first"}, "collision policy"),
        ({"jobs": 0}, "--jobs"),
        ({"mtime": -1}, "--mtime"),
    ],
)
def test_build_unity_config_rejects_invalid_values(tmp_path: Path, kwargs, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        build_unity_config(str(tmp_path), "Pkg", str(tmp_path / "out"), **kwargs)


def test_build_unity_config_requires_existing_source(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        build_unity_config(str(tmp_path / "missing"), "Pkg", str(tmp_path))


def test_build_unity_config_rejects_path_like_file_name(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="--file"):
        build_unity_config(str(tmp_path), "../Pkg", str(tmp_path))


def test_build_zip_config_defaults_to_directory_name(tmp_path: Path) -> None:
    source = tmp_path / "octorun"
    source.mkdir()

    config = build_zip_config(str(source), str(tmp_path / "out"))

    assert config.name == "octorun"
    assert config.prefix == "octorun"
    assert config.date is None
    assert config.archive_path.name == "octorun.zip"
    assert config.checksum_path.name == "octorun.zip.md5"


def test_parse_date_accepts_git_iso_format() -> None:
    parsed = parse_date("2019-03-04T05:06:07Z")

    assert parsed == datetime(2019, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert parse_date("2019-03-04T05:06:07").tzinfo is timezone.utc


def test_parse_date_rejects_garbage() -> None:
    with pytest.raises(ConfigError, match="Invalid date"):
        parse_date("yesterday")


def test_build_unity_config_rejects_zero_jobs_from_file(tmp_path: Path) -> None:
    (tmp_path / ".assetpack.yml").write_text("jobs: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="--jobs"):
        build_unity_config(str(tmp_path), "Pkg", str(tmp_path / "out"))


def test_build_unity_config_bounds_mtime_to_gzip_header(tmp_path: Path) -> None:
    config = build_unity_config(str(tmp_path), "Pkg", str(tmp_path / "out"), mtime=MAX_MTIME)
    assert config.mtime == MAX_MTIME

    with pytest.raises(ConfigError, match="--mtime"):
        build_unity_config(str(tmp_path), "Pkg", str(tmp_path / "out"), mtime=MAX_MTIME + 1)


@pytest.mark.parametrize("entry", ["{dir: Assets}", "[nested]", "true"])
def test_load_config_rejects_non_scalar_ignore_entries(tmp_path: Path, entry: str) -> None:
    (tmp_path / ".assetpack.yml").write_text(f"ignore:\n  - '*.tmp'\n  - {entry}\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="ignore list"):
        load_config(tmp_path)


def test_parse_date_rejects_years_zip_cannot_store() -> None:
    assert parse_date("2107-12-31T23:59:59Z").year == 2107

    with pytest.raises(ConfigError, match="2107"):
        parse_date("2108-01-01T00:00:00Z")
    with pytest.raises(ConfigError, match="2107"):
        parse_date("2107-12-31T23:00:00-05:00")
    with pytest.raises(ConfigError, match="out of range"):
        parse_date("9999-12-31T23:59:59-05:00")
