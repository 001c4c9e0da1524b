"""Configuration loading for assetpack (.assetpack.yml and CLI overrides)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".assetpack.yml"

UNITY_DEFAULT_IGNORES: tuple[str, ...] = ("/*", "/*/", "!/Assets/", "*.meta", "*.pdb")

COLLISION_POLICIES = ("last", "error")

UNITYPACKAGE_SUFFIX = ".unitypackage"
CHECKSUM_SUFFIX = ".md5"

# The gzip header stores mtime as an unsigned 32-bit field.
MAX_MTIME = 0xFFFFFFFF
# Zip headers store the year as an offset from 1980 in seven bits.
LATEST_ZIP_YEAR = 2107


class ConfigError(RuntimeError):
    """Raised when command-line or file configuration is invalid."""


@dataclass
class ProjectConfig:
    """Settings read from .assetpack.yml in the source root."""

    root: Path
    ignore: List[str] = field(default_factory=list)
    preview: Optional[str] = None
    mtime: Optional[int] = None
    on_guid_collision: Optional[str] = None
    jobs: Optional[int] = None


@dataclass
class PackageConfig:
    """Effective settings for one .unitypackage build."""

    source: Path
    out_dir: Path
    name: str
    ignore: List[str] = field(default_factory=lambda: list(UNITY_DEFAULT_IGNORES))
    preview_name: str = "preview.png"
    mtime: Optional[int] = None
    on_collision: str = "last"
    jobs: int = 1
    keep_scratch: bool = False

    @property
    def archive_path(self) -> Path:
        return self.out_dir / f"{self.name}{UNITYPACKAGE_SUFFIX}"

    @property
    def checksum_path(self) -> Path:
        return self.out_dir / f"{self.name}{UNITYPACKAGE_SUFFIX}{CHECKSUM_SUFFIX}"


@dataclass
class ZipConfig:
    """Effective settings for one directory zip build."""

    source: Path
    out_dir: Path
    name: str
    prefix: str
    ignore: List[str] = field(default_factory=list)
    date: Optional[datetime] = None

    @property
    def archive_path(self) -> Path:
        return self.out_dir / f"{self.name}.zip"

    @property
    def checksum_path(self) -> Path:
        return self.out_dir / f"{self.name}.zip{CHECKSUM_SUFFIX}"


def load_config(source: Path) -> ProjectConfig:
    """Load .assetpack.yml from the source root, returning defaults when absent."""
    root = source.expanduser().resolve()
    config_file = root / CONFIG_FILENAME
    if not config_file.is_file():
        return ProjectConfig(root=root)

    text = config_file.read_text(encoding="utf-8")
    if not text.strip():
        return ProjectConfig(root=root)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {CONFIG_FILENAME}: {exc}") from exc
    if data is None:
        return ProjectConfig(root=root)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return ProjectConfig(
        root=root,
        ignore=_as_str_list(data.get("ignore")),
        preview=_as_str(data.get("preview")),
        mtime=_as_int(data.get("mtime")),
        on_guid_collision=_as_str(data.get("on_guid_collision")),
        jobs=_as_int(data.get("jobs")),
    )


def build_unity_config(
    path: str,
    file: str,
    out: str,
    *,
    ignore: Sequence[str] | None = None,
    mtime: int | None = None,
    on_collision: str | None = None,
    jobs: int | None = None,
    keep_scratch: bool = False,
) -> PackageConfig:
    """Combine .assetpack.yml values with CLI overrides into a PackageConfig."""
    source = _require_directory(path)
    name = _require_name(file, "--file")
    project = load_config(source)

    rules = list(UNITY_DEFAULT_IGNORES)
    rules.extend(project.ignore)
    rules.extend(ignore or ())

    policy = on_collision or project.on_guid_collision or "last"
    if policy not in COLLISION_POLICIES:
        raise ConfigError(
            f"Unknown guid collision policy '{policy}' (expected one of: {', '.join(COLLISION_POLICIES)})"
        )

    if jobs is not None:
        effective_jobs = jobs
    else:
        effective_jobs = project.jobs if project.jobs is not None else 1
    if effective_jobs < 1:
        raise ConfigError("--jobs must be at least 1")

    effective_mtime = mtime if mtime is not None else project.mtime
    if effective_mtime is not None and not 0 <= effective_mtime <= MAX_MTIME:
        raise ConfigError(f"--mtime must be an epoch timestamp between 0 and {MAX_MTIME}")

    preview = project.preview or "preview.png"
    if "/" in preview or "\\" in preview:
        raise ConfigError("preview must be a file name in the source root")

    return PackageConfig(
        source=source,
        out_dir=Path(out).expanduser().resolve(),
        name=name,
        ignore=rules,
        preview_name=preview,
        mtime=effective_mtime,
        on_collision=policy,
        jobs=effective_jobs,
        keep_scratch=keep_scratch,
    )


def build_zip_config(
    path: str,
    out: str,
    *,
    name: str | None = None,
    prefix: str | None = None,
    date: str | None = None,
    ignore: Sequence[str] | None = None,
) -> ZipConfig:
    """Combine .assetpack.yml values with CLI overrides into a ZipConfig."""
    source = _require_directory(path)
    project = load_config(source)

    stem = _require_name(name, "--name") if name is not None else source.name
    root_folder = _require_name(prefix, "--prefix") if prefix is not None else source.name

    rules = list(project.ignore)
    rules.extend(ignore or ())

    return ZipConfig(
        source=source,
        out_dir=Path(out).expanduser().resolve(),
        name=stem,
        prefix=root_folder,
        ignore=rules,
        date=parse_date(date) if date is not None else None,
    )


def parse_date(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ConfigError(f"Invalid date '{value}': expected ISO-8601") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        utc_year = parsed.astimezone(timezone.utc).year
    except OverflowError as exc:
        raise ConfigError(f"Invalid date '{value}': out of range") from exc
    if utc_year > LATEST_ZIP_YEAR:
        raise ConfigError(f"Invalid date '{value}': zip archives cannot record years after {LATEST_ZIP_YEAR}")
    return parsed


def _require_directory(path: str | None) -> Path:
    if not path:
        raise ConfigError("--path is required")
    source = Path(path).expanduser().resolve()
    if not source.exists():
        raise ConfigError(f"Source path not found: {path}")
    if not source.is_dir():
        raise ConfigError(f"Source path is not a directory: {path}")
    return source


def _require_name(value: str | None, flag: str) -> str:
    if value is None or not value.strip():
        raise ConfigError(f"{flag} is required")
    cleaned = value.strip()
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
        raise ConfigError(f"{flag} must be a plain file name, got '{value}'")
    return cleaned


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        raise ConfigError(f"Expected an integer, got {value!r}")
    if value is None or isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigError(f"Expected an integer, got {value!r}") from exc
    raise ConfigError(f"Expected an integer, got {value!r}")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        patterns: List[str] = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, (str, int, float)):
                raise ConfigError(f"Expected a pattern string in ignore list, got {item!r}")
            patterns.append(str(item))
        return patterns
    raise ConfigError(f"Expected a list of patterns, got {value!r}")
