"""Core data models shared across assetpack components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Tuple


class Stage(str, Enum):
    """Lifecycle of a single packaging run."""

    PENDING = "pending"
    SCANNING = "scanning"
    RESOLVING = "resolving"
    REWRITTEN = "rewritten"
    ARCHIVING = "archiving"
    HASHING = "hashing"
    DONE = "done"


@dataclass(frozen=True)
class TreeEntry:
    """A file or directory discovered under the scan root."""

    path: Path
    is_dir: bool
    relative: str

    @property
    def meta_path(self) -> Path:
        return self.path.with_name(self.path.name + ".meta")


@dataclass(frozen=True)
class AssetMetadata:
    """Parsed contents of an asset's `.meta` sidecar."""

    guid: str
    raw: str
    path: Path


@dataclass(frozen=True)
class RepackagedUnit:
    """One `<guid>/` directory written into the scratch tree."""

    guid: str
    target_dir: Path
    pathname: str
    has_asset: bool
    has_preview: bool = False


@dataclass(frozen=True)
class ArchiveManifest:
    """Sorted relative paths that make up an archive."""

    root: Path
    entries: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass
class PackageResult:
    """Outcome of a completed packaging run."""

    archive: Path
    checksum_file: Path
    digest: str
    manifest: ArchiveManifest
    units: List[RepackagedUnit] = field(default_factory=list)
