"""Sidecar `.meta` lookup and GUID extraction."""

from __future__ import annotations

from pathlib import Path

import yaml

from .logging import get_logger
from .models import AssetMetadata, TreeEntry

META_SUFFIX = ".meta"

logger = get_logger("metadata")


class MalformedMetadataError(ValueError):
    """Raised when a `.meta` file exists but does not yield a usable guid."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def parse_guid(text: str, path: Path) -> str:
    """Extract the guid field from sidecar text.

    The base loader keeps every scalar a string, so guids such as
    ``00000000000000001000000000000000`` are never coerced to numbers.
    """
    try:
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(path, f"invalid YAML ({exc})") from exc

    if not isinstance(document, dict):
        raise MalformedMetadataError(path, "expected a mapping with a guid field")

    guid = document.get("guid")
    if not isinstance(guid, str) or not guid.strip():
        raise MalformedMetadataError(path, "missing guid field")

    guid = guid.strip()
    if guid in {".", ".."} or "/" in guid or "\\" in guid:
        raise MalformedMetadataError(path, f"guid '{guid}' is not usable as a directory name")
    return guid


class MetadataResolver:
    """Pairs tree entries with their sidecar metadata."""

    def resolve(self, entry: TreeEntry) -> AssetMetadata | None:
        """Return the entry's metadata, or None when it has no sidecar."""
        meta_path = entry.meta_path
        if not meta_path.is_file():
            logger.debug("No %s sidecar for %s; skipping", META_SUFFIX, entry.relative)
            return None

        try:
            raw = meta_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedMetadataError(meta_path, "not UTF-8 text") from exc
        guid = parse_guid(raw, meta_path)
        return AssetMetadata(guid=guid, raw=raw, path=meta_path)
