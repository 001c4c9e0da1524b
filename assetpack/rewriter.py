"""Rewrites resolved assets into the GUID-keyed scratch layout."""

from __future__ import annotations

import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

from .logging import get_logger
from .models import AssetMetadata, RepackagedUnit, TreeEntry

ASSET_NAME = "asset"
ASSET_META_NAME = "asset.meta"
PATHNAME_NAME = "pathname"
PREVIEW_NAME = "preview.png"

ResolvedPair = Tuple[TreeEntry, AssetMetadata]

logger = get_logger("rewriter")


class GuidCollisionError(ValueError):
    """Raised when two assets resolve to the same guid under the `error` policy."""

    def __init__(self, guid: str, first: str, second: str) -> None:
        super().__init__(f"guid {guid} is shared by '{first}' and '{second}'")
        self.guid = guid
        self.first = first
        self.second = second


def plan_units(pairs: Iterable[ResolvedPair], on_collision: str = "last") -> List[ResolvedPair]:
    """Return one pair per guid, applying the collision policy.

    With ``last`` the later entry in traversal order replaces the earlier one,
    keeping the earlier entry's position. With ``error`` the first repeat raises.
    """
    planned: Dict[str, ResolvedPair] = {}
    for entry, metadata in pairs:
        previous = planned.get(metadata.guid)
        if previous is not None:
            if on_collision == "error":
                raise GuidCollisionError(metadata.guid, previous[0].relative, entry.relative)
            logger.warning(
                "guid %s of %s overwrites %s",
                metadata.guid,
                entry.relative,
                previous[0].relative,
            )
        planned[metadata.guid] = (entry, metadata)
    return list(planned.values())


class LayoutRewriter:
    """Materializes `scratch/<guid>/` directories for resolved assets."""

    def __init__(self, scratch: Path, scan_root: Path, preview_name: str = PREVIEW_NAME) -> None:
        self.scratch = Path(scratch)
        self.scan_root = Path(scan_root)
        self.preview_source = self.scan_root / preview_name

    def write(self, entry: TreeEntry, metadata: AssetMetadata) -> RepackagedUnit:
        """Write a single unit and describe what was produced."""
        target_dir = self.scratch / metadata.guid
        target_dir.mkdir(parents=True, exist_ok=True)

        shutil.copyfile(metadata.path, target_dir / ASSET_META_NAME)
        pathname = entry.relative.replace("\\", "/")
        (target_dir / PATHNAME_NAME).write_text(pathname, encoding="utf-8")

        if entry.is_dir:
            return RepackagedUnit(
                guid=metadata.guid,
                target_dir=target_dir,
                pathname=pathname,
                has_asset=False,
            )

        shutil.copyfile(entry.path, target_dir / ASSET_NAME)
        # The package-level thumbnail from the scan root, not a per-asset one.
        has_preview = entry.path.suffix == ".png"
        if has_preview:
            shutil.copyfile(self.preview_source, target_dir / PREVIEW_NAME)

        return RepackagedUnit(
            guid=metadata.guid,
            target_dir=target_dir,
            pathname=pathname,
            has_asset=True,
            has_preview=has_preview,
        )

    def rewrite_all(self, pairs: Sequence[ResolvedPair], *, jobs: int = 1) -> List[RepackagedUnit]:
        """Write every pair and return only once all writes have finished."""
        if jobs <= 1 or len(pairs) <= 1:
            return [self.write(entry, metadata) for entry, metadata in pairs]

        with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="assetpack-rewrite") as pool:
            futures = [pool.submit(self.write, entry, metadata) for entry, metadata in pairs]
            return [future.result() for future in futures]
