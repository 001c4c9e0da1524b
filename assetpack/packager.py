"""Packaging pipelines: Unity packages and plain directory zips."""

from __future__ import annotations

import shutil
import tempfile
from datetime import timezone
from pathlib import Path
from typing import List, Tuple

from .archive import ZIP_EPOCH, build_manifest, write_checksum, write_tar, write_zip
from .config import CONFIG_FILENAME, PackageConfig, ZipConfig
from .gitinfo import GitInfo
from .logging import get_logger
from .metadata import MetadataResolver
from .models import ArchiveManifest, PackageResult, Stage
from .rewriter import LayoutRewriter, ResolvedPair, plan_units
from .scanner import TreeScanner

SCRATCH_PREFIX = "unitypackaging-"


class UnityPackager:
    """Builds a .unitypackage from a Unity project tree."""

    def __init__(
        self,
        config: PackageConfig,
        *,
        scanner: TreeScanner | None = None,
        resolver: MetadataResolver | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or TreeScanner.from_patterns(config.ignore)
        self.resolver = resolver or MetadataResolver()
        self.logger = get_logger("packager")
        self.stage = Stage.PENDING

    def run(self) -> PackageResult:
        """Scan, resolve, rewrite, archive and hash; the scratch tree is always released."""
        config = self.config
        self.logger.info("Packaging %s", config.source)

        scratch = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX))
        try:
            return self._run_in(scratch)
        finally:
            if config.keep_scratch:
                self.logger.info("Keeping scratch directory %s", scratch)
            else:
                shutil.rmtree(scratch, ignore_errors=True)

    def _run_in(self, scratch: Path) -> PackageResult:
        config = self.config

        pairs = self._resolve_all()
        planned = plan_units(pairs, config.on_collision)

        rewriter = LayoutRewriter(scratch, config.source, config.preview_name)
        units = rewriter.rewrite_all(planned, jobs=config.jobs)
        self._advance(Stage.REWRITTEN)
        self.logger.debug("Wrote %d units to %s", len(units), scratch)

        self._advance(Stage.ARCHIVING)
        manifest = build_manifest(scratch)
        self.logger.info("Tar-ing %d entries into %s", len(manifest), config.archive_path)
        archive = write_tar(manifest, config.archive_path, mtime=config.mtime)

        self._advance(Stage.HASHING)
        checksum_file, digest = write_checksum(archive)

        self._advance(Stage.DONE)
        self.logger.info("%s and %s created", archive, checksum_file)
        return PackageResult(
            archive=archive,
            checksum_file=checksum_file,
            digest=digest,
            manifest=manifest,
            units=units,
        )

    def _resolve_all(self) -> List[ResolvedPair]:
        self._advance(Stage.SCANNING)
        pairs: List[ResolvedPair] = []
        skipped = 0
        for entry in self.scanner.walk(self.config.source):
            if self.stage is not Stage.RESOLVING:
                self._advance(Stage.RESOLVING)
            metadata = self.resolver.resolve(entry)
            if metadata is None:
                skipped += 1
                continue
            pairs.append((entry, metadata))
        self.logger.debug("Resolved %d assets, skipped %d without metadata", len(pairs), skipped)
        return pairs

    def _advance(self, stage: Stage) -> None:
        self.logger.debug("Stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage


class DirectoryPackager:
    """Zips a directory under a single root folder with a fixed timestamp."""

    def __init__(
        self,
        config: ZipConfig,
        *,
        scanner: TreeScanner | None = None,
        git: GitInfo | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or TreeScanner.from_patterns(config.ignore)
        self.git = git or GitInfo()
        self.logger = get_logger("packager")

    def run(self) -> PackageResult:
        """Write `<name>.zip` and `<name>.zip.md5` into the output directory."""
        config = self.config
        date_time = self._resolve_date_time()
        self.logger.info("Zipping %s as %s/", config.source, config.prefix)

        # Ignored directories are pruned, so every kept entry arrives with its parents.
        entries = sorted(
            entry.relative
            for entry in self.scanner.walk(config.source)
            if entry.relative != CONFIG_FILENAME
        )
        manifest = ArchiveManifest(root=config.source, entries=tuple(entries))

        archive = write_zip(
            manifest,
            config.archive_path,
            date_time=date_time,
            prefix=config.prefix,
        )
        checksum_file, digest = write_checksum(archive)
        self.logger.info("%s and %s created", archive, checksum_file)
        return PackageResult(
            archive=archive,
            checksum_file=checksum_file,
            digest=digest,
            manifest=manifest,
        )

    def _resolve_date_time(self) -> Tuple[int, int, int, int, int, int]:
        stamp = self.config.date
        if stamp is None:
            stamp = self.git.last_commit_date(self.config.source)
        stamp = stamp.astimezone(timezone.utc)
        date_time = (stamp.year, stamp.month, stamp.day, stamp.hour, stamp.minute, stamp.second)
        return max(date_time, ZIP_EPOCH)
