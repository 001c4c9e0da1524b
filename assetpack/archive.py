"""Deterministic archive assembly and checksum companions."""

from __future__ import annotations

import gzip
import hashlib
import os
import tarfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Set, Tuple

from .logging import get_logger
from .models import ArchiveManifest

CHECKSUM_SUFFIX = ".md5"

# Earliest timestamp representable in a zip entry.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_CHUNK_SIZE = 1024 * 1024

logger = get_logger("archive")


def build_manifest(root: Path) -> ArchiveManifest:
    """Return every path under ``root``, intermediate directories included, sorted."""
    root_path = Path(root)
    entries: Set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root_path):
        current = Path(dirpath)
        for name in [*dirnames, *filenames]:
            rel_path = (current / name).relative_to(root_path).as_posix()
            entries.add(rel_path)
            parent = rel_path.rpartition("/")[0]
            while parent:
                entries.add(parent)
                parent = parent.rpartition("/")[0]
    return ArchiveManifest(root=root_path, entries=tuple(sorted(entries)))


@contextmanager
def _removing_partial(destination: Path) -> Iterator[None]:
    try:
        yield
    except BaseException:
        if destination.exists():
            logger.debug("Removing partial archive %s", destination)
            destination.unlink()
        raise


def write_tar(
    manifest: ArchiveManifest,
    destination: Path,
    *,
    mtime: int | None = None,
    compresslevel: int = 9,
) -> Path:
    """Write a gzip-compressed tar containing exactly the manifest entries, in order.

    Directories are added without recursion. When ``mtime`` is given, entry
    timestamps, ownership and the gzip header are normalized so identical
    inputs produce identical bytes.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    def _normalize(info: tarfile.TarInfo) -> tarfile.TarInfo:
        # Whole-second timestamps keep sub-second pax records out of the archive.
        info.mtime = int(info.mtime) if mtime is None else mtime
        if mtime is not None:
            info.uid = info.gid = 0
            info.uname = info.gname = ""
        return info

    with _removing_partial(destination):
        with destination.open("wb") as raw:
            with gzip.GzipFile(
                filename="",
                mode="wb",
                fileobj=raw,
                compresslevel=compresslevel,
                mtime=mtime,
            ) as compressed:
                with tarfile.open(fileobj=compressed, mode="w", format=tarfile.PAX_FORMAT) as tar:
                    for rel_path in manifest.entries:
                        tar.add(
                            str(manifest.root / rel_path),
                            arcname=rel_path,
                            recursive=False,
                            filter=_normalize,
                        )

    logger.debug("Wrote %d tar entries to %s", len(manifest), destination)
    return destination


def write_zip(
    manifest: ArchiveManifest,
    destination: Path,
    *,
    date_time: Tuple[int, int, int, int, int, int] = ZIP_EPOCH,
    prefix: str | None = None,
) -> Path:
    """Write a deflated zip of the manifest entries, every entry stamped ``date_time``.

    With ``prefix`` all entries live under a single root folder whose own
    directory entry is written first.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    with _removing_partial(destination):
        with zipfile.ZipFile(destination, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            if prefix:
                archive.writestr(_zip_dir_info(f"{prefix}/", date_time), b"")
            for rel_path in manifest.entries:
                source = manifest.root / rel_path
                arcname = f"{prefix}/{rel_path}" if prefix else rel_path
                if source.is_dir():
                    archive.writestr(_zip_dir_info(f"{arcname}/", date_time), b"")
                    continue
                info = zipfile.ZipInfo(filename=arcname, date_time=date_time)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                archive.writestr(info, source.read_bytes())

    logger.debug("Wrote %d zip entries to %s", len(manifest), destination)
    return destination


def _zip_dir_info(name: str, date_time: Tuple[int, int, int, int, int, int]) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=name, date_time=date_time)
    info.external_attr = (0o40755 << 16) | 0x10
    return info


def hash_file(path: Path) -> str:
    """Return the lowercase hex MD5 of a file, read in chunks."""
    digest = hashlib.md5()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def checksum_path(archive: Path) -> Path:
    archive = Path(archive)
    return archive.with_name(archive.name + CHECKSUM_SUFFIX)


def write_checksum(archive: Path) -> Tuple[Path, str]:
    """Hash the finished archive and write the digest to `<archive>.md5`."""
    digest = hash_file(archive)
    target = checksum_path(archive)
    target.write_text(digest, encoding="ascii")
    return target, digest


def verify_checksum(archive: Path) -> bool:
    """Return True when `<archive>.md5` matches the archive's current bytes."""
    target = checksum_path(archive)
    if not target.is_file():
        return False
    return target.read_text(encoding="ascii").strip() == hash_file(archive)
