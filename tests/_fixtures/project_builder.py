"""Helper utilities for constructing temporary Unity projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def meta_text(guid: str, *, folder: bool = False) -> str:
    """Return sidecar text shaped like the files Unity writes."""
    lines = ["fileFormatVersion: 2", f"guid: {guid}"]
    if folder:
        lines.append("folderAsset: yes")
    lines.extend(
        [
            "DefaultImporter:",
            "  externalObjects: {}",
            "  userData: ",
            "  assetBundleName: ",
            "  assetBundleVariant: ",
        ]
    )
    return "\n".join(lines) + "\n"


class ProjectBuilder:
    """Utility for writing assets and sidecars into a throwaway Unity project."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, str | bytes]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def asset(self, relative: str, content: str | bytes, guid: str | None) -> Path:
        """Write an asset file and, when ``guid`` is given, its sidecar."""
        self.write({relative: content})
        if guid is not None:
            self.write({f"{relative}.meta": meta_text(guid)})
        return self.root / relative

    def folder(self, relative: str, guid: str | None) -> Path:
        """Create a directory and, when ``guid`` is given, its sidecar."""
        path = self.root / relative
        path.mkdir(parents=True, exist_ok=True)
        if guid is not None:
            self.write({f"{relative}.meta": meta_text(guid, folder=True)})
        return path

    def preview(self, content: bytes = PNG_BYTES) -> Path:
        """Write the package-level preview.png at the project root."""
        self.write({"preview.png": content})
        return self.root / "preview.png"

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["PNG_BYTES", "ProjectBuilder", "meta_text"]
