"""Git queries used to stamp archives with stable timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from .config import ConfigError, parse_date


class GitInfo:
    """Reads commit information for a directory via the git CLI."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def last_commit_date(self, path: Path) -> datetime:
        """Return the committer date of the last commit touching ``path``."""
        directory = Path(path)
        try:
            output = self._run(
                ["git", "log", "-n1", "--format=%cI", "."],
                cwd=directory,
                capture_output=True,
            )
        except (OSError, RuntimeError) as exc:
            raise ConfigError(
                f"Could not read the last commit date of {directory} ({exc}); pass --date explicitly"
            ) from exc

        stamp = output.strip()
        if not stamp:
            raise ConfigError(f"{directory} has no git history; pass --date explicitly")
        return parse_date(stamp).astimezone(timezone.utc)

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        import subprocess

        try:
            completed = subprocess.run(
                list(args),
                cwd=str(cwd),
                check=True,
                text=True,
                capture_output=capture_output,
            )
        except subprocess.CalledProcessError as exc:
            raise RuntimeError((exc.stderr or "").strip() or str(exc)) from exc
        return completed.stdout if capture_output else ""
