"""CLI entrypoints for assetpack commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import COLLISION_POLICIES, ConfigError, build_unity_config, build_zip_config
from .logging import configure_logging
from .metadata import MalformedMetadataError
from .packager import DirectoryPackager, UnityPackager
from .rewriter import GuidCollisionError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_ignore_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra gitignore-style pattern; later patterns win. May be repeated.",
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{value}'") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetpack",
        description="Package Unity asset trees and directories into checksummed archives.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    unity_parser = subparsers.add_parser(
        "unitypackage",
        help="Create a .unitypackage and its .md5 from a Unity project.",
    )
    _add_verbose_option(unity_parser, suppress_default=True)
    unity_parser.add_argument(
        "--path",
        required=True,
        help="Path to the source assets to be packaged.",
    )
    unity_parser.add_argument(
        "--file",
        required=True,
        help="Filename of the unitypackage, without extension.",
    )
    unity_parser.add_argument(
        "--out",
        required=True,
        help="Where to save the unitypackage and md5 files.",
    )
    unity_parser.add_argument(
        "--mtime",
        type=_non_negative_int,
        default=None,
        help="Fixed entry timestamp (epoch seconds) for reproducible output.",
    )
    unity_parser.add_argument(
        "--on-guid-collision",
        choices=COLLISION_POLICIES,
        default=None,
        help="What to do when two assets share a guid (default: last).",
    )
    unity_parser.add_argument(
        "--jobs",
        type=_non_negative_int,
        default=None,
        help="Number of parallel copy workers.",
    )
    unity_parser.add_argument(
        "--keep-scratch",
        action="store_true",
        help="Leave the scratch directory in place for inspection.",
    )
    _add_ignore_option(unity_parser)

    zip_parser = subparsers.add_parser(
        "zip",
        help="Zip a directory under a root folder and write its .md5.",
    )
    _add_verbose_option(zip_parser, suppress_default=True)
    zip_parser.add_argument(
        "--path",
        required=True,
        help="Path to the directory to be zipped.",
    )
    zip_parser.add_argument(
        "--out",
        required=True,
        help="Where to save the zip and md5 files.",
    )
    zip_parser.add_argument(
        "--name",
        default=None,
        help="Archive file stem (defaults to the directory name).",
    )
    zip_parser.add_argument(
        "--prefix",
        default=None,
        help="Root folder inside the archive (defaults to the directory name).",
    )
    zip_parser.add_argument(
        "--date",
        default=None,
        help="ISO-8601 entry timestamp; defaults to the directory's last git commit date.",
    )
    _add_ignore_option(zip_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for assetpack commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        if args.command == "unitypackage":
            config = build_unity_config(
                args.path,
                args.file,
                args.out,
                ignore=args.ignore,
                mtime=args.mtime,
                on_collision=args.on_guid_collision,
                jobs=args.jobs,
                keep_scratch=bool(args.keep_scratch),
            )
            result = UnityPackager(config).run()
        elif args.command == "zip":
            config = build_zip_config(
                args.path,
                args.out,
                name=args.name,
                prefix=args.prefix,
                date=args.date,
                ignore=args.ignore,
            )
            result = DirectoryPackager(config).run()
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ConfigError as exc:
        parser.print_usage(sys.stderr)
        parser.exit(1, f"assetpack {args.command}: {exc}\n")
    except (MalformedMetadataError, GuidCollisionError) as exc:
        parser.exit(1, f"assetpack {args.command} failed: {exc}\n")
    except OSError as exc:
        parser.exit(
            1,
            f"assetpack {args.command} failed: {exc}\nRun with --verbose for more details.\n",
        )
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(
            1,
            f"assetpack {args.command} failed: {exc}\nRun with --verbose for more details.\n",
        )

    print(f"{_relativize(result.archive)} and {_relativize(result.checksum_file)} created")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
