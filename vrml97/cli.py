"""
Check VRML97 files or dump them as YAML.

Usage:
    vrml97 check <file.wrl> [file2.wrl ...]
    vrml97 dump <file.wrl>
    vrml97 --strict-def --max-depth 50 check world.wrl
    vrml97 --config options.yaml check world.wrl
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from .convert import node_summary, scene_to_dict
from .errors import VrmlParseException
from .options import ParserOptions, load_options
from .parser import parse_file


def build_options(args) -> ParserOptions:
    """Options from --config, overridden by any command-line flags."""
    options = load_options(args.config) if args.config else ParserOptions()
    if args.strict_def:
        options = replace(options, strict_def=True)
    if args.require_header:
        options = replace(options, require_header=True)
    if args.max_depth is not None:
        options = replace(options, max_depth=args.max_depth)
    return options


def check_file(path: Path, options: ParserOptions) -> bool:
    """Parse one file and print the outcome. Returns True if it parsed."""
    try:
        scene = parse_file(path, options)
    except VrmlParseException as e:
        print(f"{path}: {e}")
        return False
    except (OSError, UnicodeDecodeError) as e:
        print(f"{path}: cannot read file: {e}")
        return False

    counts = node_summary(scene.nodes)
    total = sum(counts.values())
    print(f"{path}: ok ({total} node(s), {len(scene.protos)} PROTO(s), {len(scene.routes)} ROUTE(s))")
    return True


def dump_file(path: Path, options: ParserOptions) -> bool:
    try:
        scene = parse_file(path, options)
    except VrmlParseException as e:
        print(f"{path}: {e}", file=sys.stderr)
        return False
    except (OSError, UnicodeDecodeError) as e:
        print(f"{path}: cannot read file: {e}", file=sys.stderr)
        return False

    print(yaml.safe_dump(scene_to_dict(scene), sort_keys=False), end='')
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Check VRML97 files or dump them as YAML."
    )
    parser.add_argument(
        "--config",
        help="YAML file with parser options (strict_def, max_depth, require_header)"
    )
    parser.add_argument(
        "--strict-def",
        action="store_true",
        help="Reject a DEF name that is already defined"
    )
    parser.add_argument(
        "--require-header",
        action="store_true",
        help="Require the '#VRML V2.0 utf8' header line"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Deepest allowed node nesting"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show parser debug logging"
    )

    subparsers = parser.add_subparsers(dest="command")
    check_parser = subparsers.add_parser("check", help="Parse files and report errors")
    check_parser.add_argument("files", nargs="+", help="Files to check")
    dump_parser = subparsers.add_parser("dump", help="Print the parsed scene as YAML")
    dump_parser.add_argument("file", help="File to dump")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = build_options(args)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Invalid options: {e}", file=sys.stderr)
        sys.exit(2)

    if args.command == "dump":
        sys.exit(0 if dump_file(Path(args.file), options) else 1)

    failures = 0
    for name in args.files:
        if not check_file(Path(name), options):
            failures += 1

    if failures:
        print(f"\n{failures} of {len(args.files)} file(s) failed")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
