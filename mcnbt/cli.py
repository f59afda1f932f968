#!/usr/bin/env python3
"""
mcnbt CLI - Inspect and convert NBT files.

Usage:
    mcnbt info level.dat
    mcnbt dump level.dat --profile bedrock
    mcnbt convert level.dat level_be.dat --from java --to bedrock
"""

import argparse
import logging
import sys


def _load(args):
    from mcnbt import load
    from mcnbt.profile import get_profile

    return load(args.nbt_file, profile=get_profile(args.profile))


def cmd_info(args):
    """Show a summary of an NBT file."""
    from mcnbt.tags import walk

    try:
        doc = _load(args)
        print(f"Root: {doc.root.tag_name}(\"{doc.name}\")")
        print(f"Profile: {doc.profile.name}")
        print(f"Compression: {doc.compression.value}")
        print(f"Size: {doc.size} bytes")
        print(f"Tags: {sum(1 for _ in walk(doc.root))}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_dump(args):
    """Print the tag tree of an NBT file."""
    from mcnbt.tags import format_tree

    try:
        doc = _load(args)
        print(format_tree(doc.root, doc.name))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_convert(args):
    """Re-encode an NBT file under another profile."""
    from mcnbt import load
    from mcnbt.compression import Compression
    from mcnbt.profile import get_profile

    try:
        doc = load(args.input, profile=get_profile(args.source))
        target = get_profile(args.target)
        compression = Compression.from_name(args.compression) if args.compression else doc.compression
        doc.profile = target
        path = doc.save(args.output, compression)
        print(f"Wrote {path} ({target.name}, {compression.value})")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mcnbt",
        description="mcnbt CLI - Inspect and convert Minecraft NBT files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Profiles: java, java-mutf8, java-network, bedrock, bedrock-network

Examples:
  mcnbt info level.dat
  mcnbt dump level.dat --profile bedrock
  mcnbt convert level.dat out.dat --from java --to bedrock --compression none
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # info
    info_parser = subparsers.add_parser("info", help="Show a summary of an NBT file")
    info_parser.add_argument("nbt_file", help="Path to NBT file")
    info_parser.add_argument("--profile", "-p", default="java", help="Wire profile (default: java)")
    info_parser.set_defaults(func=cmd_info)

    # dump
    dump_parser = subparsers.add_parser("dump", help="Print the tag tree of an NBT file")
    dump_parser.add_argument("nbt_file", help="Path to NBT file")
    dump_parser.add_argument("--profile", "-p", default="java", help="Wire profile (default: java)")
    dump_parser.set_defaults(func=cmd_dump)

    # convert
    convert_parser = subparsers.add_parser("convert", help="Re-encode an NBT file under another profile")
    convert_parser.add_argument("input", help="Input NBT file")
    convert_parser.add_argument("output", help="Output NBT file")
    convert_parser.add_argument("--from", dest="source", default="java", help="Input profile (default: java)")
    convert_parser.add_argument("--to", dest="target", required=True, help="Output profile")
    convert_parser.add_argument(
        "--compression", "-c", choices=["none", "gzip", "zlib"],
        help="Output compression (default: same as input)",
    )
    convert_parser.set_defaults(func=cmd_convert)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] (%(name)s) %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
