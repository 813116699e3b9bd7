"""Main CLI entry point for the xml-tree command-line tool.

Parses an XML file into an element tree and writes it back out, dumps it in
a readable form, or walks its nodes.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from xml_tree.api import parse_file
from xml_tree.shared import (
    ConfigValidationError,
    ParseError,
    SerializationError,
    ToolConfig,
    configure_logging,
    get_logger,
)
from xml_tree.tree import ElementNode, display, serialize, visit_preorder

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

logger = get_logger(__name__, component="cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-tree",
        description="Parse an XML file and build a tree of elements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Parse and write the tree back out as XML
  xml-tree export document.xml -o copy.xml

  # Trim surrounding white space from text
  xml-tree export document.xml --trim

  # Human-readable dump
  xml-tree show document.xml

  # List every element in document order, text trimmed
  xml-tree walk document.xml --trim
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    export_parser = subparsers.add_parser(
        "export",
        help="Parse a file and write the tree as XML"
    )
    export_parser.add_argument(
        "infile",
        type=Path,
        help="Input XML file path"
    )
    export_parser.add_argument(
        "--outfile", "-o",
        type=Path,
        help="Write output to this file, not stdout"
    )
    export_parser.add_argument(
        "--trim", "-t",
        action="store_true",
        help="Trim surrounding white space from text (default: false)"
    )
    export_parser.add_argument(
        "--silence", "-s",
        action="store_true",
        help="Do not write out the constructed tree, only check that it parses"
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Print a human-readable dump of the tree"
    )
    show_parser.add_argument(
        "infile",
        type=Path,
        help="Input XML file path"
    )
    show_parser.add_argument(
        "--trim", "-t",
        action="store_true",
        help="Trim surrounding white space from text (default: false)"
    )

    walk_parser = subparsers.add_parser(
        "walk",
        help="Enumerate every element in document order"
    )
    walk_parser.add_argument(
        "infile",
        type=Path,
        help="Input XML file path"
    )
    walk_parser.add_argument(
        "--trim", "-t",
        action="store_true",
        help="Trim surrounding white space from text (default: false)"
    )
    walk_parser.add_argument(
        "--quiet", "-q",
        dest="summary_only",
        action="store_true",
        help="Only print the number of elements"
    )

    # Global options
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    return parser


def load_config(args: argparse.Namespace) -> ToolConfig:
    """Build the effective configuration from the config file and flags."""
    config = ToolConfig.from_file(args.config) if args.config else ToolConfig()
    if getattr(args, "trim", False):
        config = config.override(parse__trim_text=True)
    return config


def _load_tree(path: Path, config: ToolConfig) -> ElementNode:
    return parse_file(path, config.parse)


def write_walk(root: ElementNode, out: TextIO, summary_only: bool = False) -> int:
    """Write one block per element, pre-order, and return the element count."""
    count = 0
    for node in visit_preorder(root):
        count += 1
        if summary_only:
            continue
        out.write(f"{node.tag}\n")
        for index, (name, value) in enumerate(node.attributes.items(), start=1):
            out.write(f'    attribute {index} -- name: "{name}"  value: "{value}"\n')
        out.write(f'    text: "{node.text}"\n')
    out.write(f"{count} element(s)\n")
    return count


def cmd_export(args: argparse.Namespace, config: ToolConfig) -> int:
    """Handle export command."""
    root = _load_tree(args.infile, config)
    if args.silence:
        return EXIT_OK

    output = serialize(root, config.serialize)
    if args.outfile:
        with args.outfile.open("w", encoding=config.serialize.encoding,
                               errors="xmlcharrefreplace") as outfile:
            outfile.write(output)
        logger.info("Tree written", extra={"outfile": str(args.outfile)})
    else:
        sys.stdout.write(output)
    return EXIT_OK


def cmd_show(args: argparse.Namespace, config: ToolConfig) -> int:
    """Handle show command."""
    root = _load_tree(args.infile, config)
    for line in display(root, config.display):
        print(line)
    return EXIT_OK


def cmd_walk(args: argparse.Namespace, config: ToolConfig) -> int:
    """Handle walk command."""
    root = _load_tree(args.infile, config)
    write_walk(root, sys.stdout, args.summary_only)
    return EXIT_OK


_COMMANDS = {
    "export": cmd_export,
    "show": cmd_show,
    "walk": cmd_walk,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    # Set up logging verbosity
    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.ERROR)
    else:
        configure_logging(logging.WARNING)

    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        return _COMMANDS[args.command](args, config)
    except ParseError as e:
        print(f"{args.infile}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except SerializationError as e:
        print(f"Cannot write tree: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
