#!/usr/bin/env python3
"""
Quick Start Guide for XML Tree.

Parses a small catalog, walks it, dumps it and writes it back out.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xml_tree import (
    ParseOptions,
    StructuralError,
    XMLSyntaxError,
    display,
    parse_from_bytes,
    serialize,
    visit_preorder,
)

CATALOG = b"""<?xml version="1.0" encoding="UTF-8"?>
<catalog xmlns="urn:example:catalog" xmlns:p="urn:example:pricing">
    <book id="123" genre="fiction">
        <title>My Book</title>
        <author>John Doe</author>
        <p:price currency="USD">19.99</p:price>
    </book>
    <book id="456" genre="reference">
        <title>Tags &amp; Trees</title>
    </book>
</catalog>
"""


def quick_start_example():
    """Parse, inspect and re-serialize a document."""

    print("QUICK START - XML Tree")
    print("=" * 45)

    # Step 1: Parse
    print("\nStep 1: Parsing")
    print("-" * 30)
    root = parse_from_bytes(CATALOG, ParseOptions(trim_text=True))
    print(f"Root element: {root.tag}")
    print(f"Books: {len(root.find_all('{urn:example:catalog}book'))}")

    # Step 2: Walk every element in document order
    print("\nStep 2: Pre-order walk")
    print("-" * 30)
    for node in visit_preorder(root):
        print(f"{node.local_name:10} prefix={node.prefix!s:5} text={node.text!r}")

    # Step 3: Human-readable dump
    print("\nStep 3: Display")
    print("-" * 30)
    for line in display(root):
        print(line)

    # Step 4: Back to XML
    print("\nStep 4: Serialize")
    print("-" * 30)
    print(serialize(root), end="")


def error_handling_example():
    """Show the errors raised for broken documents."""

    print("\nERROR HANDLING")
    print("=" * 45)
    for document in (b"<a><b></a>", b"<a>&nbsp;</a>", b"<a/><b/>", b""):
        try:
            parse_from_bytes(document)
        except (XMLSyntaxError, StructuralError) as e:
            print(f"{document!r:16} -> {type(e).__name__}: {e}")


if __name__ == "__main__":
    quick_start_example()
    error_handling_example()
