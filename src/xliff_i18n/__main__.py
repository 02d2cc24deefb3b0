"""
Entry point for running the MCP server.

Usage:
    python -m xliff_i18n
    # or after installation:
    mcp-server-xliff-i18n

    # With a default source language for written documents:
    mcp-server-xliff-i18n --locale fr

    # Or use environment variable:
    XLIFF_SOURCE_LANG=fr mcp-server-xliff-i18n

    # Debug logging on stderr:
    mcp-server-xliff-i18n --verbose
"""

import argparse
import asyncio
import os

from .constants import DEFAULT_SOURCE_LANG, SOURCE_LANG_ENV_VAR


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="MCP server for XLIFF 1.2 i18n messages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  mcp-server-xliff-i18n                         # Source language '{DEFAULT_SOURCE_LANG}'
  mcp-server-xliff-i18n -l fr                   # Write documents with source language 'fr'
  {SOURCE_LANG_ENV_VAR}=fr mcp-server-xliff-i18n    # Use environment variable
        """
    )
    parser.add_argument(
        "-l", "--locale",
        metavar="LANG",
        help="Default source language of written documents.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug messages to stderr.",
    )
    return parser.parse_args()


def get_default_locale(args) -> str:
    """
    Get the default source language.

    Priority:
    1. Command-line --locale argument
    2. XLIFF_SOURCE_LANG environment variable
    3. DEFAULT_SOURCE_LANG ("en")
    """
    if args.locale:
        return args.locale
    return os.environ.get(SOURCE_LANG_ENV_VAR, "").strip() or DEFAULT_SOURCE_LANG


def run():
    """Run the MCP server."""
    args = parse_args()

    # Import here so that logging is configured before the server starts
    from .server import main, set_default_locale, setup_logging

    setup_logging(args.verbose)
    set_default_locale(get_default_locale(args))

    asyncio.run(main())


if __name__ == "__main__":
    run()
