"""
MCP Server for XLIFF 1.2 i18n messages

This server exposes the XLIFF serializer through the Model Context Protocol
(MCP): reading translations, listing existing units, writing documents and
computing message ids.
"""

import json
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent
from mcp.server.stdio import stdio_server
import logging

from . import constants
from .errors import XliffParseError
from .jsonio import message_from_json, nodes_to_json
from .xliff import compute_message_digest, decode_messages, decode_raw_units, encode_document
from .xml_nodes import serialize_node


def setup_logging(verbose: bool = False):
    """Log to stderr; stdout carries the MCP stream."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    return logging.getLogger("xliff-server")


logger = logging.getLogger("xliff-server")

# Create the MCP server instance
app = Server("xliff-i18n-server")

# Source language used by write_xliff when the call does not give one
_default_locale: str = constants.DEFAULT_SOURCE_LANG


def set_default_locale(locale: Optional[str]):
    """Set the source language used when write_xliff is called without a locale."""
    global _default_locale
    _default_locale = locale or constants.DEFAULT_SOURCE_LANG
    logger.info(f"Default source language: {_default_locale}")


def get_default_locale() -> str:
    return _default_locale


def validate_file_extension(file_path: str) -> None:
    """
    Validate that the file has an allowed extension.

    Args:
        file_path: The file path to validate

    Raises:
        ValueError: If the file extension is not allowed
    """
    suffix = Path(file_path).suffix.lower()
    if suffix not in constants.ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Invalid file type: '{suffix}'. "
            f"This tool only supports XLIFF files ({', '.join(sorted(constants.ALLOWED_EXTENSIONS))})"
        )


def read_document(arguments: Dict[str, Any], content_key: str = "content", path_key: str = "file_path") -> Optional[str]:
    """
    Get an XLIFF document from tool arguments, either inline or from a file.

    Returns:
        The document text, or None when neither argument was given

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not an XLIFF file or is too large
    """
    if arguments.get(content_key):
        return arguments[content_key]

    file_path = arguments.get(path_key)
    if not file_path:
        return None

    validate_file_extension(file_path)
    path = Path(file_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")

    # Check file size to prevent memory exhaustion
    file_size = path.stat().st_size
    if file_size > constants.MAX_DOCUMENT_SIZE:
        raise ValueError(
            f"File too large: {file_size / (1024*1024):.1f}MB "
            f"(max: {constants.MAX_DOCUMENT_SIZE / (1024*1024):.0f}MB)"
        )

    logger.info(f"Reading {path}")
    return path.read_text(encoding='utf-8-sig')


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _json(data: Any) -> list[TextContent]:
    return _text(json.dumps(data, indent=2, ensure_ascii=False))


_DOCUMENT_PROPERTIES = {
    "content": {
        "type": "string",
        "description": "The XLIFF document itself",
    },
    "file_path": {
        "type": "string",
        "description": "Path to an .xlf/.xliff file, used when content is not given",
    },
}


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available XLIFF tools."""
    return [
        Tool(
            name="read_xliff_messages",
            description=(
                "Decode the translations (<target> elements) of an XLIFF 1.2 document. "
                "Returns a JSON object mapping each message id to its i18n nodes "
                "(text, placeholders, ICU expressions). All errors in the document "
                "are reported together."
            ),
            inputSchema={
                "type": "object",
                "properties": _DOCUMENT_PROPERTIES,
            },
        ),
        Tool(
            name="read_xliff_units",
            description=(
                "List the trans-units of an XLIFF 1.2 document as raw XML, keyed by id. "
                "These units can be passed back to write_xliff to keep existing translations."
            ),
            inputSchema={
                "type": "object",
                "properties": _DOCUMENT_PROPERTIES,
            },
        ),
        Tool(
            name="write_xliff",
            description=(
                "Write i18n messages as an XLIFF 1.2 document. Each message is "
                "{id?, nodes, sources?, description?, meaning?}; a missing id is computed "
                "from the content. Units of an existing document are kept ahead of the new ones."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "messages": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Messages to write",
                    },
                    "locale": {
                        "type": "string",
                        "description": "Source language of the messages (e.g. 'en')",
                    },
                    "existing_content": {
                        "type": "string",
                        "description": "Existing XLIFF document whose units are kept",
                    },
                    "existing_file_path": {
                        "type": "string",
                        "description": "Path to an existing XLIFF file whose units are kept",
                    },
                    "output_path": {
                        "type": "string",
                        "description": "Optional path to write the document to",
                    },
                },
                "required": ["messages"],
            },
        ),
        Tool(
            name="xliff_message_digest",
            description="Compute the id of a message from its nodes and meaning.",
            inputSchema={
                "type": "object",
                "properties": {
                    "message": {
                        "type": "object",
                        "description": "Message as {nodes, meaning?}",
                    },
                },
                "required": ["message"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""

    logger.info(f"call_tool: {name}")

    try:
        if name == "read_xliff_messages":
            content = read_document(arguments)
            if content is None:
                return _text("Either content or file_path is required.")

            messages = decode_messages(content, arguments.get("file_path", ""))
            logger.info(f"Decoded {len(messages)} messages")
            return _json({msg_id: nodes_to_json(nodes) for msg_id, nodes in messages.items()})

        elif name == "read_xliff_units":
            content = read_document(arguments)
            if content is None:
                return _text("Either content or file_path is required.")

            units = decode_raw_units(content, arguments.get("file_path", ""))
            return _json({unit_id: serialize_node(unit) for unit_id, unit in units.items()})

        elif name == "write_xliff":
            messages = [message_from_json(data) for data in arguments["messages"]]
            locale = arguments.get("locale") or get_default_locale()

            existing = read_document(arguments, "existing_content", "existing_file_path")
            existing_units = list(decode_raw_units(existing).values()) if existing else []

            document = encode_document(messages, locale, existing_units)

            output_path = arguments.get("output_path")
            if output_path:
                validate_file_extension(output_path)
                Path(output_path).expanduser().write_text(document, encoding='utf-8')
                return _text(
                    f"Successfully wrote {len(existing_units)} existing and {len(messages)} new "
                    f"units to: {output_path}"
                )
            return _text(document)

        elif name == "xliff_message_digest":
            message = message_from_json({**arguments["message"], "id": ""})
            return _text(compute_message_digest(message))

        else:
            return _text(f"Unknown tool: {name}")

    except XliffParseError as e:
        logger.warning(f"{name} failed with {len(e.errors)} errors")
        return _text(str(e))
    except FileNotFoundError as e:
        return _text(f"File not found.\nError: {str(e)}")
    except Exception as e:
        # Provide detailed error for debugging
        error_details = traceback.format_exc()
        return _text(f"Error: {str(e)}\n\nDetails:\n{error_details}")


async def main():
    """Run the MCP server."""
    logger.info("=== MCP Server Starting ===")
    logger.info(f"CWD: {os.getcwd()}")
    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options(),
        )
