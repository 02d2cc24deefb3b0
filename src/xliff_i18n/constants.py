"""
Constants and configuration values for the XLIFF 1.2 serializer.

Centralizes tag names, fixed attribute values and indentation depths.
"""

# XLIFF document identity
XLIFF_VERSION = "1.2"
XLIFF_NAMESPACE = "urn:oasis:names:tc:xliff:document:1.2"

# Element names
PLACEHOLDER_TAG = "x"
MARKER_TAG = "mrk"
XLIFF_TAG = "xliff"
FILE_TAG = "file"
BODY_TAG = "body"
SOURCE_TAG = "source"
SEGMENT_SOURCE_TAG = "seg-source"
TARGET_TAG = "target"
UNIT_TAG = "trans-unit"
CONTEXT_GROUP_TAG = "context-group"
CONTEXT_TAG = "context"
NOTE_TAG = "note"

# Attributes of the generated <file> element
DEFAULT_SOURCE_LANG = "en"
FILE_DATATYPE = "plaintext"
FILE_ORIGINAL = "ng2.template"
UNIT_DATATYPE = "html"

XML_DECLARATION_ATTRS = {"version": "1.0", "encoding": "UTF-8"}

# Indentation depths (spaces after each line break)
INDENT_FILE = 2
INDENT_BODY = 4
INDENT_UNIT = 6
INDENT_UNIT_CHILD = 8
INDENT_CONTEXT = 10

# ctype values for well-known tags, anything else becomes "x-<tag>"
CTYPE_BY_TAG = {
    'br': 'lb',
    'img': 'image',
}

# Documents bigger than this are rejected before parsing
MAX_DOCUMENT_SIZE = 50 * 1024 * 1024  # 50MB - XLIFF files are typically much smaller

# Default source language for the server, overridable from the environment
SOURCE_LANG_ENV_VAR = "XLIFF_SOURCE_LANG"

# Allowed file extensions for the server tools
ALLOWED_EXTENSIONS = frozenset({'.xlf', '.xliff'})
