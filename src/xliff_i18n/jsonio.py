"""
JSON form of i18n messages, used by the MCP server tools.

Nodes are plain dictionaries tagged by "type":
- {"type": "text", "value": "Hello "}
- {"type": "container", "children": [...]}
- {"type": "placeholder", "name": "INTERPOLATION", "value": "name"}
- {"type": "tag_placeholder", "tag": "b", "start_name": "START_BOLD_TEXT",
   "close_name": "CLOSE_BOLD_TEXT", "is_void": false, "children": [...]}
- {"type": "icu", "expression": "count", "icu_type": "plural", "cases": {"=0": node, ...}}
- {"type": "icu_placeholder", "name": "ICU", "value": {icu node}}
"""

from typing import Any, Dict, List

from .digest import digest
from .i18n import Container, I18nNode, Icu, IcuPlaceholder, Message, MessageSpan, Placeholder, TagPlaceholder, Text


def node_to_json(node: I18nNode) -> Dict[str, Any]:
    match node:
        case Text(value=value):
            return {"type": "text", "value": value}
        case Container(children=children):
            return {"type": "container", "children": nodes_to_json(children)}
        case Placeholder(name=name, value=value):
            return {"type": "placeholder", "name": name, "value": value}
        case TagPlaceholder():
            return {
                "type": "tag_placeholder",
                "tag": node.tag,
                "start_name": node.start_name,
                "close_name": node.close_name,
                "is_void": node.is_void,
                "children": nodes_to_json(node.children),
            }
        case Icu(expression_placeholder=expression, type=icu_type, cases=cases):
            return {
                "type": "icu",
                "expression": expression,
                "icu_type": icu_type,
                "cases": {label: node_to_json(body) for label, body in cases.items()},
            }
        case IcuPlaceholder(name=name, value=icu):
            return {"type": "icu_placeholder", "name": name, "value": node_to_json(icu)}
        case _:
            raise TypeError(f"Unsupported i18n node: {node!r}")


def nodes_to_json(nodes) -> List[Dict[str, Any]]:
    return [node_to_json(node) for node in nodes]


def node_from_json(data: Dict[str, Any]) -> I18nNode:
    """
    Build an i18n node from its JSON form.

    Raises:
        ValueError: If the node type is unknown or a required field is missing
    """
    node_type = data.get("type")
    try:
        match node_type:
            case "text":
                return Text(data["value"])
            case "container":
                return Container(nodes_from_json(data.get("children", [])))
            case "placeholder":
                return Placeholder(data["name"], data.get("value", ""))
            case "tag_placeholder":
                is_void = bool(data.get("is_void", False))
                return TagPlaceholder(
                    data["tag"],
                    data["start_name"],
                    "" if is_void else data["close_name"],
                    is_void,
                    nodes_from_json(data.get("children", [])),
                )
            case "icu":
                return _icu_from_json(data)
            case "icu_placeholder":
                return IcuPlaceholder(data["name"], _icu_from_json(data["value"]))
            case _:
                raise ValueError(f"Unknown node type: {node_type!r}")
    except KeyError as e:
        raise ValueError(f"Node of type {node_type!r} misses the {e.args[0]!r} field") from e


def _icu_from_json(data: Dict[str, Any]) -> Icu:
    cases = {label: node_from_json(body) for label, body in data["cases"].items()}
    return Icu(data["expression"], data["icu_type"], cases)


def nodes_from_json(data: List[Dict[str, Any]]) -> List[I18nNode]:
    return [node_from_json(item) for item in data]


def message_from_json(data: Dict[str, Any]) -> Message:
    """Build a Message; a missing id is computed from the content."""
    sources = [
        MessageSpan(source["file_path"], int(source["start_line"]))
        for source in data.get("sources", [])
    ]
    message = Message(
        data.get("id", ""),
        nodes_from_json(data.get("nodes", [])),
        sources,
        data.get("description") or None,
        data.get("meaning") or None,
    )
    if not message.id:
        message = Message(digest(message), message.nodes, message.sources, message.description, message.meaning)
    return message
