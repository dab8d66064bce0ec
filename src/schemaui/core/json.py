"""JSON Parsing Utilities for schema documents."""

from typing import Any

import msgspec
import orjson
from json_repair import repair_json


class JSONParseError(Exception):
    """JSON parsing failed."""
    pass


def extract_json(text: str, repair: bool = True) -> Any:
    """
    Extract and parse a JSON document from text with automatic repair.

    Schema documents often arrive wrapped in markdown fences or with a
    trailing comma from hand editing; both are tolerated.

    Args:
        text: Text containing JSON
        repair: Attempt to repair invalid JSON

    Returns:
        Parsed JSON value (object or array)

    Raises:
        JSONParseError: If parsing fails
    """
    text = text.strip()

    # Remove markdown code blocks
    if "```" in text:
        if "```json" in text:
            start = text.find("```json") + 7
        else:
            start = text.find("```") + 3

        end = text.find("```", start)
        if end != -1:
            text = text[start:end].strip()

    # Find JSON boundaries (object or array, whichever opens first)
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise JSONParseError(f"No JSON document found in text: {text[:200]}...")
    start = min(starts)
    closing = "}" if text[start] == "{" else "]"
    end = text.rfind(closing)
    if end == -1:
        raise JSONParseError(f"Unterminated JSON document: {text[:200]}...")

    json_str = text[start:end + 1]

    # Try msgspec first
    try:
        return msgspec.json.decode(json_str.encode("utf-8"))
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"JSON parse error: {e}") from e

        try:
            repaired = repair_json(json_str)
            return orjson.loads(repaired)
        except Exception as repair_error:
            raise JSONParseError(
                f"JSON repair failed: {repair_error}"
            ) from repair_error


def safe_json_dumps(obj: Any, indent: int | None = None) -> str:
    """
    Serialize a rendered tree or schema to JSON.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation when set

    Returns:
        JSON string
    """
    option = orjson.OPT_NON_STR_KEYS
    if indent:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=option, default=str).decode("utf-8")


__all__ = ["JSONParseError", "extract_json", "safe_json_dumps"]
