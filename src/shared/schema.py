"""JSON Schema utilities for tool input schemas."""

from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError


TYPE_MAPPING = {
    "string": "string",
    "str": "string",
    "integer": "integer",
    "int": "integer",
    "number": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
}


def create_tool_schema(
    parameters: list[dict[str, Any]],
    required: list[str] | None = None
) -> dict[str, Any]:
    """
    Create a JSON Schema from a list of parameter definitions.

    Args:
        parameters: List of parameter definitions with name, type, description
        required: List of required parameter names

    Returns:
        JSON Schema dictionary
    """
    properties = {}

    for param in parameters:
        properties[param["name"]] = {
            "type": TYPE_MAPPING.get(param.get("type", "string"), "string"),
            "description": param.get("description", ""),
        }

    if required is None:
        required = [p["name"] for p in parameters if p.get("required", False)]

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def check_tool_schema(schema: dict[str, Any]) -> list[str]:
    """
    Check that a generated input schema is itself a valid JSON Schema.

    Returns:
        List of error messages, empty when the schema is valid
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        return [e.message]

    undeclared = [
        name for name in schema.get("required", [])
        if name not in schema.get("properties", {})
    ]
    return [f"required parameter '{name}' is not declared" for name in undeclared]
