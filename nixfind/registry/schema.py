"""
JSON schema for registry documents.

Only the fields the index relies on are constrained; anything else an entry
carries is accepted as-is.
"""

import jsonschema


NULLABLE_STRING = {"type": ["string", "null"]}

REGISTRY_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "nixpkgs registry",
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "properties": {
            "pname": NULLABLE_STRING,
            "version": NULLABLE_STRING,
            "outputs": {
                "type": "object",
                "additionalProperties": {"type": "string"},
            },
            "meta": {
                "type": ["object", "null"],
                "properties": {
                    "description": NULLABLE_STRING,
                    "longDescription": NULLABLE_STRING,
                },
            },
        },
    },
}

registry_validator = jsonschema.Draft7Validator(REGISTRY_SCHEMA)


def format_error(error: jsonschema.ValidationError) -> str:
    """Render a schema error with the JSON path of the offending value."""
    path = "/".join(str(p) for p in error.absolute_path)
    if path:
        return f"{path}: {error.message}"
    return error.message
