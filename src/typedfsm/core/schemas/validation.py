"""Schema validation of declarative machine definitions.

Schemas are JSON Schema documents stored as YAML files in the bundled
``typedfsm.data/schemas/`` directory, or in a caller-supplied directory.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from typedfsm.core.exceptions import SchemaValidationError
from typedfsm.core.utils.io import read_yaml
from typedfsm.data import get_data_path


def _iter_schema_dirs(schemas_dir: Optional[Path] = None) -> List[Path]:
    """Return schema search roots in priority order."""
    roots: List[Path] = []
    if schemas_dir is not None:
        roots.append(Path(schemas_dir))
    roots.append(get_data_path("schemas"))
    return roots


def load_schema(schema_name: str, *, schemas_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load a schema dict from a custom or the bundled schema directory.

    Automatically appends ``.yaml`` if no extension is present.

    Args:
        schema_name: Relative schema file path under a schemas root
            (e.g., "machine.schema.yaml" or "machine.schema").
        schemas_dir: Directory searched before the bundled schemas.

    Returns:
        Parsed schema dictionary.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path: Optional[Path] = None
    for root in _iter_schema_dirs(schemas_dir):
        candidate = root / schema_name
        if candidate.exists():
            schema_path = candidate
            break

    if schema_path is None:
        searched = "\n".join(f"- {p}" for p in _iter_schema_dirs(schemas_dir))
        raise FileNotFoundError(f"Schema not found: {schema_name}\nSearched:\n{searched}")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def _format_error(error: Any) -> str:
    if error.path:
        path_str = ".".join(str(p) for p in error.path)
        return f"{path_str}: {error.message}"
    return error.message


def validate_payload(
    payload: Any,
    schema_name: str,
    *,
    schemas_dir: Optional[Path] = None,
) -> None:
    """Validate a payload against a JSON schema.

    Args:
        payload: Data to validate.
        schema_name: Name of schema to validate against.
        schemas_dir: Directory searched before the bundled schemas.

    Raises:
        SchemaValidationError: If validation fails; the message and
            ``context["path"]`` name the first offending location.
        FileNotFoundError: If schema doesn't exist.
    """
    schema = load_schema(schema_name, schemas_dir=schemas_dir)
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda e: str(e.path))
    if not errors:
        return

    first = errors[0]
    raise SchemaValidationError(
        f"Validation failed against schema '{schema_name}': {_format_error(first)}",
        context={
            "schema": schema_name,
            "path": ".".join(str(p) for p in first.path),
            "errors": len(errors),
        },
    )


def validate_payload_safe(
    payload: Any,
    schema_name: str,
    *,
    schemas_dir: Optional[Path] = None,
) -> List[str]:
    """Validate a payload and return list of error messages (empty if valid).

    Args:
        payload: Data to validate.
        schema_name: Name of schema to validate against.
        schemas_dir: Directory searched before the bundled schemas.

    Returns:
        List of error messages. Empty list if validation passes.
    """
    try:
        schema = load_schema(schema_name, schemas_dir=schemas_dir)
    except (FileNotFoundError, ValueError) as e:
        return [f"Schema loading failed: {e}"]

    validator = Draft202012Validator(schema)
    return [
        _format_error(error)
        for error in sorted(validator.iter_errors(payload), key=lambda e: str(e.path))
    ]


__all__ = [
    "load_schema",
    "validate_payload",
    "validate_payload_safe",
    "SchemaValidationError",
]
