"""
typedfsm data resource helpers.

Provides access to bundled schemas using importlib.resources.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Args:
        subpackage: Name of the data subpackage (e.g., "schemas")
        filename: Optional filename within the subpackage

    Returns:
        Absolute path to the file or directory

    Example:
        >>> get_data_path("schemas", "machine.schema.yaml")
        PosixPath('/path/to/typedfsm/data/schemas/machine.schema.yaml')
    """
    pkg = resources.files("typedfsm.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


def file_exists(subpackage: str, filename: str) -> bool:
    """Check if a data file exists."""
    return get_data_path(subpackage, filename).exists()


__all__ = ["get_data_path", "file_exists"]
