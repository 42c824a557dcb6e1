"""Utility helpers for typedfsm."""
from __future__ import annotations

from .io import read_yaml

__all__ = ["read_yaml"]
