"""Test helper modules for the typedfsm test suite.

- states: sample state enums and machine builders shared across tests
"""
from __future__ import annotations
