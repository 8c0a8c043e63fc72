"""Verification rule sets."""

from .loader import DEFAULT_RULES_DIR, load_fees, load_rules, resolve_rules_dir

__all__ = [
    "DEFAULT_RULES_DIR",
    "load_fees",
    "load_rules",
    "resolve_rules_dir",
]
