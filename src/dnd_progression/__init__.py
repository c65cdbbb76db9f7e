"""
D&D 5E Character Progression Engine
===================================

Character advancement and derived statistics for 5E actors: a typed
document schema with legacy data migration, pluggable advancement kinds,
an all-or-nothing level-change manager, and a derived stats calculator.
"""

from __future__ import annotations


__version__ = "0.1.0"


__all__ = ["__version__"]
