"""
Asset Ledger - Source Package

A small record store for personal asset tracking. Every record carries a
free-form source label; the set of valid labels is a fixed builtin list
overlaid with user additions, renames and deletions.

DESIGN PRINCIPLES:
1. Never block a write over a stale label
2. Sources in use are never deleted
3. Renames follow the records that use them
4. Every mutation is auditable
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Asset Ledger Team"
