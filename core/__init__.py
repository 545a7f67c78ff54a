"""Core (transport-agnostic) supply chain analytics logic.

This package contains:
- dataset loading (CSV -> pandas, all cells kept as raw strings)
- field coercion and filter helpers
- period and group-by aggregation
- per-domain compute functions (JSON-serializable payloads)
"""
