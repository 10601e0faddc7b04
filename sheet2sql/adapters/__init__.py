"""
Adapters for external engines.

- CalamineAdapter: workbook reading using python-calamine (Rust-based)
"""

from sheet2sql.adapters.calamine_adapter import CalamineAdapter

__all__ = [
    "CalamineAdapter",
]
