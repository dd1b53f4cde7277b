"""
Adapters package for BillSync.

This package contains the upstream provider adapters built on the
BaseAdapter interface.
"""

from .base_adapter import BaseAdapter
from .legiscan_adapter import LegiScanAdapter, html_to_text

__all__ = [
    "BaseAdapter",
    "LegiScanAdapter",
    "html_to_text",
]
