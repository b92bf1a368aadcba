"""Vendor sales ledger toolkit.

Exposes the high-level ``process_upload`` API for programmatic use.
"""

from .runner import process_upload  # Public API for reconciliation

__all__ = ["process_upload"]  # Re-exported symbol
