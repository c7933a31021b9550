"""Console output and logging setup."""

from __future__ import annotations

from policydb.console.logger import StoreConsole


__all__ = ["StoreConsole"]
