"""Configuration module."""

from __future__ import annotations

from policydb.config.settings import DatabaseSettings, Settings


__all__ = ["DatabaseSettings", "Settings"]
