"""
Exception hierarchy for factory discovery.

Nothing here is recoverable inside a scan: every error aborts the discovery
call and reaches the caller, who decides whether to run it again.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(DiscoveryError):
    """Raised when configuration values are missing or invalid."""

    pass


class TransportError(DiscoveryError):
    """Raised when the chain cannot be reached or returns an unusable answer."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.method = method


class UnrecognizedSignature(DiscoveryError):
    """Raised when a log's topic0 does not map to any requested factory kind."""

    def __init__(self, signature: Optional[str], details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Unrecognized factory event signature: {signature}", details)
        self.signature = signature
