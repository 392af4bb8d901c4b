"""
Custom exceptions with helpful error messages and suggestions.

Configuration problems are detected before any network activity and carry:
- A clear explanation of what went wrong
- A concrete suggestion for fixing the settings home
- The provider name the problem was found for
"""

from __future__ import annotations


class CodexConfigError(Exception):
    """Base exception for all codexcfg errors."""

    pass


class ConfigurationError(CodexConfigError):
    """Raised when the settings home cannot produce a usable connection profile."""

    def __init__(self, provider_name: str, issue: str, suggestion: str = ""):
        self.provider_name = provider_name
        self.issue = issue
        self.suggestion = suggestion

        message = f"\n{'='*60}\n"
        message += f"❌ Configuration Error: '{provider_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Issue: {issue}\n"
        if suggestion:
            message += f"\n💡 How to fix:\n"
            message += f"  {suggestion}\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class UnsupportedModelTypeError(CodexConfigError):
    """Raised when an embedding or image model is requested."""

    def __init__(self, provider_name: str, capability: str):
        self.provider_name = provider_name
        self.capability = capability
        super().__init__(f"{provider_name} does not support {capability}")


__all__ = [
    "CodexConfigError",
    "ConfigurationError",
    "UnsupportedModelTypeError",
]
