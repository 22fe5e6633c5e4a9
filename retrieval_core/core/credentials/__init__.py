"""
Credential rotation for rate-limited providers.

Exports: CredentialRotator
"""

from .rotator import CredentialRotator

__all__ = ["CredentialRotator"]
