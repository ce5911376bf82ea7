"""
Auth Module - Black Box Interface

Purpose: Optional API key authentication for the HTTP surface
Interface: AuthModule.verify_api_key()
Hidden: Key storage and comparison
"""

from .auth import AuthModule, AuthResult

__all__ = ["AuthModule", "AuthResult"]
