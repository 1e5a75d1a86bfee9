"""
Utilities: exception hierarchy and shared request schemas.
"""
