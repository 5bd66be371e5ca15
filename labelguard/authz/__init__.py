"""Authorization / policy layer (env/ConfigMap driven).

This package is intentionally lightweight so admins can control:
- which label is protected
- which identities may set it
"""
