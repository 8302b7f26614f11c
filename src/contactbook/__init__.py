"""Contactbook — private address books behind account authentication.

Each account owns its contacts; every contact query and mutation is
scoped to the identity resolved from the caller's bearer token.
"""

__version__ = "1.0.0"
