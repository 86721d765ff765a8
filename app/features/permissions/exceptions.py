"""
Access model errors.

Persistence failures are not wrapped here: SQLAlchemy errors reach the
caller unchanged.
"""


class AccessModelError(Exception):
    """Base class for access model errors."""


class InvalidRoleReference(AccessModelError, TypeError):
    """A role argument was neither a slug string nor a slug-bearing value."""

    def __init__(self, role: object):
        self.role = role
        super().__init__(f"Invalid role reference: {role!r}")


class InvalidPermissionKey(AccessModelError, ValueError):
    """A transported permission key could not be decoded."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid permission key: {key!r}")
