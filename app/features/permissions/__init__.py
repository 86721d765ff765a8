"""
Access model feature module.

Role-based access control over a flat per-user grant set: a static role
catalog, grant set primitives, and the operations that assign, remove, and
check roles and permissions.
"""
