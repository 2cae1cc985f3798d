"""
Feature modules live under this package.

Each module owns its models and session-level operations; authorization
ordering and locking live in app.registry.service.
"""
