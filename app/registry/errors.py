"""
Typed failures raised by the registry service.

Every error aborts the surrounding transaction, so registry state is left
exactly as it was before the call.
"""
from __future__ import annotations


class RegistryError(Exception):
    code = "registry_error"
    status = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class PermissionDenied(RegistryError):
    """Caller lacks the role required for the operation."""

    code = "permission_denied"
    status = 403


class NotFound(RegistryError):
    """Referenced document or student does not exist."""

    code = "not_found"
    status = 404


class AlreadyVerified(RegistryError):
    code = "already_verified"
    status = 409


class NotDocumentOwner(RegistryError):
    """Access grant attempted by someone other than the document's submitter."""

    code = "not_document_owner"
    status = 403


class AlreadyExists(RegistryError):
    code = "already_exists"
    status = 409


class AlreadyInitialized(RegistryError):
    code = "already_initialized"
    status = 409


class NotInitialized(RegistryError):
    code = "not_initialized"
    status = 503


class Unauthenticated(RegistryError):
    """No principal was attached to the request."""

    code = "unauthenticated"
    status = 401
