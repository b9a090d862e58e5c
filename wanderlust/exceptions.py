"""
Wanderlust Backend - Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a message, an HTTP status code and an optional
       context dict. The error translator registered in main.py catches them
       and renders the error page with the right status code.
Who:   Raised by guards, validators and services; caught by global handlers.

Exception Hierarchy:
    WanderlustError (base)             → 500 "Something went wrong"
    ├── ValidationError                → 400 (aggregated field messages)
    │   └── DuplicateUserError         → 400 (username already taken)
    ├── AuthenticationError            → 401 (bad username or password)
    ├── NotFoundError                  → 404
    ├── FileStorageError               → 500
    └── DatabaseError                  → 500

    GuardRedirect (not an error)       → 302 to a safe page with a flash notice
"""

from typing import Any, Dict, Optional, Sequence, Union

DEFAULT_ERROR_MESSAGE = "Something went wrong"
BAD_CREDENTIALS_MESSAGE = "Password or username is incorrect"


class WanderlustError(Exception):
    """
    Base exception for all Wanderlust application errors.

    Attributes:
        status_code: HTTP status used by the error translator
        message:     User-facing description (safe to render)
        context:     Extra debug info (logged, never rendered)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = DEFAULT_ERROR_MESSAGE,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WanderlustError):
    """
    Raised when submitted data fails validation.

    Carries every violation found, not just the first one. `message` is the
    comma-joined list, which is what the error page shows.

    Example:
        ValidationError(["listing.price: Input should be greater than or equal to 0"])
    """

    status_code = 400

    def __init__(
        self,
        messages: Union[str, Sequence[str]] = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        self.field = field
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=",".join(self.messages), context=ctx)


class DuplicateUserError(ValidationError):
    """Raised on signup when the username is already registered."""

    def __init__(self, username: str):
        super().__init__(
            "A user with the given username is already registered",
            field="username",
            context={"username": username},
        )


class AuthenticationError(WanderlustError):
    """Raised when a username/password pair does not match a stored account."""

    status_code = 401

    def __init__(self, message: str = BAD_CREDENTIALS_MESSAGE):
        super().__init__(message=message)


class NotFoundError(WanderlustError):
    """
    Raised when a requested resource does not exist.

    Route guards usually turn a missing listing or review into a redirect;
    this is for lookups that have no sensible page to fall back to.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(WanderlustError):
    """Raised when writing, reading or deleting an uploaded image fails."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WanderlustError):
    """
    Raised when a database operation fails unexpectedly.

    The rendered message is always generic; SQL details stay in the logs.
    """

    def __init__(
        self,
        message: str = DEFAULT_ERROR_MESSAGE,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GuardRedirect(Exception):
    """
    Raised by a route guard to stop the request and redirect instead.

    The guard has already queued its flash notice on the request context.
    The handler in main.py answers with a 302 to `location`.
    """

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)
