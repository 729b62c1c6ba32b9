"""
Domain errors raised by the membership and group services.

Each error carries the HTTP status it is reported with; ``app.main``
registers a single handler that turns them into ``{"detail": ...}``.
"""


class MembershipError(Exception):
    status_code = 500
    default_detail = "Membership operation failed."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Forbidden(MembershipError):
    status_code = 403
    default_detail = "Forbidden."


class NotFound(MembershipError):
    status_code = 404
    default_detail = "Not found."


class Conflict(MembershipError):
    status_code = 409
    default_detail = "Already exists."


class InvalidInput(MembershipError):
    status_code = 400
    default_detail = "Bad request."


class InvalidAccessLevel(MembershipError):
    """Unknown access level (the *unprocessable state* case)."""

    status_code = 422
    default_detail = "Unknown access level."


class LastOwnerViolation(MembershipError):
    status_code = 409
    default_detail = "A group must keep at least one owner."
