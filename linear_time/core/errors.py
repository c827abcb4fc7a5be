"""Error kinds surfaced to the presentation layer."""

from __future__ import annotations


class TimeTrackerError(Exception):
    """Base class for every error the app displays directly."""


class MissingCredential(TimeTrackerError):
    def __init__(self, message: str = "No API Token found"):
        super().__init__(message)


class IssueFetchError(TimeTrackerError):
    """Remote issue source failed; the user should check their credentials."""


class ConflictError(TimeTrackerError):
    def __init__(self, message: str = "A timer is already running. Please stop it first."):
        super().__init__(message)


class NotFoundError(TimeTrackerError):
    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Time log {log_id} not found")


class StoreUnavailable(TimeTrackerError):
    """I/O failure talking to the timer store."""


class AuthDomainRejected(TimeTrackerError):
    def __init__(self, allowed_domain: str, email: str | None = None):
        self.allowed_domain = allowed_domain
        self.email = email
        super().__init__(f"Access restricted to {allowed_domain} emails.")
