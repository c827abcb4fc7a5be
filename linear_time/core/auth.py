"""Identity handling: session state and the email-domain allow-list."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .errors import AuthDomainRejected

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Identity:
    uid: str
    email: str | None
    name: str | None = None
    picture: str | None = None


@dataclass(slots=True)
class AuthState:
    user: Identity | None = None
    loading: bool = True


def is_email_allowed(email: str | None, allowed_domain: str | None) -> bool:
    """Check an email against the allow-listed domain.

    No configured domain means every signed-in user is allowed. The domain part
    of the address must equal the configured domain (case-insensitive), so both
    "example.com" and "@example.com" work but "evilexample.com" does not.
    """
    if not allowed_domain:
        return True
    if not email or "@" not in email:
        return False
    domain = allowed_domain.strip().lower().lstrip("@")
    return email.strip().lower().rsplit("@", 1)[1] == domain


class DomainGate:
    """Post-login hook enforcing the email-domain allow-list."""

    def __init__(self, allowed_domain: str | None, state: AuthState | None = None):
        self.allowed_domain = allowed_domain
        self.state = state or AuthState()

    def on_auth_state_changed(self, identity: Identity | None, sign_out: Callable[[], None]) -> AuthState:
        """Apply a new identity from the provider.

        On a domain mismatch the provider session is signed out, the state is
        left without a user, and ``AuthDomainRejected`` is raised so the caller
        can show its message.
        """
        try:
            if identity is None:
                self.state.user = None
                return self.state
            if not is_email_allowed(identity.email, self.allowed_domain):
                logger.warning("Rejected sign-in for %s (allowed domain %s)", identity.email, self.allowed_domain)
                self.state.user = None
                sign_out()
                raise AuthDomainRejected(self.allowed_domain, identity.email)
            self.state.user = identity
            return self.state
        finally:
            self.state.loading = False


def identity_from_streamlit(user_info) -> Identity | None:
    """Build an Identity from ``st.user`` (or any mapping with the OIDC claims)."""
    if user_info is None:
        return None
    getter = user_info.get if hasattr(user_info, "get") else lambda k, d=None: getattr(user_info, k, d)
    if not getter("is_logged_in", False):
        return None
    email = getter("email")
    uid = getter("sub") or email
    if not uid:
        return None
    return Identity(uid=str(uid), email=email, name=getter("name"), picture=getter("picture"))
