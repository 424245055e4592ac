"""
Credentials for private Helm repositories and OCI registries.

A credential applies to a dependency when its ``registry`` equals the
repository host (``charts.example.com``, ``registry.local:5000``) or is a
URL prefix of the repository URL (``https://charts.example.com/private``).
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import urlsplit

AUTH_TYPES = ("basic", "bearer")


@dataclass
class RegistryCredential:
    """
    Authentication for one chart registry.

    Attributes:
        registry: Host name or URL prefix the credential applies to.
        auth_type: ``basic`` (username and password) or ``bearer`` (token
            in ``password``).
        username: Required for ``basic``.
        password: Password or bearer token.
        password_env: Environment variable the password is read from
            when it is not written in the configuration file.
    """

    registry: str
    auth_type: str = "basic"
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    password_env: Optional[str] = None

    def matches(self, url: str) -> bool:
        """Return ``True`` if this credential applies to *url*."""
        registry = self.registry.strip().rstrip("/")
        if not registry:
            return False

        if "://" in registry:
            target = url.strip().rstrip("/")
            return target == registry or target.startswith(f"{registry}/")

        parts = urlsplit(url.strip() if "://" in url else f"//{url.strip()}")
        host = parts.netloc if ":" in registry else parts.hostname
        return (host or "").lower() == registry.lower()

    def authorization_header(self) -> Optional[str]:
        """``Authorization`` header value, or ``None`` without a password."""
        if not self.password:
            return None
        if self.auth_type == "bearer":
            return f"Bearer {self.password}"
        token = base64.b64encode(f"{self.username or ''}:{self.password}".encode()).decode("ascii")
        return f"Basic {token}"


def find_credential(
    credentials: Iterable[RegistryCredential],
    url: str,
) -> Optional[RegistryCredential]:
    """First credential matching *url*, in configuration order."""
    for credential in credentials:
        if credential.matches(url):
            return credential
    return None
