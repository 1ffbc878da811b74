from __future__ import annotations

import hmac
import os
from dataclasses import dataclass, field
from typing import Protocol


class CredentialVerifier(Protocol):
    def verify(self, user: str, password: str) -> bool: ...


@dataclass(frozen=True)
class StaticCredentials:
    """
    Accept exactly one user/password pair.

    Placeholder policy: the catalog is public and read-only, the login only gates
    the FTP session. Swap in another `CredentialVerifier` for a real identity check.
    """

    user: str
    password: str = field(repr=False)

    def verify(self, user: str, password: str) -> bool:
        user_ok = hmac.compare_digest(user.encode("utf-8"), self.user.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        return user_ok and pass_ok


def default_verifier() -> StaticCredentials:
    user = os.environ.get("CATALOGFTP_FTP_USER", "").strip() or "test"
    password = os.environ.get("CATALOGFTP_FTP_PASSWORD", "") or "1234"
    return StaticCredentials(user=user, password=password)
