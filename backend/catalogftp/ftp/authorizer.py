from __future__ import annotations

from typing import Any, Optional

from pyftpdlib.authorizers import AuthenticationFailed, DummyAuthorizer


class DriverAuthorizer(DummyAuthorizer):
    """
    Delegates the login check to the session's driver.

    Every user gets every permission so mutations reach the driver, which is the one
    place they are refused.
    """

    perms = "elradfmwMT"

    def validate_authentication(self, username: str, password: str, handler: Any) -> None:
        driver = getattr(handler, "driver", None)
        if driver is None or not driver.authenticate(username, password):
            raise AuthenticationFailed("Authentication failed.")

    def has_user(self, username: str) -> bool:
        return True

    def get_home_dir(self, username: str) -> str:
        return "/"

    def get_perms(self, username: str) -> str:
        return self.perms

    def has_perm(self, username: str, perm: str, path: Optional[str] = None) -> bool:
        return perm in self.perms

    def get_msg_login(self, username: str) -> str:
        return "Login successful."

    def get_msg_quit(self, username: str) -> str:
        return "Goodbye."
