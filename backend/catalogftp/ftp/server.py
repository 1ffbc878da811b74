from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pyftpdlib.handlers import FTPHandler
from pyftpdlib.servers import ThreadedFTPServer

from catalogftp.fs.driver import CatalogDriver, DriverFactory
from catalogftp.ftp.authorizer import DriverAuthorizer
from catalogftp.ftp.config import (
    ftp_banner,
    ftp_host,
    ftp_masquerade_address,
    ftp_max_cons,
    ftp_passive_ports,
    ftp_port,
)
from catalogftp.ftp.filesystem import CatalogFS
from catalogftp.logging.ndjson import NdjsonHandler, init_logging, log_event


class CatalogFTPHandler(FTPHandler):
    """FTP control connection; owns one `CatalogDriver` for its lifetime."""

    driver_factory: Optional[DriverFactory] = None
    driver: Optional[CatalogDriver] = None

    abstracted_fs = CatalogFS
    # Remote files have no descriptor to hand to sendfile().
    use_sendfile = False

    def on_connect(self) -> None:
        factory = self.driver_factory or DriverFactory()
        self.driver = factory.new_driver()
        log_event(
            level="info",
            event="ftpd.connect",
            data={"remote": f"{self.remote_ip}:{self.remote_port}"},
            sessionId=self.driver.session_id,
        )

    def on_disconnect(self) -> None:
        if self.driver is None:
            return
        log_event(level="info", event="ftpd.disconnect", sessionId=self.driver.session_id)
        self.driver.close()

    def on_login(self, username: str) -> None:
        log_event(level="info", event="ftpd.login", data={"user": username}, sessionId=self.driver.session_id)

    def on_login_failed(self, username: str, password: str) -> None:
        _ = password
        log_event(level="warning", event="ftpd.login_failed", data={"user": username}, sessionId=self.driver.session_id)


def build_handler(factory: Optional[DriverFactory] = None) -> type[CatalogFTPHandler]:
    """Return a handler class configured from the environment."""
    handler = type("ConfiguredCatalogFTPHandler", (CatalogFTPHandler,), {})
    handler.driver_factory = factory or DriverFactory()
    handler.authorizer = DriverAuthorizer()
    handler.banner = ftp_banner()
    handler.masquerade_address = ftp_masquerade_address()
    passive = ftp_passive_ports()
    if passive is not None:
        handler.passive_ports = passive
    return handler


def build_server(factory: Optional[DriverFactory] = None) -> ThreadedFTPServer:
    server = ThreadedFTPServer((ftp_host(), ftp_port()), build_handler(factory))
    server.max_cons = ftp_max_cons()
    return server


def _load_dotenvs() -> None:
    load_dotenv(Path.cwd() / ".env")


def _bridge_engine_logging() -> None:
    log = logging.getLogger("pyftpdlib")
    log.propagate = False
    log.setLevel(logging.INFO)
    if not any(isinstance(h, NdjsonHandler) for h in log.handlers):
        log.addHandler(NdjsonHandler(prefix="ftpd"))


def main() -> None:
    _load_dotenvs()
    init_logging()
    _bridge_engine_logging()
    try:
        server = build_server()
    except Exception as e:
        log_event(
            level="error",
            event="ftpd.startup_failed",
            data={"host": ftp_host(), "port": ftp_port(), "error": str(e)},
        )
        print(f"catalogftp: error starting server: {e}", file=sys.stderr)
        sys.exit(1)
    log_event(level="info", event="ftpd.startup", data={"host": ftp_host(), "port": ftp_port()})
    server.serve_forever()


if __name__ == "__main__":
    main()
