from __future__ import annotations

import os
from typing import Optional


DEFAULT_PORT = 3000
DEFAULT_MAX_CONS = 256


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except Exception:
        return default


def ftp_host() -> str:
    return os.environ.get("CATALOGFTP_FTP_HOST", "").strip() or "0.0.0.0"


def ftp_port() -> int:
    return _int_env("CATALOGFTP_FTP_PORT", DEFAULT_PORT)


def ftp_max_cons() -> int:
    return _int_env("CATALOGFTP_FTP_MAX_CONS", DEFAULT_MAX_CONS)


def ftp_banner() -> str:
    return os.environ.get("CATALOGFTP_FTP_BANNER", "").strip() or "MG-RAST catalog FTP (read-only) ready."


def ftp_masquerade_address() -> Optional[str]:
    return os.environ.get("CATALOGFTP_FTP_MASQUERADE_ADDRESS", "").strip() or None


def ftp_passive_ports() -> Optional[range]:
    """
    Parse CATALOGFTP_FTP_PASSIVE_PORTS as "lo-hi" (inclusive). Anything else means
    "let the OS pick".
    """
    raw = os.environ.get("CATALOGFTP_FTP_PASSIVE_PORTS", "").strip()
    if not raw or "-" not in raw:
        return None
    lo, _, hi = raw.partition("-")
    try:
        start, end = int(lo), int(hi)
    except ValueError:
        return None
    if not (0 < start <= end <= 65535):
        return None
    return range(start, end + 1)
