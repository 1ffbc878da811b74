from __future__ import annotations

import os


DEFAULT_API_URL = "http://api.metagenomics.anl.gov"
DEFAULT_SHOCK_URL = "http://shock.metagenomics.anl.gov"
DEFAULT_TIMEOUT = 30.0


def mgrast_api_url() -> str:
    return (os.environ.get("MGRAST_API_URL", "").strip() or DEFAULT_API_URL).rstrip("/")


def mgrast_shock_url() -> str:
    return (os.environ.get("MGRAST_SHOCK_URL", "").strip() or DEFAULT_SHOCK_URL).rstrip("/")


def mgrast_timeout() -> float:
    # Seconds, used for every phase of a request.
    try:
        value = float(os.environ.get("MGRAST_TIMEOUT", str(DEFAULT_TIMEOUT)))
    except Exception:
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT


def mgrast_inline_max_bytes() -> int:
    # 0 disables inline content; files are always handed out as SHOCK locators.
    try:
        return max(0, int(os.environ.get("MGRAST_INLINE_MAX_BYTES", "0")))
    except Exception:
        return 0
