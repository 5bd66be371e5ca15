from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_PORT = 443


def _env_str(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    # x509 certificate (CA cert, if any, concatenated after the server cert) and matching key.
    tls_cert_file: Optional[str] = None
    tls_key_file: Optional[str] = None
    log_level: str = "INFO"


def load_server_config() -> ServerConfig:
    """
    Load transport settings from env.

    Vars: HOST, PORT, TLS_CERT_FILE, TLS_KEY_FILE, LOG_LEVEL.
    """
    return ServerConfig(
        host=_env_str("HOST") or "0.0.0.0",
        port=_env_int("PORT", DEFAULT_PORT),
        tls_cert_file=_env_str("TLS_CERT_FILE"),
        tls_key_file=_env_str("TLS_KEY_FILE"),
        log_level=(_env_str("LOG_LEVEL") or "INFO").upper(),
    )
