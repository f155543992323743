# backend/fiableauto/serve.py
"""
Process entrypoint: ``python -m fiableauto.serve``.

Everything is read from the environment so the same command works locally
and behind a TLS-terminating proxy.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

import uvicorn

logger = logging.getLogger("fiableauto.serve")

_SSL_ENV = {
    "SSL_CERTFILE": "ssl_certfile",
    "SSL_KEYFILE": "ssl_keyfile",
    "SSL_KEYFILE_PASSWORD": "ssl_keyfile_password",
}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def server_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "3000")),
        "reload": _flag("RELOAD"),
        "log_level": os.getenv("LOG_LEVEL", "info").lower(),
        "proxy_headers": True,
        "forwarded_allow_ips": os.getenv("FORWARDED_ALLOW_IPS", "*"),
        # In-flight requests get this long after SIGTERM before the pool is disposed.
        "timeout_graceful_shutdown": int(os.getenv("SHUTDOWN_GRACE_SEC", "10")),
    }
    for env_name, option in _SSL_ENV.items():
        value = os.getenv(env_name)
        if value:
            options[option] = value
    return options


def main() -> None:
    options = server_options()
    logger.info(
        "Starting FiableAuto API",
        extra={"host": options["host"], "port": options["port"], "tls": "ssl_certfile" in options},
    )
    uvicorn.run("fiableauto.main:app", **options)


if __name__ == "__main__":
    main()
