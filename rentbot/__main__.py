from __future__ import annotations

import socket

import uvicorn

from rentbot.config import configure_logging, get_settings


def _pick_port(*, host: str, preferred: int, tries: int) -> int:
    for port in range(preferred, preferred + max(1, tries)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((host, port))
                return port
            except OSError:
                continue
    return preferred


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    port = _pick_port(host=settings.host, preferred=settings.port, tries=settings.port_tries)

    uvicorn.run(
        "rentbot.main:app",
        host=settings.host,
        port=port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
