from __future__ import annotations

import os
import sys


def _load_dotenv() -> None:
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv()
    load_dotenv(".env.local")


def _option(argv: list[str], name: str) -> str | None:
    if name in argv:
        i = argv.index(name)
        if i + 1 < len(argv):
            return argv[i + 1]
    return None


def _parse_host_port(argv: list[str]) -> tuple[str, int]:
    host = _option(argv, "--host") or os.getenv("HOST", "127.0.0.1")
    port_str = _option(argv, "--port") or os.getenv("PORT", "8000")
    if len(argv) == 1 and argv[0].isdigit():
        port_str = argv[0]
    try:
        port = int(port_str)
    except ValueError:
        port = 8000
    return host, port


def main() -> None:
    """Start the chat gateway and its UI."""

    _load_dotenv()
    host, port = _parse_host_port(sys.argv[1:])
    os.environ.setdefault("DUOCHAT_GATEWAY_URL", f"http://{host}:{port}")

    import uvicorn

    uvicorn.run("duochat.cli.server:app", host=host, port=port)


if __name__ == "__main__":
    main()
