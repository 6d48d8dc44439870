"""Run the chat server: ``python -m toolstream [--host HOST] [--port PORT]``."""

from __future__ import annotations

import argparse

from toolstream.ext.http import serve


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="toolstream", description="Comments agent chat server (SSE)")
    parser.add_argument("--host", help="Bind address (default: TOOLSTREAM_SERVER_HOST)")
    parser.add_argument("--port", type=int, help="Port (default: TOOLSTREAM_SERVER_PORT)")
    args = parser.parse_args(argv)
    serve(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
