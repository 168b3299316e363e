from __future__ import annotations

import argparse
import time

from .runtime.server import run


def main() -> None:
    p = argparse.ArgumentParser(prog="smartzoom", description="smartzoom: keyframe zoom/marker preview server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--log-level", default=None, help="Defaults to SMARTZOOM_LOG_LEVEL or INFO")
    args = p.parse_args()

    srv = run(host=args.host, port=args.port, log_level=args.log_level)
    print(srv.url)

    # Block forever (so it behaves like a normal CLI server)
    while True:
        time.sleep(3600)


if __name__ == "__main__":
    main()
