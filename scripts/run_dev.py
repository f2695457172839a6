#!/usr/bin/env python3
"""
Run the agentlab API under uvicorn with hot reload.

Host, port and reload come from SERVER__* settings; flags override them.

Usage:
    python scripts/run_dev.py [--port 3002] [--no-reload]
"""

import argparse

from _bootstrap import project_root

import uvicorn

from agentlab.config import get_settings


if __name__ == "__main__":
    server = get_settings().server

    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--host", default=server.host)
    parser.add_argument("--port", type=int, default=server.port)
    parser.add_argument("--no-reload", dest="reload", action="store_false", default=server.reload)
    args = parser.parse_args()

    print(f"Serving {server.app_module} on http://{args.host}:{args.port} (docs at /docs)")
    uvicorn.run(
        server.app_module,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else server.workers,
        reload_dirs=[str(project_root / "src")],
        # structlog renders records; request logs come from the middleware
        log_config=None,
        access_log=False,
    )
