#!/usr/bin/env python3
"""
meshauth -- run the products or orders service.

Usage:
  python main.py serve products
  python main.py serve orders --port 8081
  python main.py serve products --host 127.0.0.1 --port 9000

Environment variables (see core/config.py for the full list):
  JWT_SECRET        Shared signing secret, at least 32 characters. Required.
                    Must be identical on both services.
  JWT_ISSUER        Token issuer (default: ProductsService).
  JWT_AUDIENCE      Token audience (default: ProductsService).
  PEER_SERVICE_URL  Products service base URL. Required by the orders service.
"""

import argparse
import sys
from typing import Optional

import uvicorn

from api.main import create_orders_app, create_products_app
from core.errors import ConfigurationError

_FACTORIES = {
    "products": create_products_app,
    "orders": create_orders_app,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="meshauth",
        description="Products and orders services sharing one bearer-token trust boundary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  JWT_SECRET=... python main.py serve products --port 8080
  JWT_SECRET=... PEER_SERVICE_URL=http://localhost:8080 python main.py serve orders --port 8081
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start one service with uvicorn")
    serve.add_argument("service", choices=sorted(_FACTORIES), help="Which service to run")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")  # nosec B104 -- container default
    serve.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")

    args = parser.parse_args(argv)

    # Configuration problems are fatal: report and exit before binding a port.
    try:
        app = _FACTORIES[args.service]()
    except ConfigurationError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 2

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
