"""
Run the Jenkins integration API server.

Usage:
    python -m jenkins_server [--host HOST] [--port PORT]
    jenkins-server [--host HOST] [--port PORT]  (after pip install)

Settings come from the environment, see jenkins_integration.settings.
"""

import argparse

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deploy -> Jenkins integration API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    uvicorn.run("jenkins_server.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
