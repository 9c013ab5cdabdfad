#!/usr/bin/env python3
"""
API entrypoint - serves the schedule HTTP API with uvicorn.
"""

import sys
import argparse
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports (src/ and util/ are both in project root)
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from src.core.config import API_HOST, API_PORT, debug_enabled, validate_config


def main():
    parser = argparse.ArgumentParser(description='Serve the Schedule Table API')
    parser.add_argument('--host', default=API_HOST,
                        help=f'Host to bind to (default: {API_HOST})')
    parser.add_argument('--port', type=int, default=API_PORT,
                        help=f'Port to serve on (default: {API_PORT})')
    parser.add_argument('--reload', action='store_true',
                        help='Reload on code changes (development only)')

    args = parser.parse_args()

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ Configuration error: {issue}")
        return 1

    print(f"🗓️  Schedule Table API on http://{args.host}:{args.port}")
    if debug_enabled():
        print(f"🔧 Debug mode enabled - docs at http://{args.host}:{args.port}/docs")

    try:
        uvicorn.run("src.api.main:app", host=args.host, port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
