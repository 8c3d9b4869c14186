"""Flask server for the SmartFeeder API"""

import logging
import os
import sys

from app import create_app
from app.domain.exceptions import ConfigurationError


def main() -> int:
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")

    try:
        app = create_app()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    port = int(os.environ.get("FLASK_RUN_PORT", 8000))
    print(f"Server starting on http://0.0.0.0:{port}")
    print("Press Ctrl+C to stop\n")

    try:
        app.run(host="0.0.0.0", port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except OSError as e:
        logging.getLogger(__name__).error("Server error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
