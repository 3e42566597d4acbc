"""Request audit service — serves a demo API and records every request to rotating JSONL files."""

import logging
import os
import sys

from request_audit.app import create_app
from request_audit.config import load_config
from request_audit.manager import RequestLogManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [request-audit] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def main():
    config = load_config()
    host = os.environ.get("SERVER_HOST", "0.0.0.0")
    port = int(os.environ.get("SERVER_PORT", "5000"))

    manager = RequestLogManager(config)
    app = create_app(manager=manager)
    logger.info("Starting request audit service on %s:%d", host, port)

    try:
        app.run(host=host, port=port, threaded=True)
    except KeyboardInterrupt:
        pass
    finally:
        manager.close()
        logger.info("Shut down cleanly")


if __name__ == "__main__":
    main()
