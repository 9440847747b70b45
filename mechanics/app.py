# mechanics/app.py
import logging
import os

from flask import Flask
from flask_socketio import SocketIO

from . import init_mechanics

logger = logging.getLogger(__name__)


def create_app(rules=None):
    app = Flask(__name__)
    app.json.sort_keys = False
    socketio = SocketIO(app, cors_allowed_origins="*")
    init_mechanics(app, socketio, rules)
    return app, socketio


def main():
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    port = int(os.environ.get("PORT", 3001))
    host = os.environ.get("MECHANICS_HOST", "0.0.0.0")
    app, socketio = create_app()
    logger.info("ProjectX mechanics service running on %s:%d", host, port)
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    main()
