# mechanics/__init__.py
from .engine.resolver import MechanicsEngine
from .routes import mechanics_bp
from .sockets import register_mechanics_socket_handlers

def init_mechanics(app, socketio, rules=None):
    app.extensions["mechanics"] = MechanicsEngine(rules)
    app.register_blueprint(mechanics_bp)
    register_mechanics_socket_handlers(socketio)
