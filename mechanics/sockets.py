# mechanics/sockets.py
import logging

from flask import current_app, request
from flask_socketio import emit

from .payloads import (
    RoundRequestError,
    parse_aoe_request,
    parse_round_request,
    parse_simulate_request,
)

logger = logging.getLogger(__name__)


def _run(kind, payload):
    """Parse + resolve one socket request and answer the caller only."""
    engine = current_app.extensions["mechanics"]
    try:
        if kind == "round":
            result = engine.resolve_round(parse_round_request(payload, engine.rules))
        elif kind == "aoe":
            result = engine.simulate_aoe(**parse_aoe_request(payload))
        else:
            result = engine.simulate_attack(**parse_simulate_request(payload))
    except RoundRequestError as err:
        logger.warning("rejected %s from %s: %s", kind, request.sid, err)
        emit("mechanics_error", {"success": False, "error": str(err)})
        return
    emit("mechanics_result", {"success": True, "kind": kind, "result": result.to_dict()})


def register_mechanics_socket_handlers(socketio):
    @socketio.on("mechanics_simulate")
    def mechanics_simulate(payload=None):
        _run("simulate", payload)

    @socketio.on("mechanics_simulate_aoe")
    def mechanics_simulate_aoe(payload=None):
        _run("aoe", payload)

    @socketio.on("mechanics_round")
    def mechanics_round(payload=None):
        _run("round", payload)
