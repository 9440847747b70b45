# mechanics/routes.py
import logging

from flask import Blueprint, current_app, jsonify, request

from .content.codex import CODEX_VERSION, MECHANICS_CODEX, UNIVERSE_MODIFIERS
from .payloads import (
    RoundRequestError,
    parse_aoe_request,
    parse_calculate_request,
    parse_round_request,
    parse_simulate_request,
)

logger = logging.getLogger(__name__)

mechanics_bp = Blueprint("mechanics", __name__)


def _engine():
    return current_app.extensions["mechanics"]


def _body():
    body = request.get_json(silent=True)
    return {} if body is None else body


@mechanics_bp.errorhandler(RoundRequestError)
def bad_request(err):
    logger.warning("rejected %s: %s", request.path, err)
    return jsonify({"success": False, "error": str(err)}), 400


@mechanics_bp.route("/")
def index():
    return jsonify({"ok": True, "service": "projectx-mechanics", "version": CODEX_VERSION})


@mechanics_bp.route("/codex")
def codex():
    return jsonify(MECHANICS_CODEX)


@mechanics_bp.route("/archetypes")
def archetypes():
    return jsonify({"archetypes": MECHANICS_CODEX.get("archetypes", [])})


@mechanics_bp.route("/universes")
def universes():
    return jsonify({"universes": list(UNIVERSE_MODIFIERS)})


@mechanics_bp.route("/calculate", methods=["POST"])
def calculate():
    out = _engine().calculate(**parse_calculate_request(_body()))
    return jsonify({"success": True, **out})


@mechanics_bp.route("/simulate", methods=["POST"])
def simulate():
    result = _engine().simulate_attack(**parse_simulate_request(_body()))
    return jsonify({"success": True, "result": result.to_dict()})


@mechanics_bp.route("/simulate_aoe", methods=["POST"])
def simulate_aoe():
    result = _engine().simulate_aoe(**parse_aoe_request(_body()))
    return jsonify({"success": True, "result": result.to_dict()})


@mechanics_bp.route("/round_resolver", methods=["POST"])
def round_resolver():
    engine = _engine()
    round_request = parse_round_request(_body(), engine.rules)
    result = engine.resolve_round(round_request)
    return jsonify({"success": True, "result": result.to_dict()})
