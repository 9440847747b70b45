# mechanics/payloads.py
"""
Turns camelCase JSON bodies into engine values.

Structural problems raise RoundRequestError and are answered with a 400 by the
routes and a mechanics_error by the socket handlers. Anything the engine can
cope with on its own (unknown action kinds, missing targets, a malformed action) is passed through
and noted in the round timeline instead.
"""
import logging
from typing import Any, Dict, Optional

from .engine.dice import rng_for
from .engine.models import (
    ALLIES,
    ENEMIES,
    Ability,
    Action,
    ActionKind,
    Actor,
    AoeMode,
    RoundRequest,
    StatusEffect,
    StatusName,
    StatusSpec,
    TempState,
)
from .engine.rules import DEFAULT_RULES, Rules, clamp

logger = logging.getLogger(__name__)

ACTOR_KEYS = {
    "id", "team", "hp", "maxHp", "attack", "defense", "focus", "speed", "willpower",
    "weakness", "vulnerableTo", "isGuarding", "cover", "statusEffects", "temp",
    "distance", "angle",
}


class RoundRequestError(ValueError):
    """Request body is structurally unusable."""


def _number(data: Dict[str, Any], key: str, default: Optional[float] = 0, where: str = "request") -> Optional[float]:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; true/false is never a stat
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RoundRequestError(f"{where}: '{key}' must be a number")
    return value


def _object(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RoundRequestError(f"{where} must be an object")
    return value


def _status_name(value: Any, where: str) -> StatusName:
    try:
        return StatusName(value)
    except ValueError:
        raise RoundRequestError(f"{where}: unknown status '{value}'") from None


def _seed(data: Dict[str, Any]) -> Optional[int]:
    seed = data.get("seed")
    if seed is None:
        return None
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise RoundRequestError("'seed' must be an integer")
    return seed


def _seeded_rng(data: Dict[str, Any]):
    seed = _seed(data)
    if seed is None:
        return None
    return rng_for(seed, int(_number(data, "round", 0)))


def _stochastic(data: Dict[str, Any]) -> bool:
    flag = data.get("rng")
    return flag if isinstance(flag, bool) else True


def _universe(data: Dict[str, Any]) -> Optional[str]:
    universe = data.get("universe")
    return str(universe) if universe else None


def parse_status_effect(data: Any, where: str) -> StatusEffect:
    data = _object(data, where)
    return StatusEffect(
        name=_status_name(data.get("name"), where),
        duration=int(_number(data, "duration", 1, where)),
        potency=_number(data, "potency", 0, where),
        source_id=data.get("sourceId"),
    )


def parse_temp(data: Any, where: str) -> TempState:
    data = _object(data, f"{where}.temp")
    return TempState(
        speed_multiplier=_number(data, "speedMultiplier", 1.0, where),
        attack_multiplier=_number(data, "attackMultiplier", 1.0, where),
        is_stunned=bool(data.get("isStunned", False)),
        is_confused=bool(data.get("isConfused", False)),
        shield_value=_number(data, "shieldValue", 0.0, where),
    )


def parse_actor(data: Any, where: str = "actor", default_id: Optional[str] = None, team: str = ALLIES) -> Actor:
    if not isinstance(data, dict):
        raise RoundRequestError(f"{where} must be an object")
    actor_id = data.get("id", default_id)
    if actor_id is None or actor_id == "":
        raise RoundRequestError(f"{where} requires an 'id'")

    hp = _number(data, "hp", 0, where)
    max_hp = _number(data, "maxHp", hp, where)
    vulnerable_to = data.get("vulnerableTo") or []
    if not isinstance(vulnerable_to, list):
        raise RoundRequestError(f"{where}: 'vulnerableTo' must be an array")
    status_effects = data.get("statusEffects") or []
    if not isinstance(status_effects, list):
        raise RoundRequestError(f"{where}: 'statusEffects' must be an array")

    actor = Actor(
        id=str(actor_id),
        team=team,
        hp=clamp(hp, 0, max(max_hp, 0)),
        max_hp=max_hp,
        attack=_number(data, "attack", 0, where),
        defense=_number(data, "defense", 0, where),
        focus=_number(data, "focus", 0, where),
        speed=_number(data, "speed", 0, where),
        willpower=_number(data, "willpower", 0, where),
        weakness=str(data["weakness"]) if data.get("weakness") else None,
        vulnerable_to=[str(tag) for tag in vulnerable_to],
        is_guarding=bool(data.get("isGuarding", False)),
        in_cover=bool(data.get("cover", False)),
        temp=parse_temp(data.get("temp"), where),
        distance=_number(data, "distance", None, where),
        angle=_number(data, "angle", None, where),
        extra={key: value for key, value in data.items() if key not in ACTOR_KEYS},
    )
    # merge rather than append so a duplicated name collapses to one entry
    for index, raw in enumerate(status_effects):
        effect = parse_status_effect(raw, f"{where}.statusEffects[{index}]")
        existing = actor.get_status(effect.name)
        if existing is None:
            actor.status_effects.append(effect)
        else:
            existing.duration = max(existing.duration, effect.duration)
            existing.potency = max(existing.potency, effect.potency)
    return actor


def parse_status_spec(data: Any, where: str, strict: bool = True) -> Optional[StatusSpec]:
    if not data:
        return None
    data = _object(data, where)
    if not data.get("name"):
        return None
    try:
        name = _status_name(data["name"], where)
    except RoundRequestError:
        if strict:
            raise
        logger.warning("%s: dropping unknown status %r", where, data["name"])
        return None
    return StatusSpec(
        name=name,
        base_chance=_number(data, "baseChance", None, where),
        duration=int(_number(data, "duration", 0, where)) or None,
        potency=_number(data, "potency", None, where),
    )


def parse_ability(data: Any, where: str = "ability", strict: bool = True) -> Ability:
    data = _object(data, where)
    return Ability(
        power=_number(data, "power", 1.0, where) or 1.0,
        archetype_multiplier=_number(data, "archetypeMultiplier", 1.0, where) or 1.0,
        type=str(data.get("type") or "physical"),
        status=parse_status_spec(data.get("status"), f"{where}.status", strict),
        aoe_falloff=_number(data, "aoeFalloff", 0.0, where),
        cone_angle=_number(data, "coneAngleNormalized", None, where),
    )


def parse_aoe_mode(value: Any) -> AoeMode:
    try:
        return AoeMode(value or AoeMode.FULL.value)
    except ValueError:
        # the engine treats any other shape as a full blast
        logger.warning("unknown aoeMode %r, using full", value)
        return AoeMode.FULL


def parse_action(data: Any, index: int) -> Action:
    """
    Never raises: a broken action still takes its slot in the queue and the
    round timeline says what happened to it.
    """
    where = f"actions[{index}]"
    if not isinstance(data, dict):
        logger.warning("%s is not an object, queued without an actor", where)
        return Action(actor_id=None)

    actor_id = data.get("actorId")
    targets = data.get("targets") or []
    if not isinstance(targets, list):
        logger.warning("%s: ignoring non-array targets", where)
        targets = []
    try:
        ability = parse_ability(data.get("ability"), f"{where}.ability", strict=False)
    except RoundRequestError as err:
        logger.warning("%s: falling back to a plain ability (%s)", where, err)
        ability = Ability()

    target_id = data.get("targetId")
    return Action(
        actor_id=str(actor_id) if actor_id not in (None, "") else None,
        kind=str(data.get("action") or ActionKind.PASS.value),
        target_id=str(target_id) if target_id is not None else None,
        targets=[str(target) for target in targets],
        ability=ability,
        aoe_mode=parse_aoe_mode(data.get("aoeMode")),
        force_crit=bool(data.get("forceCrit", False)),
        force_status=bool(data.get("forceStatus", False)),
    )


def parse_round_request(body: Any, rules: Rules = DEFAULT_RULES) -> RoundRequest:
    if not isinstance(body, dict):
        raise RoundRequestError("Request body must include 'allies'[], 'enemies'[], and 'actions'[] arrays.")
    for key in ("allies", "enemies", "actions"):
        if not isinstance(body.get(key), list):
            raise RoundRequestError("Request body must include 'allies'[], 'enemies'[], and 'actions'[] arrays.")

    rosters = {}
    ids = set()
    for team in (ALLIES, ENEMIES):
        raw = body[team]
        if len(raw) > rules.roster_max:
            raise RoundRequestError(f"Max {rules.roster_max} {team} allowed in a round.")
        roster = []
        for index, data in enumerate(raw):
            actor = parse_actor(data, f"{team}[{index}]", team=team)
            if actor.id in ids:
                raise RoundRequestError(f"duplicate actor id '{actor.id}'")
            ids.add(actor.id)
            roster.append(actor)
        rosters[team] = roster

    return RoundRequest(
        allies=rosters[ALLIES],
        enemies=rosters[ENEMIES],
        actions=[parse_action(data, index) for index, data in enumerate(body["actions"])],
        universe=_universe(body),
        stochastic=_stochastic(body),
        seed=_seed(body),
        round_number=int(_number(body, "round", 0)),
    )


def parse_calculate_request(body: Any) -> Dict[str, Any]:
    body = _object(body, "request body")
    return {
        "attacker": parse_actor(_object(body.get("attacker"), "attacker"), "attacker", default_id="attacker"),
        "defender": parse_actor(_object(body.get("defender"), "defender"), "defender", default_id="defender", team=ENEMIES),
        "ability": parse_ability(body.get("ability")),
        "universe": _universe(body),
    }


def parse_simulate_request(body: Any) -> Dict[str, Any]:
    body = _object(body, "request body")
    kwargs = parse_calculate_request(body)
    kwargs.update({
        "stochastic": _stochastic(body),
        "force_crit": bool(body.get("forceCrit", False)),
        "force_status": bool(body.get("forceStatus", False)),
        "rng": _seeded_rng(body),
    })
    return kwargs


def parse_aoe_request(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict) or not body.get("attacker") or not isinstance(body.get("defenders"), list):
        raise RoundRequestError("Body requires 'attacker' and 'defenders' array.")
    defenders = [
        parse_actor(data, f"defenders[{index}]", default_id=f"target-{index}", team=ENEMIES)
        for index, data in enumerate(body["defenders"])
    ]
    return {
        "attacker": parse_actor(body["attacker"], "attacker", default_id="attacker"),
        "defenders": defenders,
        "ability": parse_ability(body.get("ability")),
        "universe": _universe(body),
        "stochastic": _stochastic(body),
        "mode": parse_aoe_mode(body.get("aoeMode")),
        "force_crit": bool(body.get("forceCrit", False)),
        "force_status": bool(body.get("forceStatus", False)),
        "rng": _seeded_rng(body),
    }
