# mechanics/engine/effects.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from .models import Actor, StatusEffect, StatusName, TempState, TimelineEvent
from .rules import DEFAULT_RULES, Rules, clamp, round2

TICK_PHASE = "status_tick"


def merge_status(actor: Actor, effect: StatusEffect) -> bool:
    """Attach an effect, or raise the active one of the same name.

    Duration and potency both take the max of old/new, so re-applying never
    stacks a second entry. Returns True when a new entry was inserted.
    """
    existing = actor.get_status(effect.name)
    if existing is not None:
        existing.duration = max(existing.duration, effect.duration or 0)
        existing.potency = max(existing.potency or 0, effect.potency or 0)
        return False
    actor.status_effects.append(
        StatusEffect(
            name=effect.name,
            duration=effect.duration if effect.duration and effect.duration > 0 else 1,
            potency=effect.potency or 0,
            source_id=effect.source_id,
        )
    )
    return True


TickOutcome = Tuple[str, Dict[str, Any]]


def _tick_damage(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    damage = round2(effect.potency or rules.tick_default(effect.name))
    prev = actor.hp
    actor.hp = clamp(actor.hp - damage, 0, actor.max_hp)
    return f"{effect.name.value}_tick", {"damage": damage, "prevHp": prev, "newHp": actor.hp}


def _tick_regen(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    heal = round2(effect.potency or rules.tick_default(effect.name))
    prev = actor.hp
    actor.hp = clamp(actor.hp + heal, 0, actor.max_hp)
    return "regen_tick", {"heal": heal, "prevHp": prev, "newHp": actor.hp}


def _tick_shield(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    fraction = clamp(effect.potency or 0, 0, 1)
    actor.temp.shield_value = max(actor.temp.shield_value, fraction)
    return "shield_active", {"potency": effect.potency}


def _tick_stun(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    actor.temp.is_stunned = True
    return "stunned", {}


def _tick_confuse(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    actor.temp.is_confused = True
    return "confused", {}


def _tick_slow(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    factor = max(0, effect.potency or rules.tick_default(effect.name))
    actor.temp.speed_multiplier = min(actor.temp.speed_multiplier, factor)
    return "slow_applied", {"multiplier": actor.temp.speed_multiplier}


def _tick_weaken(actor: Actor, effect: StatusEffect, rules: Rules) -> TickOutcome:
    factor = max(0, effect.potency or rules.tick_default(effect.name))
    actor.temp.attack_multiplier = min(actor.temp.attack_multiplier, factor)
    return "weaken_applied", {"multiplier": actor.temp.attack_multiplier}


TICK_HANDLERS: Dict[StatusName, Callable[[Actor, StatusEffect, Rules], TickOutcome]] = {
    StatusName.BURN: _tick_damage,
    StatusName.BLEED: _tick_damage,
    StatusName.REGEN: _tick_regen,
    StatusName.SHIELD: _tick_shield,
    StatusName.PARALYSIS: _tick_stun,
    StatusName.STUN: _tick_stun,
    StatusName.CONFUSE: _tick_confuse,
    StatusName.SLOW: _tick_slow,
    StatusName.WEAKEN: _tick_weaken,
}

_unhandled = set(StatusName) - set(TICK_HANDLERS)
if _unhandled:
    raise RuntimeError(f"no tick handler for {sorted(s.value for s in _unhandled)}")


def tick_statuses(actor: Actor, stochastic: bool = True, rules: Rules = DEFAULT_RULES) -> List[TimelineEvent]:
    """Start-of-round pipeline: reset derived state, apply every effect, age durations.

    DoTs and heals always land; `stochastic` only matters to callers that roll
    for chance-based outcomes later in the round.
    """
    actor.temp = TempState()
    events: List[TimelineEvent] = []
    still_active: List[StatusEffect] = []
    # effects apply in the order they were attached
    for effect in list(actor.status_effects):
        tag, data = TICK_HANDLERS[effect.name](actor, effect, rules)
        data["remainingDuration"] = effect.duration
        events.append(TimelineEvent(tag, actor_id=actor.id, phase=TICK_PHASE, data=data))

        effect.duration = max(0, int(effect.duration or 0) - 1)
        if effect.duration <= 0:
            events.append(
                TimelineEvent("status_expired", actor_id=actor.id, phase=TICK_PHASE, data={"name": effect.name.value})
            )
            continue
        still_active.append(effect)
    actor.status_effects = still_active
    return events
