# mechanics/engine/attack.py
import random
from dataclasses import replace
from typing import Optional

from .dice import percentile, rng_for
from .effects import merge_status
from .models import Ability, Actor, AttackResult, StatusEffect, StatusOutcome
from .rules import (
    DEFAULT_RULES,
    Rules,
    SettingRules,
    calculate_damage,
    crit_chance,
    hit_chance,
    round2,
    status_chance,
)


def attempt_status(
    attacker: Actor,
    defender: Actor,
    ability: Ability,
    stochastic: bool,
    force_status: bool,
    rng: Optional[random.Random],
    rules: Rules = DEFAULT_RULES,
) -> StatusOutcome:
    spec = ability.status
    base_chance = spec.base_chance or rules.base_chance(spec.name)
    chance = status_chance(attacker, defender, base_chance, rules)
    outcome = StatusOutcome(attempted=True, name=spec.name, chance=chance)

    landed = False
    if stochastic:
        outcome.roll = percentile(rng)
        landed = outcome.roll <= chance
    if not (landed or force_status):
        return outcome

    effect = StatusEffect(
        name=spec.name,
        duration=spec.duration or rules.status_duration,
        potency=spec.potency or rules.status_potency,
        source_id=attacker.id,
    )
    merge_status(defender, effect)
    outcome.applied = True
    outcome.effect = effect
    return outcome


def simulate_attack(
    attacker: Actor,
    defender: Actor,
    ability: Ability,
    setting: SettingRules,
    stochastic: bool = True,
    force_crit: bool = False,
    force_status: bool = False,
    rng: Optional[random.Random] = None,
    rules: Rules = DEFAULT_RULES,
) -> AttackResult:
    """Resolve one attacker -> defender exchange.

    Expects snapshots: a landed status is merged onto `defender` so callers can
    inspect it, and nothing else is written. In deterministic mode every attack
    hits and crits/statuses only happen when forced.
    """
    if stochastic and rng is None:
        rng = rng_for(None)

    effective = replace(attacker, attack=attacker.attack * attacker.temp.attack_multiplier)
    chance = hit_chance(effective, defender, setting, rules)
    crit = crit_chance(effective, rules)
    roll = percentile(rng) if stochastic else None
    did_hit = roll <= chance if stochastic else True

    result = AttackResult(
        universe=setting.key,
        hit_chance=chance,
        crit_chance=round2(crit),
        roll=roll,
        hit=did_hit,
    )

    damage = 0.0
    if did_hit:
        damage = calculate_damage(effective, defender, ability, setting, rules)
        shield = defender.temp.shield_value
        if shield:
            damage = round2(damage * (1 - shield))

        if stochastic:
            result.critical = percentile(rng) <= crit
        else:
            result.critical = force_crit
        if result.critical:
            damage = round2(damage * rules.critical_multiplier)

        if ability.status is not None:
            result.status = attempt_status(attacker, defender, ability, stochastic, force_status, rng, rules)

    if defender.is_guarding:
        damage = round2(damage * rules.guard_multiplier)

    result.damage = max(0, damage)
    return result
