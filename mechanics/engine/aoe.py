# mechanics/engine/aoe.py
import random
from dataclasses import replace
from typing import List, Optional

from .attack import simulate_attack
from .dice import rng_for
from .models import Ability, Actor, AoeMode, AoeResult, AoeTargetResult
from .rules import DEFAULT_RULES, Rules, SettingRules, clamp, round2


def target_distance(defender: Actor, index: int, count: int) -> float:
    """Explicit 0..1 distance if the target carries one, else its slot in the list."""
    if defender.distance is not None:
        return clamp(defender.distance, 0, 1)
    return index / max(1, count - 1)


def aoe_multiplier(mode: AoeMode, ability: Ability, distance: float, angle: Optional[float]) -> float:
    if mode == AoeMode.FALLOFF:
        falloff = clamp(ability.aoe_falloff or 0, 0, 1)
        return clamp(1 - falloff * distance, 0, 1)
    if mode == AoeMode.CONE:
        # outside the cone only when both angles are known and strictly wider
        if angle is not None and ability.cone_angle is not None and angle > ability.cone_angle:
            return 0
        return 1
    return 1


def simulate_aoe(
    attacker: Actor,
    defenders: List[Actor],
    ability: Ability,
    setting: SettingRules,
    stochastic: bool = True,
    mode: AoeMode = AoeMode.FULL,
    force_crit: bool = False,
    force_status: bool = False,
    rng: Optional[random.Random] = None,
    rules: Rules = DEFAULT_RULES,
) -> AoeResult:
    if stochastic and rng is None:
        rng = rng_for(None)

    out = AoeResult(universe=setting.key, total_targets=len(defenders))
    total_damage = 0.0
    for index, defender in enumerate(defenders):
        distance = target_distance(defender, index, len(defenders))
        multiplier = aoe_multiplier(mode, ability, distance, defender.angle)
        scaled = replace(ability, power=ability.power * multiplier)

        sim = simulate_attack(
            attacker,
            defender.snapshot(),
            scaled,
            setting,
            stochastic=stochastic,
            force_crit=force_crit,
            force_status=force_status,
            rng=rng,
            rules=rules,
        )
        out.results.append(AoeTargetResult(target_id=defender.id, distance=distance, aoe_multiplier=multiplier, result=sim))

        if sim.hit:
            total_damage += sim.damage
            out.hits += 1
            if sim.critical:
                out.crits += 1
        else:
            out.misses += 1

    out.total_damage = round2(total_damage)
    out.avg_damage_per_hit = round2(total_damage / out.hits) if out.hits else 0
    return out
