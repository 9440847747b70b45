"""Automated regression suite for round resolution.

Uses stdlib only and directly exercises the combat math, status ticks,
single/area attacks and resolve_round.
"""

from __future__ import annotations

import json
import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from mechanics.engine.aoe import aoe_multiplier, simulate_aoe  # noqa: E402
from mechanics.engine.attack import simulate_attack  # noqa: E402
from mechanics.engine.effects import merge_status, tick_statuses  # noqa: E402
from mechanics.engine.models import (  # noqa: E402
    ENEMIES,
    Ability,
    Action,
    Actor,
    AoeMode,
    RoundRequest,
    StatusEffect,
    StatusName,
    StatusSpec,
)
from mechanics.engine.resolver import (  # noqa: E402
    build_registry,
    confusion_branch,
    order_actions,
    queue_actions,
    resolve_round,
    synergy_from_damage,
)
from mechanics.engine.rules import DEFAULT_RULES, NEUTRAL_SETTING, calculate_damage, hit_chance  # noqa: E402


class FixedRoll(random.Random):
    """Every die lands on the same face, clamped to the die's range."""

    def __init__(self, value: int):
        super().__init__(0)
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return max(a, min(b, self.value))


def make_actor(actor_id: str, team: str = "allies", **stats: Any) -> Actor:
    base = dict(hp=100, max_hp=100, attack=20, defense=5, focus=10, speed=10, willpower=10)
    base.update(stats)
    return Actor(id=actor_id, team=team, **base)


def make_enemy(actor_id: str, **stats: Any) -> Actor:
    return make_actor(actor_id, team=ENEMIES, **stats)


def make_round(allies: List[Actor], enemies: List[Actor], actions: List[Action], **kwargs: Any) -> RoundRequest:
    kwargs.setdefault("stochastic", False)
    return RoundRequest(allies=allies, enemies=enemies, actions=actions, **kwargs)


def events(result, name: str) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in result.timeline if entry.event == name]


def event_names(result) -> List[str]:
    return [entry.event for entry in result.timeline]


def final_actor(result, actor_id: str) -> Optional[Actor]:
    for actor in result.final_allies + result.final_enemies:
        if actor.id == actor_id:
            return actor
    return None


def _assert_invariants(result) -> None:
    for actor in result.final_allies + result.final_enemies:
        assert 0 <= actor.hp <= actor.max_hp, f"hp out of range for {actor.id}: {actor.hp}"
        names = [effect.name for effect in actor.status_effects]
        assert len(names) == len(set(names)), f"duplicate status entries on {actor.id}"
        for effect in actor.status_effects:
            assert effect.duration > 0, f"expired effect left on {actor.id}: {effect.name}"


def run_round(request: RoundRequest, rng: Optional[random.Random] = None):
    result = resolve_round(request, rng=rng)
    _assert_invariants(result)
    return result


def scenario_hit_chance_formula() -> bool:
    attacker = make_actor("a", focus=15)
    defender = make_enemy("e", speed=10)
    assert hit_chance(attacker, defender, NEUTRAL_SETTING) == 80.0, "70 + (15 - 10) * 2 should be 80"

    assert hit_chance(make_actor("a", focus=100), make_enemy("e", speed=0), NEUTRAL_SETTING) == 99
    assert hit_chance(make_actor("a", focus=0), make_enemy("e", speed=100), NEUTRAL_SETTING) == 1
    return True


def scenario_weakness_bonus_doubles() -> bool:
    attacker = make_actor("a", attack=100)
    defender = make_enemy("e", defense=0, weakness="fire")
    fire = Ability(type="fire")

    damage = calculate_damage(attacker, defender, fire, DEFAULT_RULES.setting("dragon_ball"))
    assert damage == 200.0, f"weakness exploit should double 100 -> 200, got {damage}"

    # persona 5 halves defense on a weakness hit before doubling
    armored = make_enemy("e", defense=20, weakness="fire")
    damage = calculate_damage(attacker, armored, fire, DEFAULT_RULES.setting("persona_5"))
    assert damage == 180.0, f"expected (100 - 10) * 2, got {damage}"

    assert calculate_damage(attacker, defender, fire, NEUTRAL_SETTING) == 100.0, "no bonus outside the whitelist"
    return True


def scenario_setting_modifiers() -> bool:
    attacker = make_actor("a", attack=100, focus=15)
    mass_effect = DEFAULT_RULES.setting("mass_effect")
    covered = make_enemy("e", defense=20, in_cover=True)
    assert calculate_damage(attacker, covered, Ability(), mass_effect) == 70.0
    assert hit_chance(attacker, covered, mass_effect) == 65.0, "cover should take 15 off hit chance"

    hunted = make_enemy("e", defense=20, vulnerable_to=["silver"])
    assert calculate_damage(attacker, hunted, Ability(type="silver"), DEFAULT_RULES.setting("witcher_3")) == 88.0

    plain = make_enemy("e", defense=20)
    sonic = DEFAULT_RULES.setting("sonic_the_hedgehog")
    assert calculate_damage(attacker, plain, Ability(type="momentum"), sonic) == 82.0
    assert calculate_damage(attacker, plain, Ability(), DEFAULT_RULES.setting("jojo")) == 80.0
    return True


def scenario_deterministic_attack_always_hits() -> bool:
    attacker = make_actor("a", focus=0)
    defender = make_enemy("e", speed=100)
    burn = Ability(status=StatusSpec(name=StatusName.BURN))

    result = simulate_attack(attacker, defender.snapshot(), burn, NEUTRAL_SETTING, stochastic=False)
    assert result.hit and result.roll is None, "deterministic attacks never roll and always hit"
    assert not result.critical and result.damage == 15.0, f"unexpected outcome {result.to_dict()}"
    assert result.status.attempted and not result.status.applied, "status should need forceStatus"

    target = defender.snapshot()
    result = simulate_attack(attacker, target, burn, NEUTRAL_SETTING, stochastic=False, force_crit=True, force_status=True)
    assert result.critical and result.damage == 22.5, f"forced crit should be 15 * 1.5, got {result.damage}"
    assert result.status.applied, "forced status should land"
    effect = target.get_status(StatusName.BURN)
    assert effect is not None and effect.duration == 2 and effect.source_id == "a"
    return True


def scenario_guard_and_shield_reduce_damage() -> bool:
    attacker = make_actor("a")
    guarding = make_enemy("e", is_guarding=True)
    result = simulate_attack(attacker, guarding, Ability(), NEUTRAL_SETTING, stochastic=False)
    assert result.damage == 7.5, f"guard should halve 15, got {result.damage}"

    shielded = make_enemy("e")
    shielded.temp.shield_value = 0.5
    result = simulate_attack(attacker, shielded, Ability(), NEUTRAL_SETTING, stochastic=False)
    assert result.damage == 7.5, f"half shield should halve 15, got {result.damage}"
    return True


def scenario_status_merge_is_monotonic() -> bool:
    actor = make_actor("a", status_effects=[StatusEffect(StatusName.BURN, duration=3, potency=5)])

    inserted = merge_status(actor, StatusEffect(StatusName.BURN, duration=1, potency=8))
    effect = actor.get_status(StatusName.BURN)
    assert not inserted and len(actor.status_effects) == 1, "same-name merge must not stack"
    assert effect.duration == 3 and effect.potency == 8, f"expected max merge, got {effect}"

    assert merge_status(actor, StatusEffect(StatusName.SLOW, duration=0))
    assert actor.get_status(StatusName.SLOW).duration == 1, "new entries last at least one tick"
    return True


def scenario_ticks_terminate() -> bool:
    actor = make_actor(
        "a",
        status_effects=[
            StatusEffect(StatusName.BURN, duration=2, potency=5),
            StatusEffect(StatusName.REGEN, duration=1),
        ],
    )

    first = tick_statuses(actor)
    assert [entry.event for entry in first] == ["burn_tick", "regen_tick", "status_expired"], [e.event for e in first]
    assert actor.hp == 100, f"regen should cap at max hp, got {actor.hp}"

    ticks = 1
    while actor.status_effects and ticks < 10:
        tick_statuses(actor)
        ticks += 1
    assert ticks == 2 and not actor.status_effects, "effects should be gone after their max duration"
    assert actor.hp == 95, f"second burn tick should land, got {actor.hp}"
    assert tick_statuses(actor) == [], "no effects, no events"
    return True


def scenario_stun_skips_exactly_one_action() -> bool:
    ally = make_actor("a1")
    enemy = make_enemy("e1", status_effects=[StatusEffect(StatusName.STUN, duration=1)])
    attack = [Action(actor_id="e1", kind="attack", target_id="a1")]

    first = run_round(make_round([ally], [enemy], attack))
    assert [e["actorId"] for e in events(first, "skipped_stunned")] == ["e1"]
    assert final_actor(first, "a1").hp == 100

    second = run_round(make_round(first.final_allies, first.final_enemies, attack))
    assert not events(second, "skipped_stunned"), "stun should only cost one action"
    assert final_actor(second, "a1").hp == 85.0, f"expected a 15 damage hit, got {final_actor(second, 'a1').hp}"
    return True


def scenario_confusion_branches() -> bool:
    assert confusion_branch(5) == "self" and confusion_branch(10) == "self"
    assert confusion_branch(11) == "redirect" and confusion_branch(50) == "redirect" and confusion_branch(60) == "redirect"
    assert confusion_branch(61) == "keep" and confusion_branch(90) == "keep"

    def confused_round(face: int):
        ally = make_actor("a1", status_effects=[StatusEffect(StatusName.CONFUSE, duration=2)])
        enemies = [make_enemy("e1"), make_enemy("e2")]
        action = Action(actor_id="a1", kind="attack", target_id="e1")
        return run_round(make_round([ally], enemies, [action], stochastic=True), rng=FixedRoll(face))

    result = confused_round(5)
    assert events(result, "confuse_self_hit_roll"), "roll 5 should hit self"
    hits = events(result, "hit")
    assert hits and hits[0]["targetId"] == "a1", f"self hit expected, got {hits}"
    assert final_actor(result, "a1").hp == 85.0

    result = confused_round(50)
    redirect = events(result, "confuse_redirect")
    assert redirect and redirect[0]["targetId"] in ("e1", "e2"), "roll 50 should redirect to a living opponent"
    assert events(result, "hit")[0]["targetId"] == redirect[0]["targetId"]

    result = confused_round(90)
    assert events(result, "confuse_no_redirect"), "roll 90 should keep the target"
    assert events(result, "miss")[0]["targetId"] == "e1", "roll 90 misses a 70% swing on the original target"
    return True


def scenario_aoe_falloff_and_cone() -> bool:
    assert aoe_multiplier(AoeMode.FALLOFF, Ability(aoe_falloff=0.5), 1.0, None) == 0.5
    assert aoe_multiplier(AoeMode.CONE, Ability(cone_angle=0.5), 0, 0.6) == 0
    assert aoe_multiplier(AoeMode.CONE, Ability(cone_angle=0.5), 0, 0.5) == 1, "edge of the cone is inside"
    assert aoe_multiplier(AoeMode.FULL, Ability(aoe_falloff=0.5), 1.0, None) == 1

    attacker = make_actor("a")
    defenders = [make_enemy("e1"), make_enemy("e2"), make_enemy("e3")]
    result = simulate_aoe(
        attacker, defenders, Ability(aoe_falloff=0.5), NEUTRAL_SETTING, stochastic=False, mode=AoeMode.FALLOFF
    )
    assert [entry.distance for entry in result.results] == [0, 0.5, 1.0]
    assert [entry.result.damage for entry in result.results] == [15.0, 10.0, 5.0]
    assert result.hits == 3 and result.misses == 0 and result.total_damage == 30.0 and result.avg_damage_per_hit == 10.0
    assert all(defender.hp == 100 for defender in defenders), "simulate_aoe must not touch the inputs"
    return True


def scenario_damage_synergy_increments() -> bool:
    registry = {"a": make_actor("a"), "b": make_actor("b")}
    assert synergy_from_damage(registry, {"a": 25}) == 2
    assert synergy_from_damage(registry, {"a": 30, "b": 9.99}) == 3
    return True


def scenario_kill_and_health_floor() -> bool:
    allies = [make_actor("a1", attack=500, speed=20), make_actor("a2", speed=15)]
    enemy = make_enemy("e1")
    actions = [
        Action(actor_id="a1", kind="attack", target_id="e1"),
        Action(actor_id="a2", kind="attack", target_id="e1"),
    ]

    result = run_round(make_round(allies, [enemy], actions))
    names = event_names(result)
    assert names.index("kill") == names.index("hit") + 1, f"kill should follow its hit, got {names}"
    assert final_actor(result, "e1").hp == 0, "health floors at zero"
    assert [e["actorId"] for e in events(result, "invalid_target")] == ["a2"], "dead targets are invalid"
    assert [e["actorId"] for e in events(result, "skipped_dead")] == ["e1"]

    summary = result.summary
    assert summary.deaths == ["e1"]
    assert summary.total_damage == 495.0 and summary.damage_taken == {"e1": 495.0}
    # 1 per hit + 2 for the kill + floor(495 / 10)
    assert summary.total_synergy == 52, f"unexpected synergy {summary.total_synergy}"
    assert summary.actions_processed == 3
    return True


def scenario_round_does_not_mutate_request() -> bool:
    ally = make_actor("a1", status_effects=[StatusEffect(StatusName.BURN, duration=2, potency=5)])
    enemy = make_enemy("e1")
    request = make_round([ally], [enemy], [Action(actor_id="a1", kind="attack", target_id="e1")])

    run_round(request)
    assert ally.hp == 100 and enemy.hp == 100, "submitted rosters must stay untouched"
    assert ally.status_effects[0].duration == 2
    return True


def scenario_deterministic_rounds_identical() -> bool:
    def build(**kwargs):
        allies = [make_actor("a1", status_effects=[StatusEffect(StatusName.BLEED, duration=2)]), make_actor("a2")]
        enemies = [make_enemy("e1"), make_enemy("e2", is_guarding=True)]
        actions = [
            Action(actor_id="a1", kind="aoe", ability=Ability(aoe_falloff=0.3), aoe_mode=AoeMode.FALLOFF),
            Action(actor_id="e1", kind="attack", target_id="a2"),
            Action(actor_id="e2", kind="guard"),
        ]
        return make_round(allies, enemies, actions, **kwargs)

    first = json.dumps(run_round(build()).to_dict(), sort_keys=True)
    second = json.dumps(run_round(build()).to_dict(), sort_keys=True)
    assert first == second, "deterministic rounds must be byte-identical"

    seeded_a = json.dumps(run_round(build(stochastic=True, seed=7, round_number=3)).to_dict(), sort_keys=True)
    seeded_b = json.dumps(run_round(build(stochastic=True, seed=7, round_number=3)).to_dict(), sort_keys=True)
    assert seeded_a == seeded_b, "same seed + round should replay the same round"
    return True


def scenario_ordering_by_speed_focus_team() -> bool:
    allies = [make_actor("a1", speed=10, focus=5), make_actor("a2", speed=12)]
    enemies = [make_enemy("e1", speed=10, focus=5), make_enemy("e2", speed=10, focus=9)]
    request = make_round(allies, enemies, [])
    registry = build_registry(request)
    ordered = order_actions(queue_actions(request.actions, registry), registry)
    assert [entry.action.actor_id for entry in ordered] == ["a2", "e2", "a1", "e1"]

    slowed = make_actor("a1", speed=20, status_effects=[StatusEffect(StatusName.SLOW, duration=1, potency=0.5)])
    result = run_round(make_round([slowed], [make_enemy("e1", speed=15)], []))
    assert [e["actorId"] for e in events(result, "pass")] == ["e1", "a1"], "slow should drop a1 to speed 10"
    return True


def scenario_guard_lasts_until_next_action() -> bool:
    ally = make_actor("a1", speed=20)
    enemy = make_enemy("e1")

    first = run_round(make_round([ally], [enemy], [
        Action(actor_id="a1", kind="guard"),
        Action(actor_id="e1", kind="attack", target_id="a1"),
    ]))
    guarded = final_actor(first, "a1")
    assert guarded.is_guarding and guarded.hp == 92.5, f"guard should halve the hit, hp={guarded.hp}"

    second = run_round(make_round(first.final_allies, first.final_enemies, [
        Action(actor_id="a1", kind="attack", target_id="e1"),
        Action(actor_id="e1", kind="attack", target_id="a1"),
    ]))
    after = final_actor(second, "a1")
    assert not after.is_guarding and after.hp == 77.5, f"guard should drop after attacking, hp={after.hp}"
    return True


def scenario_aoe_round_falls_back_to_opponents() -> bool:
    ally = make_actor("a1")
    enemies = [make_enemy("e1"), make_enemy("e2")]
    action = Action(actor_id="a1", kind="aoe", targets=["ghost"])

    result = run_round(make_round([ally], enemies, [action]))
    assert sorted(e["targetId"] for e in events(result, "hit")) == ["e1", "e2"]
    assert result.summary.total_damage == 30.0
    return True


def scenario_bad_actions_are_noted() -> bool:
    ally = make_actor("a1")
    actions = [Action(actor_id="ghost", kind="attack", target_id="a1"), Action(actor_id="a1", kind="dance")]

    result = run_round(make_round([ally], [make_enemy("e1")], actions))
    assert events(result, "invalid_actor"), "unknown acting actor should be noted"
    assert [e["actorId"] for e in events(result, "unknown_action")] == ["a1"]
    assert final_actor(result, "a1").hp == 100 and final_actor(result, "e1").hp == 100
    return True


def scenario_died_from_status() -> bool:
    enemy = make_enemy("e1", hp=3, status_effects=[StatusEffect(StatusName.BURN, duration=2, potency=5)])

    result = run_round(make_round([make_actor("a1")], [enemy], []))
    assert [e["actorId"] for e in events(result, "died_from_status")] == ["e1"]
    assert [e["actorId"] for e in events(result, "skipped_dead")] == ["e1"]
    assert result.summary.deaths == ["e1"]
    return True


def scenario_round_applies_status_and_weaken() -> bool:
    ally = make_actor("a1", speed=20, status_effects=[StatusEffect(StatusName.WEAKEN, duration=1, potency=0.5)])
    enemy = make_enemy("e1")
    burn = Ability(status=StatusSpec(name=StatusName.BURN, potency=7))
    action = Action(actor_id="a1", kind="ability", target_id="e1", ability=burn, force_status=True)

    result = run_round(make_round([ally], [enemy], [action]))
    target = final_actor(result, "e1")
    assert target.hp == 95.0, f"weakened attack should deal 20 * 0.5 - 5, hp={target.hp}"
    effect = target.get_status(StatusName.BURN)
    assert effect is not None and effect.duration == 2 and effect.potency == 7 and effect.source_id == "a1"
    return True


def scenario_negative_tick_potency_stays_in_bounds() -> bool:
    healthy = make_actor("a1", status_effects=[StatusEffect(StatusName.BURN, duration=2, potency=-10)])
    tick_statuses(healthy)
    assert healthy.hp == 100, f"a negative burn must not heal past max hp, got {healthy.hp}"

    frail = make_actor("a2", hp=5, status_effects=[StatusEffect(StatusName.REGEN, duration=2, potency=-10)])
    tick_statuses(frail)
    assert frail.hp == 0, f"a negative regen must not drain below zero, got {frail.hp}"

    result = run_round(make_round(
        [make_actor("a1", status_effects=[StatusEffect(StatusName.BURN, duration=2, potency=-10)])],
        [make_enemy("e1", hp=5, status_effects=[StatusEffect(StatusName.REGEN, duration=2, potency=-10)])],
        [],
    ))
    assert [e["actorId"] for e in events(result, "died_from_status")] == ["e1"]
    return True


def scenario_stun_skips_any_queued_kind() -> bool:
    ally = make_actor("a1")
    enemies = [
        make_enemy("e1", status_effects=[StatusEffect(StatusName.STUN, duration=1)]),
        make_enemy("e2", is_guarding=True, status_effects=[StatusEffect(StatusName.PARALYSIS, duration=1)]),
        make_enemy("e3", status_effects=[StatusEffect(StatusName.STUN, duration=1)]),
    ]
    actions = [
        Action(actor_id="e1", kind="guard"),
        Action(actor_id="e2", kind="aoe"),
    ]

    result = run_round(make_round([ally], enemies, actions))
    skipped = [(e["actorId"], e["action"]) for e in events(result, "skipped_stunned")]
    assert skipped == [("e1", "guard"), ("e2", "aoe"), ("e3", "pass")], skipped
    assert not final_actor(result, "e1").is_guarding, "a skipped guard must not raise the flag"
    assert final_actor(result, "e2").is_guarding, "a skipped action must not drop a standing guard"
    assert final_actor(result, "a1").hp == 100 and not events(result, "hit")
    return True


def scenario_confused_aoe_hits_one_target() -> bool:
    def confused_blast(face: int):
        ally = make_actor("a1", status_effects=[StatusEffect(StatusName.CONFUSE, duration=2)])
        enemies = [make_enemy("e1"), make_enemy("e2")]
        action = Action(actor_id="a1", kind="aoe")
        return run_round(make_round([ally], enemies, [action], stochastic=True), rng=FixedRoll(face))

    result = confused_blast(5)
    assert [e["targetId"] for e in events(result, "hit")] == ["a1"], "self roll turns the blast on its caster"
    assert final_actor(result, "a1").hp == 85.0
    assert final_actor(result, "e1").hp == 100 and final_actor(result, "e2").hp == 100

    result = confused_blast(50)
    redirect = events(result, "confuse_redirect")[0]["targetId"]
    assert [e["targetId"] for e in events(result, "hit")] == [redirect], "redirect narrows the blast to one opponent"
    spared = "e1" if redirect == "e2" else "e2"
    assert final_actor(result, spared).hp == 100
    return True


def scenario_shield_ticks_into_round() -> bool:
    ally = make_actor("a1", status_effects=[StatusEffect(StatusName.SHIELD, duration=2, potency=0.5)])
    enemy = make_enemy("e1")

    result = run_round(make_round([ally], [enemy], [Action(actor_id="e1", kind="attack", target_id="a1")]))
    ticks = events(result, "shield_active")
    assert ticks and ticks[0]["actorId"] == "a1" and ticks[0]["phase"] == "status_tick"
    assert final_actor(result, "a1").hp == 92.5, f"half shield should halve 15, hp={final_actor(result, 'a1').hp}"
    assert final_actor(result, "a1").get_status(StatusName.SHIELD).duration == 1
    return True


SCENARIOS = [
    scenario_hit_chance_formula,
    scenario_weakness_bonus_doubles,
    scenario_setting_modifiers,
    scenario_deterministic_attack_always_hits,
    scenario_guard_and_shield_reduce_damage,
    scenario_status_merge_is_monotonic,
    scenario_ticks_terminate,
    scenario_stun_skips_exactly_one_action,
    scenario_confusion_branches,
    scenario_aoe_falloff_and_cone,
    scenario_damage_synergy_increments,
    scenario_kill_and_health_floor,
    scenario_round_does_not_mutate_request,
    scenario_deterministic_rounds_identical,
    scenario_ordering_by_speed_focus_team,
    scenario_guard_lasts_until_next_action,
    scenario_aoe_round_falls_back_to_opponents,
    scenario_bad_actions_are_noted,
    scenario_died_from_status,
    scenario_round_applies_status_and_weaken,
    scenario_negative_tick_potency_stays_in_bounds,
    scenario_stun_skips_any_queued_kind,
    scenario_confused_aoe_hits_one_target,
    scenario_shield_ticks_into_round,
]


def run_all() -> List[Tuple[str, bool, str]]:
    results: List[Tuple[str, bool, str]] = []
    for scenario in SCENARIOS:
        try:
            scenario()
            results.append((scenario.__name__, True, ""))
        except AssertionError as exc:
            results.append((scenario.__name__, False, str(exc)))
    return results
