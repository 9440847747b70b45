# mechanics/engine/resolver.py
import logging
import math
import random
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Tuple

from .aoe import simulate_aoe
from .attack import simulate_attack
from .dice import percentile, pick, rng_for
from .effects import merge_status, tick_statuses
from .models import (
    ALLIES,
    ENEMIES,
    Ability,
    Action,
    ActionKind,
    Actor,
    AoeMode,
    AoeResult,
    AttackResult,
    RoundRequest,
    RoundResult,
    RoundSummary,
    TempState,
    TimelineEvent,
)
from .rules import DEFAULT_RULES, Rules, calculate_damage, hit_chance, round2

logger = logging.getLogger(__name__)

OFFENSIVE_KINDS = (ActionKind.ATTACK.value, ActionKind.ABILITY.value, ActionKind.AOE.value)
SINGLE_TARGET_KINDS = (ActionKind.ATTACK.value, ActionKind.ABILITY.value)

CONFUSE_SELF = "self"
CONFUSE_REDIRECT = "redirect"
CONFUSE_KEEP = "keep"

SYNERGY_PER_HIT = 1
SYNERGY_WEAKNESS = 2
SYNERGY_CRIT = 3
SYNERGY_KILL = 2


@dataclass
class QueuedAction:
    action: Action
    speed: float = 0
    focus: float = 0
    team: Optional[str] = None
    is_stunned: bool = False
    is_confused: bool = False


def confusion_branch(roll: int, rules: Rules = DEFAULT_RULES) -> str:
    # 1-10 self, 11-60 redirect, 61-100 keep (inclusive bounds)
    if roll <= rules.confuse_self_max:
        return CONFUSE_SELF
    if roll <= rules.confuse_redirect_max:
        return CONFUSE_REDIRECT
    return CONFUSE_KEEP


def build_registry(request: RoundRequest) -> Dict[str, Actor]:
    registry: Dict[str, Actor] = {}
    for team, roster in ((ALLIES, request.allies), (ENEMIES, request.enemies)):
        for actor in roster:
            entry = actor.snapshot()
            entry.team = team
            entry.temp = TempState()
            registry[entry.id] = entry
    return registry


def queue_actions(actions: List[Action], registry: Dict[str, Actor]) -> List[Action]:
    """Submitted actions in order, plus a pass for every actor that sent none."""
    queue = list(actions)
    provided = {action.actor_id for action in actions}
    for actor_id in registry:
        if actor_id not in provided:
            queue.append(Action(actor_id=actor_id, kind=ActionKind.PASS.value))
    return queue


def _compare_queued(x: QueuedAction, y: QueuedAction) -> int:
    if x.speed != y.speed:
        return -1 if x.speed > y.speed else 1
    if x.focus != y.focus:
        return -1 if x.focus > y.focus else 1
    if x.team and y.team and x.team != y.team:
        return -1 if x.team == ALLIES else 1
    return 0


def order_actions(queue: List[Action], registry: Dict[str, Actor]) -> List[QueuedAction]:
    """Derived speed desc, focus desc, allies first; stable for anything else."""
    entries = []
    for action in queue:
        actor = registry.get(action.actor_id)
        if actor is None:
            entries.append(QueuedAction(action=action))
            continue
        entries.append(
            QueuedAction(
                action=action,
                speed=round2(actor.speed * actor.temp.speed_multiplier),
                focus=actor.focus,
                team=actor.team,
                is_stunned=actor.temp.is_stunned,
                is_confused=actor.temp.is_confused,
            )
        )
    return sorted(entries, key=cmp_to_key(_compare_queued))


def synergy_from_damage(registry: Dict[str, Actor], damage_taken: Dict[str, float]) -> int:
    """One point per full 10% of max health lost this round, per actor."""
    bonus = 0
    for actor_id, taken in damage_taken.items():
        actor = registry.get(actor_id)
        if actor is None or not actor.max_hp:
            continue
        increments = math.floor(taken * 10 / actor.max_hp)
        if increments > 0:
            bonus += increments
    return bonus


def resolve_round(
    request: RoundRequest,
    rules: Rules = DEFAULT_RULES,
    rng: Optional[random.Random] = None,
) -> RoundResult:
    """
    Resolves one full round against copies of the submitted rosters.
    Ticks every actor, orders the queue, then walks it strictly in order so each
    commit is visible to the next action. The final rosters are the state the
    caller stores and resubmits.
    """
    stochastic = request.stochastic
    if stochastic and rng is None:
        rng = rng_for(request.seed, request.round_number)
    setting = rules.setting(request.universe)

    registry = build_registry(request)
    queue = queue_actions(request.actions, registry)
    timeline: List[TimelineEvent] = []
    damage_taken: Dict[str, float] = {}
    totals = {"synergy": 0.0, "damage": 0.0}
    logger.debug("resolving round: %d actors, %d actions, universe=%s, rng=%s",
                 len(registry), len(queue), request.universe, stochastic)

    def note(event: str, actor_id: Optional[str] = None, **data: Any) -> None:
        timeline.append(TimelineEvent(event, actor_id=actor_id, data=data))

    # Start-of-round ticks for everyone before anything acts
    for actor in registry.values():
        hp_before = actor.hp
        timeline.extend(tick_statuses(actor, stochastic, rules))
        if hp_before > 0 and actor.hp <= 0:
            note("died_from_status", actor.id, hp=actor.hp)

    ordered = order_actions(queue, registry)

    def living_opponents(actor: Actor) -> List[Actor]:
        return [other for other in registry.values() if other.team != actor.team and other.alive]

    def confusion_redirect(planner: Actor, target_id: Optional[str], targets: List[str]) -> Tuple[Optional[str], List[str]]:
        conf_roll = percentile(rng) if stochastic else 1
        branch = confusion_branch(conf_roll, rules)
        if branch == CONFUSE_SELF:
            note("confuse_self_hit_roll", planner.id, roll=conf_roll)
            return planner.id, [planner.id]
        if branch == CONFUSE_REDIRECT:
            pool = living_opponents(planner)
            if not pool:
                note("confuse_no_valid_target", planner.id, roll=conf_roll)
                return target_id, targets
            chosen = pick(pool, rng) if stochastic else pool[0]
            note("confuse_redirect", planner.id, targetId=chosen.id, roll=conf_roll)
            return chosen.id, [chosen.id]
        note("confuse_no_redirect", planner.id, roll=conf_roll)
        return target_id, targets

    def commit(planner: Actor, target: Actor, sim: AttackResult, ability: Ability, kind: str,
               sim_data: Dict[str, Any]) -> None:
        if not sim.hit:
            note("miss", planner.id, action=kind, actorTeam=planner.team, targetId=target.id, sim=sim_data,
                 damageApplied=0, targetPrevHp=target.hp, targetNewHp=target.hp, note="missed")
            return

        prev_hp = target.hp
        target.hp = max(0, target.hp - sim.damage)
        damage_taken[target.id] = damage_taken.get(target.id, 0) + sim.damage
        totals["damage"] += sim.damage

        totals["synergy"] += SYNERGY_PER_HIT
        if target.weakness and target.weakness == ability.type:
            totals["synergy"] += SYNERGY_WEAKNESS
        if sim.critical:
            totals["synergy"] += SYNERGY_CRIT
        if sim.status.applied and sim.status.effect is not None:
            merge_status(target, sim.status.effect)

        note("hit", planner.id, action=kind, actorTeam=planner.team, targetId=target.id, sim=sim_data,
             damageApplied=sim.damage, targetPrevHp=prev_hp, targetNewHp=target.hp)
        if prev_hp > 0 and target.hp <= 0:
            totals["synergy"] += SYNERGY_KILL
            note("kill", planner.id, targetId=target.id, note=f"{target.id} defeated")

    for queued in ordered:
        action = queued.action
        kind = action.kind
        planner = registry.get(action.actor_id)
        if planner is None:
            note("invalid_actor", note=f"Invalid actorId {action.actor_id}, skipped.")
            continue

        if not planner.alive:
            note("skipped_dead", planner.id, action=kind)
            continue

        if queued.is_stunned:
            note("skipped_stunned", planner.id, action=kind)
            continue

        target_id = action.target_id
        targets = list(dict.fromkeys(action.targets))
        if queued.is_confused and kind in OFFENSIVE_KINDS:
            target_id, targets = confusion_redirect(planner, target_id, targets)

        if kind == ActionKind.GUARD.value:
            planner.is_guarding = True
            note("guard", planner.id, action=kind, result="is_guarding")
            continue

        # any other action this round drops a standing guard
        planner.is_guarding = False

        if kind == ActionKind.PASS.value:
            note("pass", planner.id, action=kind, result="no_action")
            continue

        if kind in SINGLE_TARGET_KINDS:
            target = registry.get(target_id) if target_id else None
            if target is None or not target.alive:
                note("invalid_target", planner.id, action=kind, targetId=target_id)
                continue
            sim = simulate_attack(
                planner.snapshot(),
                target.snapshot(),
                action.ability,
                setting,
                stochastic=stochastic,
                force_crit=action.force_crit,
                force_status=action.force_status,
                rng=rng,
                rules=rules,
            )
            commit(planner, target, sim, action.ability, kind, sim.to_dict())
            continue

        if kind == ActionKind.AOE.value:
            chosen = [registry[tid] for tid in targets if tid in registry and registry[tid].alive]
            if not chosen:
                chosen = living_opponents(planner)
            if not chosen:
                note("invalid_target", planner.id, action=kind, targets=targets)
                continue
            aoe: AoeResult = simulate_aoe(
                planner.snapshot(),
                [target.snapshot() for target in chosen],
                action.ability,
                setting,
                stochastic=stochastic,
                mode=action.aoe_mode,
                force_crit=action.force_crit,
                force_status=action.force_status,
                rng=rng,
                rules=rules,
            )
            for entry in aoe.results:
                commit(planner, registry[entry.target_id], entry.result, action.ability, kind, entry.to_dict())
            continue

        note("unknown_action", planner.id, action=kind, result="unknown_action")

    # integer tenths: exactly 30% lost scores 3, where (taken / max_hp) / 0.1 in floats gives 2
    damage_bonus = synergy_from_damage(registry, damage_taken)
    totals["synergy"] += damage_bonus

    summary = RoundSummary(
        universe=request.universe,
        total_synergy=round2(totals["synergy"]),
        total_damage=round2(totals["damage"]),
        damage_synergy_bonus=damage_bonus,
        damage_taken={actor_id: round2(value) for actor_id, value in damage_taken.items()},
        deaths=[actor.id for actor in registry.values() if actor.hp <= 0],
        actions_processed=len(ordered),
    )
    logger.debug("round resolved: damage=%s synergy=%s deaths=%s",
                 summary.total_damage, summary.total_synergy, summary.deaths)
    return RoundResult(
        timeline=timeline,
        summary=summary,
        final_allies=[actor for actor in registry.values() if actor.team == ALLIES],
        final_enemies=[actor for actor in registry.values() if actor.team == ENEMIES],
    )


class MechanicsEngine:
    """Bundles the three entry points around one immutable rules catalog."""

    def __init__(self, rules: Optional[Rules] = None):
        self.rules = rules or DEFAULT_RULES

    def calculate(self, attacker: Actor, defender: Actor, ability: Ability, universe: Optional[str] = None) -> Dict[str, Any]:
        setting = self.rules.setting(universe)
        return {
            "hitChance": hit_chance(attacker, defender, setting, self.rules),
            "damage": calculate_damage(attacker, defender, ability, setting, self.rules),
            "universe": universe,
        }

    def simulate_attack(
        self,
        attacker: Actor,
        defender: Actor,
        ability: Ability,
        universe: Optional[str] = None,
        stochastic: bool = True,
        force_crit: bool = False,
        force_status: bool = False,
        rng: Optional[random.Random] = None,
    ) -> AttackResult:
        return simulate_attack(
            attacker.snapshot(),
            defender.snapshot(),
            ability,
            self.rules.setting(universe),
            stochastic=stochastic,
            force_crit=force_crit,
            force_status=force_status,
            rng=rng,
            rules=self.rules,
        )

    def simulate_aoe(
        self,
        attacker: Actor,
        defenders: List[Actor],
        ability: Ability,
        universe: Optional[str] = None,
        stochastic: bool = True,
        mode: AoeMode = AoeMode.FULL,
        force_crit: bool = False,
        force_status: bool = False,
        rng: Optional[random.Random] = None,
    ) -> AoeResult:
        return simulate_aoe(
            attacker.snapshot(),
            defenders,
            ability,
            self.rules.setting(universe),
            stochastic=stochastic,
            mode=mode,
            force_crit=force_crit,
            force_status=force_status,
            rng=rng,
            rules=self.rules,
        )

    def resolve_round(self, request: RoundRequest, rng: Optional[random.Random] = None) -> RoundResult:
        return resolve_round(request, rules=self.rules, rng=rng)
