# mechanics/engine/models.py
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ALLIES = "allies"
ENEMIES = "enemies"


class StatusName(str, Enum):
    PARALYSIS = "paralysis"
    STUN = "stun"
    BURN = "burn"
    BLEED = "bleed"
    CONFUSE = "confuse"
    REGEN = "regen"
    SHIELD = "shield"
    SLOW = "slow"
    WEAKEN = "weaken"


class ActionKind(str, Enum):
    PASS = "pass"
    GUARD = "guard"
    ATTACK = "attack"
    ABILITY = "ability"
    AOE = "aoe"


class AoeMode(str, Enum):
    FULL = "full"
    FALLOFF = "falloff"
    CONE = "cone"


@dataclass
class StatusEffect:
    name: StatusName
    duration: int
    potency: float = 0
    source_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "duration": self.duration,
            "potency": self.potency,
            "sourceId": self.source_id,
        }


@dataclass
class TempState:
    """Per-round derived modifiers. Rebuilt by every status tick."""
    speed_multiplier: float = 1.0
    attack_multiplier: float = 1.0
    is_stunned: bool = False
    is_confused: bool = False
    shield_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speedMultiplier": self.speed_multiplier,
            "attackMultiplier": self.attack_multiplier,
            "isStunned": self.is_stunned,
            "isConfused": self.is_confused,
            "shieldValue": self.shield_value,
        }


@dataclass
class Actor:
    id: str
    team: str = ALLIES
    hp: float = 0
    max_hp: float = 0
    attack: float = 0
    defense: float = 0
    focus: float = 0
    speed: float = 0
    willpower: float = 0
    weakness: Optional[str] = None
    vulnerable_to: List[str] = field(default_factory=list)
    is_guarding: bool = False
    in_cover: bool = False
    status_effects: List[StatusEffect] = field(default_factory=list)
    temp: TempState = field(default_factory=TempState)
    distance: Optional[float] = None        # aoe falloff hint, 0..1
    angle: Optional[float] = None           # aoe cone hint
    extra: Dict[str, Any] = field(default_factory=dict)  # passthrough keys

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def get_status(self, name: StatusName) -> Optional[StatusEffect]:
        for effect in self.status_effects:
            if effect.name == name:
                return effect
        return None

    def snapshot(self) -> "Actor":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(self.extra)
        data.update({
            "id": self.id,
            "team": self.team,
            "hp": self.hp,
            "maxHp": self.max_hp,
            "attack": self.attack,
            "defense": self.defense,
            "focus": self.focus,
            "speed": self.speed,
            "willpower": self.willpower,
            "weakness": self.weakness,
            "vulnerableTo": list(self.vulnerable_to),
            "isGuarding": self.is_guarding,
            "cover": self.in_cover,
            "statusEffects": [effect.to_dict() for effect in self.status_effects],
            "temp": self.temp.to_dict(),
        })
        if self.distance is not None:
            data["distance"] = self.distance
        if self.angle is not None:
            data["angle"] = self.angle
        return data


@dataclass
class StatusSpec:
    name: StatusName
    base_chance: Optional[float] = None
    duration: Optional[int] = None
    potency: Optional[float] = None


@dataclass
class Ability:
    power: float = 1.0
    archetype_multiplier: float = 1.0
    type: str = "physical"
    status: Optional[StatusSpec] = None
    aoe_falloff: float = 0.0
    cone_angle: Optional[float] = None


@dataclass
class Action:
    actor_id: Optional[str]
    kind: str = ActionKind.PASS.value
    target_id: Optional[str] = None
    targets: List[str] = field(default_factory=list)
    ability: Ability = field(default_factory=Ability)
    aoe_mode: AoeMode = AoeMode.FULL
    force_crit: bool = False
    force_status: bool = False


@dataclass
class TimelineEvent:
    event: str
    actor_id: Optional[str] = None
    phase: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"event": self.event}
        if self.phase is not None:
            out["phase"] = self.phase
        if self.actor_id is not None:
            out["actorId"] = self.actor_id
        out.update(self.data)
        return out


@dataclass
class StatusOutcome:
    attempted: bool = False
    applied: bool = False
    name: Optional[StatusName] = None
    chance: float = 0
    roll: Optional[int] = None
    effect: Optional[StatusEffect] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempted": self.attempted,
            "applied": self.applied,
            "name": self.name.value if self.name else None,
            "chancePercent": self.chance,
            "roll": self.roll,
        }


@dataclass
class AttackResult:
    universe: Optional[str]
    hit_chance: float
    crit_chance: float
    roll: Optional[int]
    hit: bool
    critical: bool = False
    damage: float = 0
    status: StatusOutcome = field(default_factory=StatusOutcome)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "universe": self.universe,
            "hitChance": self.hit_chance,
            "critChance": self.crit_chance,
            "roll": self.roll,
            "didHit": self.hit,
            "isCrit": self.critical,
            "damage": self.damage,
            "statusResult": self.status.to_dict(),
        }


@dataclass
class AoeTargetResult:
    target_id: str
    distance: float
    aoe_multiplier: float
    result: AttackResult

    def to_dict(self) -> Dict[str, Any]:
        data = {"targetId": self.target_id, "distance": self.distance, "aoeMultiplier": self.aoe_multiplier}
        data.update(self.result.to_dict())
        return data


@dataclass
class AoeResult:
    universe: Optional[str]
    results: List[AoeTargetResult] = field(default_factory=list)
    total_targets: int = 0
    hits: int = 0
    misses: int = 0
    crits: int = 0
    total_damage: float = 0
    avg_damage_per_hit: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "universe": self.universe,
            "results": [entry.to_dict() for entry in self.results],
            "summary": {
                "totalTargets": self.total_targets,
                "hits": self.hits,
                "misses": self.misses,
                "crits": self.crits,
                "totalDamage": self.total_damage,
                "avgDamagePerHit": self.avg_damage_per_hit,
            },
        }


@dataclass
class RoundRequest:
    allies: List[Actor]
    enemies: List[Actor]
    actions: List[Action]
    universe: Optional[str] = None
    stochastic: bool = True
    seed: Optional[int] = None
    round_number: int = 0


@dataclass
class RoundSummary:
    universe: Optional[str]
    total_synergy: float = 0
    total_damage: float = 0
    damage_synergy_bonus: int = 0
    damage_taken: Dict[str, float] = field(default_factory=dict)
    deaths: List[str] = field(default_factory=list)
    actions_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "universe": self.universe,
            "totalSynergy": self.total_synergy,
            "totalDamageThisRound": self.total_damage,
            "damageSynergyBonus": self.damage_synergy_bonus,
            "damageTaken": dict(self.damage_taken),
            "deaths": list(self.deaths),
            "actorsProcessed": self.actions_processed,
        }


@dataclass
class RoundResult:
    timeline: List[TimelineEvent]
    summary: RoundSummary
    final_allies: List[Actor]
    final_enemies: List[Actor]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeline": [event.to_dict() for event in self.timeline],
            "summary": self.summary.to_dict(),
            "finalAllies": [actor.to_dict() for actor in self.final_allies],
            "finalEnemies": [actor.to_dict() for actor in self.final_enemies],
        }
