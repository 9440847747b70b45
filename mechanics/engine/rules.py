# mechanics/engine/rules.py
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .models import Ability, Actor, StatusName
from ..content.balance import CAPS, DEFAULTS, SETTING_MODIFIERS, TICK_DEFAULTS
from ..content.codex import SETTING_RULES, STATUS_EFFECTS


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def round2(x: float) -> float:
    # half-up at two decimals
    return math.floor(x * 100 + 0.5) / 100


@dataclass(frozen=True)
class SettingRules:
    key: Optional[str] = None
    cover_defense: bool = False
    weakness_halves_defense: bool = False
    vulnerability_discount: bool = False
    momentum_discount: bool = False
    weakness_exploit_bonus: bool = False


NEUTRAL_SETTING = SettingRules()


@dataclass(frozen=True)
class Rules:
    """Immutable rules catalog. Build once and hand it to the engine."""
    hit_base: float
    hit_focus_factor: float
    cover_hit_penalty: float
    crit_divisor: float
    critical_multiplier: float
    weakness_multiplier: float
    guard_multiplier: float
    status_duration: int
    status_potency: float
    confuse_self_max: int
    confuse_redirect_max: int
    hit_min: float
    hit_max: float
    status_min: float
    status_max: float
    roster_max: int
    status_base_chances: Mapping[str, float]
    tick_defaults: Mapping[str, float]
    setting_modifiers: Mapping[str, float]
    settings: Mapping[str, SettingRules]

    @classmethod
    def from_content(cls) -> "Rules":
        settings = {
            key: SettingRules(key=key, **flags)
            for key, flags in SETTING_RULES.items()
        }
        return cls(
            hit_base=DEFAULTS["hit_base"],
            hit_focus_factor=DEFAULTS["hit_focus_factor"],
            cover_hit_penalty=DEFAULTS["cover_hit_penalty"],
            crit_divisor=DEFAULTS["crit_divisor"],
            critical_multiplier=DEFAULTS["critical_multiplier"],
            weakness_multiplier=DEFAULTS["weakness_multiplier"],
            guard_multiplier=DEFAULTS["guard_multiplier"],
            status_duration=DEFAULTS["status_duration"],
            status_potency=DEFAULTS["status_potency"],
            confuse_self_max=DEFAULTS["confuse_self_max"],
            confuse_redirect_max=DEFAULTS["confuse_redirect_max"],
            hit_min=CAPS["hit_min"],
            hit_max=CAPS["hit_max"],
            status_min=CAPS["status_min"],
            status_max=CAPS["status_max"],
            roster_max=CAPS["roster_max"],
            status_base_chances=MappingProxyType(
                {name: data.get("base_chance", 0) for name, data in STATUS_EFFECTS.items()}
            ),
            tick_defaults=MappingProxyType(dict(TICK_DEFAULTS)),
            setting_modifiers=MappingProxyType(dict(SETTING_MODIFIERS)),
            settings=MappingProxyType(settings),
        )

    def setting(self, key: Optional[str]) -> SettingRules:
        if not key:
            return NEUTRAL_SETTING
        return self.settings.get(key, SettingRules(key=key))

    def base_chance(self, name: StatusName) -> float:
        return self.status_base_chances.get(name.value, 0)

    def tick_default(self, name: StatusName) -> float:
        return self.tick_defaults.get(name.value, 0)


DEFAULT_RULES = Rules.from_content()


def hit_chance(attacker: Actor, defender: Actor, setting: SettingRules, rules: Rules = DEFAULT_RULES) -> float:
    hit = rules.hit_base + (attacker.focus - defender.speed) * rules.hit_focus_factor
    if setting.cover_defense and defender.in_cover:
        hit -= rules.cover_hit_penalty
    return clamp(round2(hit), rules.hit_min, rules.hit_max)


def crit_chance(attacker: Actor, rules: Rules = DEFAULT_RULES) -> float:
    return max(0, attacker.focus / rules.crit_divisor)


def setting_modifier(defender: Actor, ability: Ability, setting: SettingRules, rules: Rules = DEFAULT_RULES) -> float:
    modifiers = rules.setting_modifiers
    if setting.weakness_halves_defense and defender.weakness and defender.weakness == ability.type:
        return modifiers["weakness"]
    if setting.cover_defense and defender.in_cover:
        return modifiers["cover"]
    if setting.vulnerability_discount and ability.type in defender.vulnerable_to:
        return modifiers["vulnerability"]
    if setting.momentum_discount and ability.type == "momentum":
        return modifiers["momentum"]
    return 1.0


def calculate_damage(attacker: Actor, defender: Actor, ability: Ability, setting: SettingRules,
                     rules: Rules = DEFAULT_RULES) -> float:
    offense = attacker.attack * ability.power * ability.archetype_multiplier
    raw = max(0, offense - defender.defense * setting_modifier(defender, ability, setting, rules))
    if setting.weakness_exploit_bonus and defender.weakness and defender.weakness == ability.type:
        raw = raw * rules.weakness_multiplier
    return round2(raw)


def status_chance(attacker: Actor, defender: Actor, base_chance: float, rules: Rules = DEFAULT_RULES) -> float:
    # zero (or negative) willpower reads as 1
    will = max(defender.willpower, 1)
    return clamp((attacker.focus / will) * base_chance, rules.status_min, rules.status_max)
