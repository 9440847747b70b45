# mechanics/content/balance.py
DEFAULTS = {
    "hit_base": 70,
    "hit_focus_factor": 2,
    "cover_hit_penalty": 15,
    "crit_divisor": 5,
    "critical_multiplier": 1.5,
    "weakness_multiplier": 2.0,
    "guard_multiplier": 0.5,
    "status_duration": 2,
    "status_potency": 0,
    "confuse_self_max": 10,
    "confuse_redirect_max": 60,
}

# Fallback potency used when a ticking effect carries none.
TICK_DEFAULTS = {
    "burn": 5,
    "bleed": 4,
    "regen": 6,
    "slow": 0.8,
    "weaken": 0.8,
}

# Setting modifiers applied to the defender's defense term.
SETTING_MODIFIERS = {
    "weakness": 0.5,
    "cover": 1.5,
    "vulnerability": 0.6,
    "momentum": 0.9,
}

CAPS = {
    "hit_min": 1,
    "hit_max": 99,
    "status_min": 0,
    "status_max": 95,
    "roster_max": 10,
}
