# mechanics/content/codex.py
# Descriptive codex served by /codex. Only SETTING_RULES and the numbers in
# balance.py feed the resolution math; everything else is passed through.
CODEX_VERSION = "1.2"

STATUS_EFFECTS = {
    "paralysis": {"base_chance": 25, "description": "Stun: target skips next X turns"},
    "stun": {"base_chance": 25, "description": "Stun: target skips next X turns"},
    "burn": {"base_chance": 20, "description": "Burn: damage over time for X turns"},
    "bleed": {"base_chance": 20, "description": "Bleed: physical DOT for X turns"},
    "confuse": {"base_chance": 15, "description": "Confuse: attacks random target or self occasionally"},
    "regen": {"base_chance": 0, "description": "Regeneration: heal over time"},
    "shield": {"base_chance": 0, "description": "Temporary damage reduction by % for duration"},
    "slow": {"base_chance": 20, "description": "Reduces effective speed for duration"},
    "weaken": {"base_chance": 20, "description": "Reduces attack multiplier for duration"},
}

UNIVERSE_MODIFIERS = {
    "persona_5": {"weakness_extra_turn": True, "baton_pass_turn_extension": True, "elemental_affinities": True},
    "jojo": {"stands_active": True, "stand_autonomy": True, "stand_mastery_affects_damage": True},
    "yakuza": {"heat_gauge": True, "heat_actions": True, "environmental_finisher_windows": True},
    "baldurs_gate_3": {"dnd_rules": True, "saving_throws": True, "spell_slots": True, "conditions": True},
    "mass_effect": {"biotics_tech_cooldowns": True, "cover_system": True, "cover_defense_multiplier": 1.3},
    "kingdom_hearts": {"drive_forms": True, "keyblade_variants": True, "magic_mp_pool": True},
    "invincible": {"flight_durability": True, "brutal_damage_scaling": True, "civilian_casualty_mechanics": True},
    "demon_slayer": {"breathing_styles": True, "nichirin_affinity": True, "demon_arts_resistance": True},
    "dragon_ball": {"ki_pool": True, "ki_charge_attack_bonus_pct": 50, "transformations": True, "fatigue_rolls": True},
    "final_fantasy_7": {"materia_slots": True, "limit_breaks": True, "summon_mechanics": True},
    "marvel": {"mutation_affiliations": True, "tech_mystic_cosmic_tiers": True, "faction_hooks": True},
    "seven_deadly_sins": {"sacred_treasure_bonds": True, "curse_affinity": True, "power_level_display": True},
    "steven_universe": {"fusion_rules": True, "gem_summons": True, "emotional_resonance_buffs": True},
    "street_fighter": {"combo_meter": True, "ex_moves": True, "frame_trap_mechanics": True},
    "witcher_3": {"signs": True, "alchemy_toxicity": True, "bestiary_weakness_exploit": True},
    "sonic_the_hedgehog": {"rings_as_health_buffer": True, "momentum_damage_bonus": True, "platform_phases": True},
    "god_of_war": {"rage_meter": True, "runic_finishers": True, "heavy_impact_mechanics": True},
    "my_hero_academia": {"hero_points": True, "quirks_evolution_willpower_checks": True, "support_role_bonus": True},
    "hunter_x_hunter": {"nen_categories": True, "aura_techniques_in": True, "gyo_en_ko_system": True},
    "star_wars": {"force_pool_shared": True, "lightsaber_form_variants": True, "alignment_light_dark": True},
    "mortal_kombat": {"chi_meter": True, "fatalities_brutalities": True, "realm_faction_effects": True},
    "tekken": {"rage_system": True, "rage_arts_drives": True, "juggle_bounds": True},
    "resident_evil": {"ammo_economy": True, "fear_status": True, "limited_inventory_weight": True},
    "kung_fu_panda": {"chi_flow": True, "animal_style_mastery": True, "spirit_world_echoes": True},
    "dc": {"meta_gene_surge": True, "legacy_resonance": True, "power_scaling_tiers": True},
}

# The five flags the damage/hit math reads. Unlisted universes are neutral.
SETTING_RULES = {
    "persona_5": {"weakness_halves_defense": True, "weakness_exploit_bonus": True},
    "mass_effect": {"cover_defense": True},
    "witcher_3": {"vulnerability_discount": True},
    "sonic_the_hedgehog": {"momentum_discount": True},
    "dragon_ball": {"weakness_exploit_bonus": True},
    "final_fantasy_7": {"weakness_exploit_bonus": True},
}

MECHANICS_CODEX = {
    "version": CODEX_VERSION,
    "system": "ProjectX-RPG",
    "mechanics": {
        "hit_probability": {
            "base": 70,
            "formula_desc": "70 + (attacker_focus - defender_speed) * 2",
            "critical_chance_formula": "attacker_focus / 5",
            "dodge_chance_formula": "speed_difference * 2",
        },
        "damage": {
            "formula_desc": "(attack * ability_power * archetype_multiplier) - (defense * universe_modifier)",
            "critical_multiplier": 1.5,
            "weakness_multiplier": 2,
            "guard_multiplier": 0.5,
        },
        "status_effects": STATUS_EFFECTS,
        "resources": {
            "hp": "vitality",
            "sp_energy": "special ability pool (universe-dependent)",
            "spy_points": "team-based synergy meter",
            "adaptation_xp": "universe mastery track",
        },
    },
    "boss_ai": {
        "phase_1": {"hp_range": "100-76%", "actions": {"basic": 60, "minor_abilities": 30, "buffs": 10}},
        "phase_2": {"hp_range": "75-51%", "actions": {"strong_abilities": 50, "debuffs": 20, "summons": 20, "cinematic": 10}},
        "phase_3": {"hp_range": "50-26%", "actions": {"desperation_combo": 30, "all_out": 25, "environmental": 25, "heal_shield": 20}},
        "phase_4": {"hp_range": "25-0%", "actions": {"cinematic_loop": 100, "random_desperation_chance_pct": 5}},
    },
    "enemy_scaling": {
        "hp_formula_desc": "(average_party_level * 50) * boss_modifier",
        "attack_formula_desc": "(average_party_attack * 0.8 - 1.2)",
        "defense_formula_desc": "(average_party_defense * 0.8 - 1.2)",
        "modifiers": {"mob": 1, "elite": 2, "boss": 5, "raid_boss": 10},
    },
    "voice_emotion": {
        "pre_attack": ["angry", "confident", "fearful"],
        "low_hp": ["panic", "desperation"],
        "synergy": ["fusion", "uplift"],
    },
    "music_automation": {
        "normal_battle": "high BPM playlist",
        "boss_phase_1": "loop intro",
        "boss_phase_2": "bridge section",
        "boss_phase_3": "chorus section",
        "final_phase": "randomized drop",
        "victory": "victory theme",
        "defeat": "defeat theme",
    },
    "universe_modifiers": UNIVERSE_MODIFIERS,
    "archetypes": [],
}
