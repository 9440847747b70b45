# mechanics/engine/dice.py
import random
from typing import Optional


def rng_for(seed: Optional[int], round_number: int = 0) -> random.Random:
    # deterministic per request seed + round; fresh generator when unseeded
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{round_number}")


def roll(dice: str, r: random.Random) -> int:
    # supports "d6", "d20", "d100" etc.
    if not dice.startswith("d"):
        raise ValueError("dice must be like 'd20'")
    sides = int(dice[1:])
    return r.randint(1, sides)


def percentile(r: random.Random) -> int:
    return roll("d100", r)


def pick(options: list, r: random.Random):
    return options[roll(f"d{len(options)}", r) - 1]
