"""Deterministic stand-ins for random.Random used across battle tests."""
from typing import List


class FixedRng:
    """randint always returns the low bound; random() replays a script."""

    def __init__(self, *rolls: float, default: float = 0.99):
        self.rolls: List[float] = list(rolls)
        self.default = default
        self.random_calls = 0

    def randint(self, a, b):
        return a

    def randrange(self, start, stop=None):
        return start if stop is not None else 0

    def random(self):
        self.random_calls += 1
        if self.rolls:
            return self.rolls.pop(0)
        return self.default


class NoDrawRng(FixedRng):
    def random(self):
        raise AssertionError("random() should not be drawn here")


def scripted_policy(*actions):
    queue = list(actions)

    def policy(state, rng):
        return queue.pop(0) if queue else "attack"
    return policy


def always(action):
    return lambda state, rng: action
