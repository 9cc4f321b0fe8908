# bot/systems/progression.py
"""
XP curve.

Level 1 is free; reaching level L (L >= 2) costs floor(base * mult^(L-2))
XP on top of the previous level. Everything here is a pure function of
the XP value.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class LevelSnapshot:
    level: int
    xp: int
    progress: int
    xp_needed: int
    current_level_xp: int
    next_level_xp: int


class ProgressionCurve:
    def __init__(self, base: int = 100, multiplier: float = 1.5):
        if base < 1:
            raise ValueError("base must be >= 1")
        if multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        self.base = base
        self.multiplier = multiplier
        # totals[i] == total_xp_for_level(i + 1); grown on demand
        self._totals: List[int] = [0]

    def xp_required_for_level(self, level: int) -> int:
        if level <= 1:
            return 0
        return int(self.base * self.multiplier ** (level - 2))

    def total_xp_for_level(self, level: int) -> int:
        if level <= 1:
            return 0
        while len(self._totals) < level:
            nxt = len(self._totals) + 1
            self._totals.append(self._totals[-1] + self.xp_required_for_level(nxt))
        return self._totals[level - 1]

    def calculate_level(self, xp: int) -> int:
        if xp < self.base:
            return 1
        level = 1
        while self.total_xp_for_level(level + 1) <= xp:
            level += 1
        return level

    def get_level_progress(self, xp: int) -> int:
        """Floor percentage (0-100) through the current level band."""
        level = self.calculate_level(xp)
        current = self.total_xp_for_level(level)
        nxt = self.total_xp_for_level(level + 1)
        return int(100 * (xp - current) / (nxt - current))

    def xp_needed_for_next(self, xp: int) -> int:
        return self.total_xp_for_level(self.calculate_level(xp) + 1) - xp

    def snapshot(self, xp: int) -> LevelSnapshot:
        level = self.calculate_level(xp)
        return LevelSnapshot(
            level=level,
            xp=xp,
            progress=self.get_level_progress(xp),
            xp_needed=self.total_xp_for_level(level + 1) - xp,
            current_level_xp=self.total_xp_for_level(level),
            next_level_xp=self.total_xp_for_level(level + 1),
        )
