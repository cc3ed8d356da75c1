"""Fixed color palette for habits — configuration only.

Tags identify a habit in the UI and have no effect on scoring. They are stored
and returned exactly as given, so lookups are case-sensitive.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ColorTag:
    hex: str
    name: str


PALETTE: dict[str, ColorTag] = {
    "#FBBA16": ColorTag(hex="#FBBA16", name="habit-yellow"),
    "#00492C": ColorTag(hex="#00492C", name="habit-dark-green"),
    "#9BCCD0": ColorTag(hex="#9BCCD0", name="habit-light-blue"),
    "#E22028": ColorTag(hex="#E22028", name="habit-red"),
    "#E2B2B4": ColorTag(hex="#E2B2B4", name="habit-pink"),
    "#1E4380": ColorTag(hex="#1E4380", name="habit-dark-blue"),
    "#B1D8B8": ColorTag(hex="#B1D8B8", name="habit-light-green"),
}


def get_color(tag: str) -> ColorTag | None:
    return PALETTE.get(tag)


def list_colors() -> list[ColorTag]:
    return list(PALETTE.values())


def is_valid_color(tag: object) -> bool:
    return isinstance(tag, str) and tag in PALETTE
