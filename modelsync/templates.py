"""Rig templates: starter bone/cube sets merged under a caller's model spec."""

from dataclasses import dataclass
from typing import Optional

from modelsync.errors import ModelSpecError

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class RigPart:
    id: str
    size: Vec3
    offset: Vec3
    pivot: Optional[Vec3] = None
    parent: Optional[str] = None
    inflate: Optional[float] = None
    mirror: Optional[bool] = None


ZERO: Vec3 = (0.0, 0.0, 0.0)

RIG_TEMPLATES: dict[str, list[RigPart]] = {
    "empty": [],
    "biped": [
        RigPart("root", ZERO, ZERO, pivot=ZERO),
        RigPart("body", (8, 12, 4), (-4, 12, -2), pivot=(0, 24, 0), parent="root"),
        RigPart("head", (8, 8, 8), (-4, 24, -4), pivot=(0, 24, 0), parent="body"),
        RigPart("left_arm", (4, 12, 4), (4, 12, -2), pivot=(5, 22, 0), parent="body"),
        RigPart("right_arm", (4, 12, 4), (-8, 12, -2), pivot=(-5, 22, 0), parent="body", mirror=True),
        RigPart("left_leg", (4, 12, 4), (0, 0, -2), pivot=(2, 12, 0), parent="root"),
        RigPart("right_leg", (4, 12, 4), (-4, 0, -2), pivot=(-2, 12, 0), parent="root", mirror=True),
    ],
    "quadruped": [
        RigPart("root", ZERO, ZERO, pivot=ZERO),
        RigPart("body", (10, 8, 16), (-5, 6, -8), pivot=(0, 10, 0), parent="root"),
        RigPart("head", (8, 8, 8), (-4, 8, -14), pivot=(0, 12, -6), parent="body"),
        RigPart("leg_front_left", (4, 6, 4), (1, 0, -7), pivot=(3, 6, -5), parent="root"),
        RigPart("leg_front_right", (4, 6, 4), (-5, 0, -7), pivot=(-3, 6, -5), parent="root", mirror=True),
        RigPart("leg_back_left", (4, 6, 4), (1, 0, 3), pivot=(3, 6, 5), parent="root"),
        RigPart("leg_back_right", (4, 6, 4), (-5, 0, 3), pivot=(-3, 6, 5), parent="root", mirror=True),
    ],
    "block_entity": [
        RigPart("root", ZERO, ZERO, pivot=ZERO),
        RigPart("base", (16, 16, 16), (-8, 0, -8), pivot=ZERO, parent="root"),
    ],
}


def build_rig_template(kind: str) -> list[RigPart]:
    """Return the ordered parts of a rig template (parents before children)."""
    parts = RIG_TEMPLATES.get(kind)
    if parts is None:
        raise ModelSpecError(
            f"Unknown rig template: {kind}",
            fix=f"Use one of: {', '.join(RIG_TEMPLATES)}",
        )
    return list(parts)
