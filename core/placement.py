# -*- coding: utf-8 -*-
# core/placement.py
import logging
import math
from typing import Optional, Tuple

from .models import Placement

logger = logging.getLogger(__name__)


def _clamp_offset(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def resolve_placement(natural_width: float, natural_height: float,
                      slot_width: float, slot_height: float,
                      scale: float = 1.0,
                      offset: Tuple[float, float] = (0.0, 0.0),
                      slot_origin: Tuple[float, float] = (0.0, 0.0)) -> Optional[Placement]:
    """Aspect-fill the image into the slot, then apply user scale and offset.

    The offset is a fraction of the slack between slot and scaled image:
    0 centers the image, +1/-1 pushes it to the slot edge on that axis.
    Slack is negative when the image overflows the slot, the draw is
    clipped to the slot by the caller.

    Returns None when the inputs or the result are not drawable.
    """
    values = (natural_width, natural_height, slot_width, slot_height, scale)
    if not all(math.isfinite(v) and v > 0 for v in values):
        logger.debug(f"Skipping placement: image={natural_width}x{natural_height}, "
                     f"slot={slot_width}x{slot_height}, scale={scale}")
        return None

    image_aspect = natural_width / natural_height
    slot_aspect = slot_width / slot_height

    if image_aspect > slot_aspect:
        base_height = slot_height
        base_width = base_height * image_aspect
    else:
        base_width = slot_width
        base_height = base_width / image_aspect

    target_width = base_width * scale
    target_height = base_height * scale

    slack_x = slot_width - target_width
    slack_y = slot_height - target_height

    offset_x = _clamp_offset(offset[0])
    offset_y = _clamp_offset(offset[1])

    x = slot_origin[0] + slack_x / 2 + offset_x * abs(slack_x) / 2
    y = slot_origin[1] + slack_y / 2 + offset_y * abs(slack_y) / 2

    result = (x, y, target_width, target_height)
    if not all(math.isfinite(v) for v in result) or target_width <= 0 or target_height <= 0:
        logger.debug(f"Skipping placement with non-drawable result {result}")
        return None

    return Placement(x=x, y=y, width=target_width, height=target_height)
