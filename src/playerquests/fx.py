from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class ParticleFX(str, Enum):
    """Particle effects the host knows how to play."""

    SPARKLE = "sparkle"
    SMOKE = "smoke"


@dataclass(frozen=True)
class EffectRequest:
    """Fire-and-forget request to play an effect somewhere."""

    kind: ParticleFX
    location: Tuple[float, float, float]
