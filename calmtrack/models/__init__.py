from .reading import StressReading
from .streak import StreakRecord

__all__ = [
    "StressReading",
    "StreakRecord",
]
