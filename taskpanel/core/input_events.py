import enum
from dataclasses import dataclass

BUTTON_PRIMARY = 1
BUTTON_MIDDLE = 2
BUTTON_SECONDARY = 3


class ScrollDirection(enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ButtonEvent:
    button: int
    time: int = 0

    def get_button(self) -> int:
        return self.button


@dataclass(frozen=True)
class ScrollEvent:
    direction: ScrollDirection
    dx: float = 0.0
    dy: float = 0.0
    time: int = 0

    @classmethod
    def from_deltas(cls, dx: float, dy: float, time: int = 0) -> "ScrollEvent":
        """Map a Gtk scroll controller delta pair to a discrete direction."""
        if abs(dx) > abs(dy):
            direction = ScrollDirection.RIGHT if dx > 0 else ScrollDirection.LEFT
        else:
            direction = ScrollDirection.DOWN if dy > 0 else ScrollDirection.UP
        return cls(direction, dx, dy, time)
