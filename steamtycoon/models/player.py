"""Player model for Steam Tycoon."""

from dataclasses import dataclass
from enum import Enum


class SpecialAction(Enum):
    """Special actions, in selection-table order. Each is held by at most
    one player per turn."""

    FIRST_MOVE = "first_move"
    FIRST_BUILD = "first_build"
    ENGINEER = "engineer"
    LOCOMOTIVE = "locomotive"
    URBANIZATION = "urbanization"
    PRODUCTION = "production"
    TURN_ORDER = "turn_order"


@dataclass
class PlayerState:
    """Represents a player in the game.

    Attributes:
        id: Unique identifier for the player.
        name: Display name of the player.
        color: Track color.
        cash: Current cash in dollars.
        shares: Shares issued so far.
        income: Income track position (may be negative).
        locomotive: Locomotive level, bounds the links per delivery.
        selected_action: Special action held this turn.
        eliminated: Whether the player went bankrupt.
    """

    id: str
    name: str
    color: str = ""
    cash: int = 0
    shares: int = 0
    income: int = 0
    locomotive: int = 1
    selected_action: SpecialAction | None = None
    eliminated: bool = False

    @property
    def is_engineer(self) -> bool:
        """Whether the player holds the Engineer action this turn."""
        return self.selected_action == SpecialAction.ENGINEER

    def holds(self, action: SpecialAction) -> bool:
        return self.selected_action == action

    def add_cash(self, amount: int) -> None:
        """Add cash to player."""
        self.cash += amount

    def remove_cash(self, amount: int) -> None:
        """Remove cash from player."""
        if amount > self.cash:
            raise ValueError(f"Cannot remove {amount}, only have {self.cash}")
        self.cash -= amount

    def can_afford(self, amount: int) -> bool:
        """Check if player can afford an amount."""
        return self.cash >= amount

    @property
    def expenses(self) -> int:
        """Per-turn expense: one per share plus one per locomotive level."""
        return self.shares + self.locomotive

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "cash": self.cash,
            "shares": self.shares,
            "income": self.income,
            "locomotive": self.locomotive,
            "selected_action": self.selected_action.value if self.selected_action else None,
            "eliminated": self.eliminated,
        }
