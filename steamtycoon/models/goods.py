"""Goods display and bag for Steam Tycoon."""

import logging
import random
from dataclasses import dataclass, field

from .map_descriptor import CubeColor, GoodsColumnDef


@dataclass
class GoodsColumn:
    """One column of the goods display.

    Attributes:
        id: Column label.
        row_count: Number of slots.
        start_index: Global index of the column's top slot.
        city_ref: Name of the city this column feeds (None until urbanized
            for lettered columns).
        new_city_letter: New-city tile letter the column waits for.
    """

    id: str
    row_count: int
    start_index: int
    city_ref: str | None = None
    new_city_letter: str | None = None

    @property
    def is_active(self) -> bool:
        """A column is active once it feeds a city."""
        return self.city_ref is not None

    @property
    def indices(self) -> range:
        """Global slot indices of this column, top first."""
        return range(self.start_index, self.start_index + self.row_count)


@dataclass
class GrowthReport:
    """Outcome of one goods growth phase.

    Attributes:
        rolls: Die faces rolled, one per active player.
        placed: (column id, cube) for each cube placed, in roll order.
        discarded: Columns that were full and skipped their cube.
        idle: Rolled columns with no active city behind them.
        bag_exhausted: Whether growth stopped because the bag ran dry.
    """

    rolls: list[int] = field(default_factory=list)
    placed: list[tuple[str, CubeColor]] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    idle: list[str] = field(default_factory=list)
    bag_exhausted: bool = False


class GoodsDisplay:
    """The goods display: fixed slots in named columns, plus the bag.

    Attributes:
        columns: Columns in slot order.
        slots: Cube (or None) for each global slot index.
        bag: Undrawn cubes; draws take from the end.
        delivered: Cubes removed from play by deliveries.
    """

    def __init__(
        self, column_defs: list[GoodsColumnDef], logger: logging.Logger | None = None
    ) -> None:
        """Lay out an empty display.

        Args:
            column_defs: Column layout from the map descriptor.
            logger: Logger to report through.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.columns: dict[str, GoodsColumn] = {}
        start = 0
        for column_def in column_defs:
            self.columns[column_def.id] = GoodsColumn(
                id=column_def.id,
                row_count=column_def.row_count,
                start_index=start,
                city_ref=column_def.city_ref,
                new_city_letter=column_def.new_city_letter,
            )
            start += column_def.row_count
        self.slots: list[CubeColor | None] = [None] * start
        self.bag: list[CubeColor] = []
        self.delivered: list[CubeColor] = []

    def initialize(self, starting_bag: list[CubeColor], rng: random.Random) -> None:
        """Shuffle the starting bag and fill every display slot from it.

        Args:
            starting_bag: All cubes in the game.
            rng: Random source used for the shuffle.

        Raises:
            ValueError: If the bag cannot fill the display.
        """
        if len(starting_bag) < len(self.slots):
            raise ValueError(
                f"Starting bag of {len(starting_bag)} cannot fill {len(self.slots)} slots"
            )
        bag = list(starting_bag)
        rng.shuffle(bag)
        self.slots = [bag.pop() for _ in self.slots]
        self.bag = bag
        self.delivered = []
        self.logger.debug(f"Goods display seeded, {len(self.bag)} cubes left in bag")

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    def column_of(self, index: int) -> GoodsColumn | None:
        """Get the column containing a global slot index."""
        for column in self.columns.values():
            if index in column.indices:
                return column
        return None

    def column_for_letter(self, letter: str) -> GoodsColumn | None:
        """Get the column waiting for a new-city letter."""
        for column in self.columns.values():
            if column.new_city_letter == letter:
                return column
        return None

    def cubes_in(self, column_id: str) -> list[CubeColor | None]:
        """Slot contents of a column, top first."""
        column = self.columns[column_id]
        return [self.slots[i] for i in column.indices]

    def get_empty_slots(self) -> list[int]:
        """Indices of every empty slot."""
        return [i for i, cube in enumerate(self.slots) if cube is None]

    def is_valid_slot(self, index: int) -> bool:
        return isinstance(index, int) and 0 <= index < len(self.slots)

    def peek(self, count: int) -> list[CubeColor]:
        """The next ``count`` cubes a draw would return, in draw order."""
        if count > len(self.bag):
            raise ValueError(f"Bag holds {len(self.bag)} cubes, cannot draw {count}")
        return [self.bag[-1 - i] for i in range(count)]

    def draw(self, count: int) -> list[CubeColor]:
        """Remove and return cubes from the bag.

        Raises:
            ValueError: If the bag holds fewer than ``count`` cubes.
        """
        cubes = self.peek(count)
        del self.bag[len(self.bag) - count :]
        return cubes

    def place(self, index: int, cube: CubeColor) -> None:
        """Put a cube into an empty slot.

        Raises:
            ValueError: If the slot is occupied.
        """
        if self.slots[index] is not None:
            raise ValueError(f"Slot {index} already holds {self.slots[index].value}")
        self.slots[index] = cube

    def take_cube(self, index: int) -> CubeColor:
        """Remove a delivered cube from its slot.

        Raises:
            ValueError: If the slot is empty.
        """
        cube = self.slots[index]
        if cube is None:
            raise ValueError(f"Slot {index} is empty")
        self.slots[index] = None
        self.delivered.append(cube)
        return cube

    def total_cubes(self) -> int:
        """Cubes on the display, in the bag and delivered."""
        on_display = sum(1 for cube in self.slots if cube is not None)
        return on_display + len(self.bag) + len(self.delivered)

    def activate_column(self, letter: str, city_name: str) -> GoodsColumn | None:
        """Tie a lettered column to a newly urbanized city."""
        column = self.column_for_letter(letter)
        if column is not None:
            column.city_ref = city_name
        return column

    def _compact(self, column: GoodsColumn) -> None:
        cubes = [self.slots[i] for i in column.indices if self.slots[i] is not None]
        for offset, index in enumerate(column.indices):
            self.slots[index] = cubes[offset] if offset < len(cubes) else None

    def grow(self, rolled_columns: list[str]) -> GrowthReport:
        """Run goods growth for the columns named by the growth dice.

        Each roll shifts its column's cubes to the top rows, then places one
        cube from the bag in the column's first open slot. A column rolled
        twice grows twice. A full column takes no cube and the bag keeps it.
        Rolls naming an unknown or not yet active column do nothing.

        Args:
            rolled_columns: Column id for each die, in roll order.

        Returns:
            What was placed and discarded.
        """
        report = GrowthReport()
        for column_id in rolled_columns:
            column = self.columns.get(column_id)
            if column is None or not column.is_active:
                report.idle.append(column_id)
                continue
            self._compact(column)
            open_slots = [i for i in column.indices if self.slots[i] is None]
            if not open_slots:
                report.discarded.append(column.id)
                continue
            if not self.bag:
                report.bag_exhausted = True
                break
            cube = self.draw(1)[0]
            self.slots[open_slots[0]] = cube
            report.placed.append((column.id, cube))
        return report

    def to_dict(self) -> dict:
        return {
            "columns": {
                column_id: [cube.value if cube else None for cube in self.cubes_in(column_id)]
                for column_id in self.columns
            },
            "bag": len(self.bag),
            "delivered": len(self.delivered),
        }
