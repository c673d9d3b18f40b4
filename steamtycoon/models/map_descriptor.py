"""Static map data for Steam Tycoon.

A map descriptor carries everything that is fixed for a given board: city and
town placement, terrain, the goods display column layout, the starting bag and
the pool of new-city tiles used by Urbanization.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .hex import HexCoord, as_coord


class Terrain(Enum):
    """Terrain of a map hex."""

    PLAIN = "plain"
    RIVER = "river"
    MOUNTAIN = "mountain"
    LAKE = "lake"


class CubeColor(Enum):
    """Goods cube and city colors."""

    RED = "red"
    BLUE = "blue"
    YELLOW = "yellow"
    PURPLE = "purple"
    BLACK = "black"


DISPLAY_SLOT_COUNT = 52
PLAYER_COUNTS = (2, 3, 4, 5, 6)


@dataclass
class CityDef:
    """A city printed on the map.

    Attributes:
        coord: Hex the city occupies.
        name: City name, also used as its reference by goods columns.
        color: Goods color the city accepts.
        columns: Goods display columns feeding this city.
    """

    coord: HexCoord
    name: str
    color: CubeColor
    columns: list[str] = field(default_factory=list)


@dataclass
class TownDef:
    """A town that may later be urbanized."""

    coord: HexCoord
    name: str = ""


@dataclass
class HexDef:
    """Terrain of one hex."""

    coord: HexCoord
    terrain: Terrain = Terrain.PLAIN


@dataclass
class GoodsColumnDef:
    """Layout of one goods display column.

    Exactly one of ``city_ref`` and ``new_city_letter`` is set.

    Attributes:
        id: Column label ("1".."6", "A".."D").
        row_count: Number of slots in the column.
        city_ref: Name of the city this column feeds.
        new_city_letter: New-city tile letter this column waits for.
    """

    id: str
    row_count: int
    city_ref: str | None = None
    new_city_letter: str | None = None


@dataclass
class NewCityTileDef:
    """A new-city tile available to Urbanization."""

    id: str
    color: CubeColor


@dataclass
class MapDescriptor:
    """Complete static description of a map.

    Attributes:
        id: Map identifier.
        name: Display name.
        cities: Printed cities.
        towns: Towns eligible for urbanization.
        hexes: Every playable hex with its terrain.
        goods_columns: Goods display column layout, in slot order.
        starting_bag: Every cube in the game before setup.
        new_city_tiles: Urbanization tile pool.
        max_turns: Optional map-imposed turn cap.
        supported_players: Player counts the map is built for.
    """

    id: str
    name: str
    cities: list[CityDef]
    towns: list[TownDef]
    hexes: list[HexDef]
    goods_columns: list[GoodsColumnDef]
    starting_bag: list[CubeColor]
    new_city_tiles: list[NewCityTileDef] = field(default_factory=list)
    max_turns: int | None = None
    supported_players: tuple[int, ...] = PLAYER_COUNTS

    @property
    def slot_count(self) -> int:
        """Total number of display slots."""
        return sum(column.row_count for column in self.goods_columns)

    def validate(self) -> None:
        """Check internal consistency.

        Raises:
            ValueError: If the descriptor is malformed.
        """
        hex_coords = [h.coord for h in self.hexes]
        duplicates = [c for c, n in Counter(hex_coords).items() if n > 1]
        if duplicates:
            raise ValueError(f"Duplicate hexes in map {self.id}: {duplicates}")

        known = set(hex_coords)
        stops = [c.coord for c in self.cities] + [t.coord for t in self.towns]
        for coord in stops:
            if coord not in known:
                raise ValueError(f"City or town at {coord} is not a map hex")
        if len(set(stops)) != len(stops):
            raise ValueError(f"Cities and towns overlap in map {self.id}")

        city_names = {city.name for city in self.cities}
        tile_ids = {tile.id for tile in self.new_city_tiles}
        for column in self.goods_columns:
            if (column.city_ref is None) == (column.new_city_letter is None):
                raise ValueError(
                    f"Column {column.id} needs exactly one of city_ref and new_city_letter"
                )
            if column.city_ref is not None and column.city_ref not in city_names:
                raise ValueError(
                    f"Column {column.id} refers to unknown city {column.city_ref}"
                )
            if (
                column.new_city_letter is not None
                and column.new_city_letter not in tile_ids
            ):
                raise ValueError(
                    f"Column {column.id} waits for unknown tile {column.new_city_letter}"
                )
            if column.row_count <= 0:
                raise ValueError(f"Column {column.id} has no rows")

        if self.slot_count != DISPLAY_SLOT_COUNT:
            raise ValueError(
                f"Goods display must have {DISPLAY_SLOT_COUNT} slots, got {self.slot_count}"
            )

        if not self.supported_players or not set(self.supported_players) <= set(PLAYER_COUNTS):
            raise ValueError(
                f"Map {self.id} supports {self.supported_players}, expected counts from {PLAYER_COUNTS}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MapDescriptor":
        """Build a descriptor from plain map data.

        Args:
            data: Mapping with ``cities``, ``towns``, ``hexes``,
                ``goodsColumns`` and ``startingBag`` keys.

        Returns:
            A validated MapDescriptor.
        """
        descriptor = cls(
            id=data.get("id", "custom"),
            name=data.get("name", data.get("id", "Custom Map")),
            cities=[
                CityDef(
                    coord=as_coord(c["coord"]),
                    name=c["name"],
                    color=CubeColor(c["color"]),
                    columns=[str(col) for col in c.get("columns", [])],
                )
                for c in data["cities"]
            ],
            towns=[
                TownDef(coord=as_coord(t["coord"]), name=t.get("name", ""))
                for t in data.get("towns", [])
            ],
            hexes=[
                HexDef(
                    coord=as_coord(h["coord"]),
                    terrain=Terrain(h.get("terrain", "plain")),
                )
                for h in data["hexes"]
            ],
            goods_columns=[
                GoodsColumnDef(
                    id=str(g["id"]),
                    row_count=int(g["rowCount"]),
                    city_ref=g.get("cityRef"),
                    new_city_letter=g.get("newCityLetter"),
                )
                for g in data["goodsColumns"]
            ],
            starting_bag=[CubeColor(color) for color in data["startingBag"]],
            new_city_tiles=[
                NewCityTileDef(id=t["id"], color=CubeColor(t["color"]))
                for t in data.get("newCityTiles", default_new_city_tiles_data())
            ],
            max_turns=data.get("maxTurns"),
            supported_players=tuple(data.get("supportedPlayers", PLAYER_COUNTS)),
        )
        descriptor.validate()
        return descriptor


# Urbanization tiles shared by the built-in maps
NEW_CITY_TILES = {
    "A": CubeColor.RED,
    "B": CubeColor.BLUE,
    "C": CubeColor.PURPLE,
    "D": CubeColor.YELLOW,
    "E": CubeColor.BLACK,
    "F": CubeColor.BLACK,
    "G": CubeColor.BLACK,
    "H": CubeColor.BLACK,
}

# Cubes in the bag before setup
STARTING_BAG_COUNTS = {
    CubeColor.RED: 20,
    CubeColor.BLUE: 20,
    CubeColor.PURPLE: 20,
    CubeColor.YELLOW: 20,
    CubeColor.BLACK: 16,
}

NUMBERED_COLUMN_ROWS = 6
LETTERED_COLUMN_ROWS = 4


def default_new_city_tiles_data() -> list[dict[str, str]]:
    """New-city tile pool as plain data."""
    return [{"id": tile_id, "color": color.value} for tile_id, color in NEW_CITY_TILES.items()]


def standard_new_city_tiles() -> list[NewCityTileDef]:
    """Fresh copy of the standard new-city tile pool."""
    return [NewCityTileDef(id=tile_id, color=color) for tile_id, color in NEW_CITY_TILES.items()]


def standard_starting_bag() -> list[CubeColor]:
    """The standard 96-cube starting bag."""
    bag: list[CubeColor] = []
    for color, count in STARTING_BAG_COUNTS.items():
        bag.extend([color] * count)
    return bag


def standard_goods_columns(column_cities: dict[str, str]) -> list[GoodsColumnDef]:
    """Build the standard 52-slot column layout.

    Args:
        column_cities: City name for each numbered column "1".."6".

    Returns:
        Columns 1-6 tied to cities, then A-D waiting for new cities.
    """
    columns = [
        GoodsColumnDef(id=str(n), row_count=NUMBERED_COLUMN_ROWS, city_ref=column_cities[str(n)])
        for n in range(1, 7)
    ]
    columns.extend(
        GoodsColumnDef(id=letter, row_count=LETTERED_COLUMN_ROWS, new_city_letter=letter)
        for letter in "ABCD"
    )
    return columns


LAKE_SHORE_COLUMNS = {
    "1": "Pittsburgh",
    "2": "Cleveland",
    "3": "Columbus",
    "4": "Wheeling",
    "5": "Cincinnati",
    "6": "Pittsburgh",
}


def _lake_shore_cities() -> list[CityDef]:
    return [
        CityDef(HexCoord(1, 0), "Pittsburgh", CubeColor.RED, ["1", "6"]),
        CityDef(HexCoord(5, 0), "Cleveland", CubeColor.BLUE, ["2"]),
        CityDef(HexCoord(3, 2), "Columbus", CubeColor.YELLOW, ["3"]),
        CityDef(HexCoord(5, 3), "Wheeling", CubeColor.BLACK, ["4"]),
        CityDef(HexCoord(1, 4), "Cincinnati", CubeColor.PURPLE, ["5"]),
    ]


def _lake_shore_hexes() -> list[HexDef]:
    """Columns 1-6 over five rows, with lake along the east edge."""
    lakes = {HexCoord(6, row) for row in range(4)}
    hexes = []
    for row in range(5):
        for col in range(1, 7):
            coord = HexCoord(col, row)
            terrain = Terrain.LAKE if coord in lakes else Terrain.PLAIN
            hexes.append(HexDef(coord, terrain))
    return hexes


def tutorial_map() -> MapDescriptor:
    """The two-player tutorial map: five cities around a lake shore, capped at 3 turns."""
    descriptor = MapDescriptor(
        id="tutorial",
        name="Tutorial",
        cities=_lake_shore_cities(),
        towns=[
            TownDef(HexCoord(3, 0), "Youngstown"),
            TownDef(HexCoord(3, 4), "Marietta"),
        ],
        hexes=_lake_shore_hexes(),
        goods_columns=standard_goods_columns(LAKE_SHORE_COLUMNS),
        starting_bag=standard_starting_bag(),
        new_city_tiles=standard_new_city_tiles(),
        max_turns=3,
        supported_players=(2,),
    )
    descriptor.validate()
    return descriptor


def rust_belt_map() -> MapDescriptor:
    """Rust Belt for 3 to 6 players, on the turn count of the player table.

    Same cities and lake shore as the tutorial, without towns.
    """
    descriptor = MapDescriptor(
        id="rust_belt",
        name="Rust Belt",
        cities=_lake_shore_cities(),
        towns=[],
        hexes=_lake_shore_hexes(),
        goods_columns=standard_goods_columns(LAKE_SHORE_COLUMNS),
        starting_bag=standard_starting_bag(),
        new_city_tiles=standard_new_city_tiles(),
        supported_players=(3, 4, 5, 6),
    )
    descriptor.validate()
    return descriptor


MAPS = {
    "tutorial": tutorial_map,
    "rust_belt": rust_belt_map,
}


def get_map(map_id: str) -> MapDescriptor:
    """Look up a built-in map by id.

    Raises:
        ValueError: If no such map exists.
    """
    factory = MAPS.get(map_id)
    if factory is None:
        raise ValueError(f"Unknown map: {map_id}")
    return factory()
