"""Track tile and board models for Steam Tycoon."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from .goods import GoodsDisplay
from .hex import HexCoord
from .map_descriptor import CubeColor, MapDescriptor, Terrain


class TrackForm(Enum):
    """Shape of a built track tile."""

    SIMPLE = "simple"
    CROSSING = "crossing"
    COEXIST = "coexist"


@dataclass
class TrackSegment:
    """One piece of track joining two edges of a hex.

    Attributes:
        edges: The two directions the segment connects.
        owner: Owning player ID, or None for unowned track.
    """

    edges: tuple[int, int]
    owner: str | None = None

    def other_edge(self, edge: int) -> int:
        """Get the far end of the segment from ``edge``."""
        first, second = self.edges
        if edge == first:
            return second
        if edge == second:
            return first
        raise ValueError(f"Edge {edge} is not part of segment {self.edges}")


@dataclass
class TrackTile:
    """Track built on a single hex.

    A simple tile carries one segment. Crossing and coexist tiles carry two
    independent segments that are never connected to each other.

    Attributes:
        coord: Hex holding the tile.
        form: Simple, crossing or coexist.
        segments: One or two segments.
    """

    coord: HexCoord
    form: TrackForm = TrackForm.SIMPLE
    segments: list[TrackSegment] = field(default_factory=list)

    @property
    def owner(self) -> str | None:
        """Owner of the first-built segment."""
        return self.segments[0].owner if self.segments else None

    @property
    def edges(self) -> list[int]:
        """Union of the edges of every segment, sorted."""
        return sorted({edge for segment in self.segments for edge in segment.edges})

    @property
    def is_complex(self) -> bool:
        return self.form != TrackForm.SIMPLE

    def segment_with_edge(self, edge: int) -> TrackSegment | None:
        """Get the segment ending at ``edge``, if any."""
        for segment in self.segments:
            if edge in segment.edges:
                return segment
        return None

    def is_owned_by(self, player_id: str) -> bool:
        """Check if any segment belongs to a player."""
        return any(segment.owner == player_id for segment in self.segments)

    def to_dict(self) -> dict:
        return {
            "coord": self.coord.key,
            "form": self.form.value,
            "segments": [
                {"edges": list(segment.edges), "owner": segment.owner}
                for segment in self.segments
            ],
        }


@dataclass
class City:
    """A city on the board.

    Attributes:
        coord: Hex the city occupies.
        name: City name.
        color: Goods color the city accepts.
        columns: Goods display columns feeding the city.
        urbanized_from: New-city tile id if the city was a town.
    """

    coord: HexCoord
    name: str
    color: CubeColor
    columns: list[str] = field(default_factory=list)
    urbanized_from: str | None = None


@dataclass
class Town:
    """A town that Urbanization can turn into a city."""

    coord: HexCoord
    name: str = ""
    urbanized: bool = False


@dataclass
class NewCityTile:
    """A tile from the Urbanization pool."""

    id: str
    color: CubeColor
    used: bool = False


class TrackIndex:
    """Coordinate-keyed index of every track tile on the board."""

    def __init__(self) -> None:
        self._tiles: dict[HexCoord, TrackTile] = {}

    def get(self, coord: HexCoord) -> TrackTile | None:
        return self._tiles.get(coord)

    def add(self, tile: TrackTile) -> None:
        """Register a new tile.

        Raises:
            ValueError: If the hex already holds a tile.
        """
        if tile.coord in self._tiles:
            raise ValueError(f"Hex {tile.coord} already holds track")
        self._tiles[tile.coord] = tile

    def owned_by(self, player_id: str) -> list[TrackTile]:
        """Tiles with at least one segment owned by a player."""
        return [tile for tile in self._tiles.values() if tile.is_owned_by(player_id)]

    def __contains__(self, coord: object) -> bool:
        return coord in self._tiles

    def __iter__(self) -> Iterator[TrackTile]:
        return iter(list(self._tiles.values()))

    def __len__(self) -> int:
        return len(self._tiles)


class Board:
    """The game board built from a map descriptor.

    Attributes:
        descriptor: Static map data the board was built from.
        terrain: Terrain of every playable hex.
        cities: Cities by coordinate.
        towns: Towns by coordinate.
        new_city_tiles: Urbanization tile pool by id.
        tracks: Index of built track.
        goods: The goods display and bag.
    """

    def __init__(self, descriptor: MapDescriptor, logger: logging.Logger | None = None) -> None:
        """Initialize the board for a map.

        Args:
            descriptor: Map to build the board from.
            logger: Logger handed to the goods display.
        """
        self.descriptor = descriptor
        self.terrain: dict[HexCoord, Terrain] = {
            hex_def.coord: hex_def.terrain for hex_def in descriptor.hexes
        }
        self.cities: dict[HexCoord, City] = {
            city.coord: City(
                coord=city.coord,
                name=city.name,
                color=city.color,
                columns=list(city.columns),
            )
            for city in descriptor.cities
        }
        self.towns: dict[HexCoord, Town] = {
            town.coord: Town(coord=town.coord, name=town.name)
            for town in descriptor.towns
        }
        self.new_city_tiles: dict[str, NewCityTile] = {
            tile.id: NewCityTile(id=tile.id, color=tile.color)
            for tile in descriptor.new_city_tiles
        }
        self.tracks = TrackIndex()
        self.goods = GoodsDisplay(descriptor.goods_columns, logger)

    def in_bounds(self, coord: HexCoord) -> bool:
        return coord in self.terrain

    def terrain_at(self, coord: HexCoord) -> Terrain | None:
        return self.terrain.get(coord)

    def is_city(self, coord: HexCoord) -> bool:
        return coord in self.cities

    def is_town(self, coord: HexCoord) -> bool:
        """Check for a town that has not been urbanized."""
        town = self.towns.get(coord)
        return town is not None and not town.urbanized

    def is_stop(self, coord: HexCoord) -> bool:
        """Cities and towns both end a track link."""
        return self.is_city(coord) or self.is_town(coord)

    def city_at(self, coord: HexCoord) -> City | None:
        return self.cities.get(coord)

    def city_by_name(self, name: str) -> City | None:
        for city in self.cities.values():
            if city.name == name:
                return city
        return None

    def to_dict(self) -> dict:
        return {
            "map": self.descriptor.id,
            "cities": [
                {
                    "coord": city.coord.key,
                    "name": city.name,
                    "color": city.color.value,
                    "columns": list(city.columns),
                }
                for city in self.cities.values()
            ],
            "towns": [
                {"coord": town.coord.key, "name": town.name, "urbanized": town.urbanized}
                for town in self.towns.values()
            ],
            "new_city_tiles": {
                tile.id: {"color": tile.color.value, "used": tile.used}
                for tile in self.new_city_tiles.values()
            },
            "tracks": [tile.to_dict() for tile in self.tracks],
            "goods": self.goods.to_dict(),
        }
