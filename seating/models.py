"""
Domain Models for the Seating Layout Editor.
Encapsulates placed items (tables, zones, labels), their footprints and the
immutable Scene value that the store transitions between.
"""
from dataclasses import dataclass, field, replace
import math
import uuid
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from seating.config import DEFAULT_GRID_COLS, DEFAULT_GRID_ROWS, FIXED_SEATS, LABEL_CELLS
from seating.enums import ItemKind, Orientation, TableType
from seating.geometry import GridRect, footprint, round_half_up


def make_id(kind: ItemKind) -> str:
    """Creates a new item id such as 'table-3f2a...'. Ids are never recycled."""
    return f"{kind.value}-{uuid.uuid4().hex}"


def _cell(value: Any) -> int:
    """Wire coordinates may be fractional; they snap to the nearest cell like a commit does."""
    return round_half_up(float(value))


@dataclass(frozen=True)
class TableConfig:
    """Parameters of an add-table request."""
    type: TableType = TableType.REGULAR
    seats: Optional[int] = None
    orientation: Orientation = Orientation.ROW
    quantity: int = 1

    @property
    def seat_count(self) -> int:
        if self.seats is None or not math.isfinite(self.seats) or self.seats <= 0:
            return FIXED_SEATS[self.type]
        return int(self.seats)


@dataclass(frozen=True)
class Table:
    """
    A banquet table placed on the grid.
    The footprint is derived from type, seats and orientation and is never stored.
    """
    id: str
    type: TableType
    seats: int
    orientation: Orientation
    grid_x: int
    grid_y: int
    number: Optional[int] = None

    def __post_init__(self):
        self._validate()

    def _validate(self):
        # Accept raw wire values, but reject anything that is not a known member.
        if not isinstance(self.type, TableType):
            object.__setattr__(self, 'type', TableType(self.type))
        if not isinstance(self.orientation, Orientation):
            object.__setattr__(self, 'orientation', Orientation(self.orientation))
        if not self.id:
            raise ValueError("Table id must be a non-empty string.")

    kind = ItemKind.TABLE

    @property
    def size(self) -> Tuple[int, int]:
        return footprint(self.type, self.seats, self.orientation)

    @property
    def rect(self) -> GridRect:
        w, h = self.size
        return GridRect(self.grid_x, self.grid_y, w, h)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type.value,
            'seats': self.seats,
            'orientation': self.orientation.value,
            'gridX': self.grid_x,
            'gridY': self.grid_y,
            'number': self.number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Table":
        table_type = TableType(data['type'])
        seats = data.get('seats', data.get('seatCount'))
        number = data.get('number')
        return cls(
            id=str(data['id']),
            type=table_type,
            seats=int(seats) if seats is not None else FIXED_SEATS[table_type],
            orientation=Orientation(data.get('orientation') or Orientation.ROW.value),
            grid_x=_cell(data['gridX']),
            grid_y=_cell(data['gridY']),
            number=int(number) if number is not None else None,
        )


@dataclass(frozen=True)
class Zone:
    """A decorative/organisational rectangle, e.g. a dance floor."""
    id: str
    name: str
    grid_x: int
    grid_y: int
    width_cells: int
    height_cells: int

    kind = ItemKind.ZONE

    @property
    def rect(self) -> GridRect:
        return GridRect(self.grid_x, self.grid_y, self.width_cells, self.height_cells)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'gridX': self.grid_x,
            'gridY': self.grid_y,
            'widthCells': self.width_cells,
            'heightCells': self.height_cells,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Zone":
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            grid_x=_cell(data['gridX']),
            grid_y=_cell(data['gridY']),
            width_cells=_cell(data['widthCells']),
            height_cells=_cell(data['heightCells']),
        )


@dataclass(frozen=True)
class Label:
    """A free text anchor. Has no footprint of its own."""
    id: str
    text: str
    grid_x: int
    grid_y: int

    kind = ItemKind.LABEL

    @property
    def rect(self) -> GridRect:
        return GridRect(self.grid_x, self.grid_y, LABEL_CELLS, LABEL_CELLS)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'text': self.text, 'gridX': self.grid_x, 'gridY': self.grid_y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Label":
        return cls(
            id=str(data['id']),
            text=str(data.get('text', '')),
            grid_x=_cell(data['gridX']),
            grid_y=_cell(data['gridY']),
        )


SceneItem = Union[Table, Zone, Label]


@dataclass(frozen=True)
class Scene:
    """
    The complete, persisted set of placed items plus the table-numbering counter.
    Every transition produces a new Scene; instances are never mutated.
    """
    grid_cols: int = DEFAULT_GRID_COLS
    grid_rows: int = DEFAULT_GRID_ROWS
    tables: Tuple[Table, ...] = field(default_factory=tuple)
    zones: Tuple[Zone, ...] = field(default_factory=tuple)
    labels: Tuple[Label, ...] = field(default_factory=tuple)
    table_counter: int = 1

    def items(self) -> Iterator[SceneItem]:
        yield from self.tables
        yield from self.zones
        yield from self.labels

    def item_ids(self) -> frozenset:
        return frozenset(item.id for item in self.items())

    def get_item(self, item_id: str) -> Optional[SceneItem]:
        return next((item for item in self.items() if item.id == item_id), None)

    def get_table(self, table_id: str) -> Optional[Table]:
        return next((t for t in self.tables if t.id == table_id), None)

    def get_zone(self, zone_id: str) -> Optional[Zone]:
        return next((z for z in self.zones if z.id == zone_id), None)

    def get_label(self, label_id: str) -> Optional[Label]:
        return next((l for l in self.labels if l.id == label_id), None)

    def with_changes(self, **changes) -> "Scene":
        return replace(self, **changes)
