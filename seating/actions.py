"""
Scene Store Actions.

Every transition of the scene store is described by one of these immutable
action records. The store's reducer dispatches on the action class.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from seating.models import TableConfig

@dataclass(frozen=True)
class Hydrate:
    """Replaces any subset of the scene fields with externally supplied values."""
    partial: Mapping[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class SetGrid:
    cols: int
    rows: int

@dataclass(frozen=True)
class AddTable:
    config: TableConfig
    anchor_x: float
    anchor_y: float

@dataclass(frozen=True)
class AddZone:
    name: str
    anchor_x: float
    anchor_y: float
    width: float
    height: float

@dataclass(frozen=True)
class AddLabel:
    text: str
    anchor_x: float
    anchor_y: float

@dataclass(frozen=True)
class MoveTable:
    id: str
    x: float
    y: float

@dataclass(frozen=True)
class MoveZone:
    id: str
    x: float
    y: float

@dataclass(frozen=True)
class MoveLabel:
    id: str
    x: float
    y: float

@dataclass(frozen=True)
class ResizeZone:
    id: str
    width: float
    height: float

@dataclass(frozen=True)
class RenameZone:
    id: str
    name: str

@dataclass(frozen=True)
class RenameLabel:
    id: str
    text: str

@dataclass(frozen=True)
class RenumberTable:
    id: str
    number: Optional[int]

@dataclass(frozen=True)
class RemoveSelected:
    pass

@dataclass(frozen=True)
class RemoveTable:
    id: str

@dataclass(frozen=True)
class ToggleSelect:
    id: str
    multi: bool = False

@dataclass(frozen=True)
class SelectMultiple:
    ids: Tuple[str, ...]

@dataclass(frozen=True)
class ClearSelection:
    pass


Action = Union[
    Hydrate, SetGrid, AddTable, AddZone, AddLabel, MoveTable, MoveZone, MoveLabel,
    ResizeZone, RenameZone, RenameLabel, RenumberTable, RemoveSelected, RemoveTable,
    ToggleSelect, SelectMultiple, ClearSelection,
]
