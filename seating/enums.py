"""
Enum Definitions Module.

This module contains Enumeration classes for the constant sets of values used
by the seating editor, such as table types, orientations and resize handles.
Using enums instead of raw strings keeps the wire format in one place and
reduces the risk of typos.
"""
from enum import Enum

class TableType(Enum):
    """Enumeration for the kinds of banquet table."""
    REGULAR = "regular"
    RESERVE = "reserve"
    KNIGHT = "knight"

    @classmethod
    def values(cls) -> list[str]:
        """Returns the string values of all enum members."""
        return [item.value for item in cls]

class Orientation(Enum):
    """Axis along which a knight table (and a batch of tables) is laid out."""
    ROW = "row"
    COLUMN = "column"

    @classmethod
    def values(cls) -> list[str]:
        """Returns the string values of all enum members."""
        return [item.value for item in cls]

class ItemKind(Enum):
    """Enumeration for the item families placed on the grid."""
    TABLE = "table"
    ZONE = "zone"
    LABEL = "label"

class ResizeHandle(Enum):
    """The three zone resize handles."""
    RIGHT = "right"
    BOTTOM = "bottom"
    CORNER = "corner"

    @property
    def resizes_width(self) -> bool:
        return self in (ResizeHandle.RIGHT, ResizeHandle.CORNER)

    @property
    def resizes_height(self) -> bool:
        return self in (ResizeHandle.BOTTOM, ResizeHandle.CORNER)

class EditMode(Enum):
    """Kind of inline editor opened by a double activation."""
    NUMBER = "number"
    TEXT = "text"

class ViewportMode(Enum):
    """Read-only maps floor zoom-out at the fit level; editable maps do not."""
    READONLY = "readonly"
    EDITABLE = "editable"
