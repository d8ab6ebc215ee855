from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


ACTIONS = ("chat", "generate", "fly", "undo", "clear", "rotate", "modify")

Action = Literal["chat", "generate", "fly", "undo", "clear", "rotate", "modify"]


class Zone(BaseModel):
    model_config = ConfigDict(extra="allow")

    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    color: Optional[str] = None
    opacity: Optional[float] = None
    height: Optional[float] = None


class Grid(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: int = Field(..., gt=0)
    cols: int = Field(..., gt=0)


class PolygonSpec(BaseModel):
    """Declarative description of one shape to render on the map.

    Only the grid partition is enforced; every other field is left as the
    model produced it and extra keys are kept.
    """

    model_config = ConfigDict(extra="allow")

    shape: Optional[str] = None  # circle/rect/triangle/ngon
    sides: Optional[int] = None  # only meaningful for ngon
    size: Optional[str] = None  # small/medium/large
    radius: Optional[float] = None
    meters: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None
    opacity: Optional[float] = None
    grid: Optional[Grid] = None
    zones: Optional[List[Zone]] = None

    @model_validator(mode="after")
    def _zones_within_grid(self) -> "PolygonSpec":
        if self.grid is None or not self.zones:
            return self
        for zone in self.zones:
            if zone.row >= self.grid.rows or zone.col >= self.grid.cols:
                raise ValueError(
                    f"zone ({zone.row}, {zone.col}) outside {self.grid.rows}x{self.grid.cols} grid"
                )
        return self


class Coordinates(BaseModel):
    lat: float
    lng: float


class Command(BaseModel):
    """Normalized instruction returned to the map client.

    Fields left as None are not part of the variant and are dropped on output.
    """

    reply: str
    action: Action
    needs_confirm: Optional[bool] = None
    confirm_text: Optional[str] = None
    prompt: Optional[str] = None
    state: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# Endpoint-specific lightweight contracts
class ResolvePlaceRequest(BaseModel):
    place: Any = None  # coerced to text by the dispatcher


class InterpretPolygonRequest(BaseModel):
    text: Any = None


class ChatRequest(BaseModel):
    message: Any = None
    state: Any = None  # client-owned map state, coerced server-side
