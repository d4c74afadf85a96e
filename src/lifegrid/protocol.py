"""Wire protocol — a closed set of JSON messages tagged by ``type``.

Server -> observer:
    snapshot        full board + generation, sent once on connect
    delta           cells changed by one tick, stamped with its generation
    immediate_draw  echo of freshly drawn cells with the submitter id
    pong / error    replies to a single client

Client -> server:
    draw            {"cells": [{"x", "y", "color"}], "submitterId"?}
    ping

Anything else fails to decode with ``MalformedInput``.  Outbound messages
are built as plain dicts; the pydantic models below are used to decode.
"""

from __future__ import annotations

import json
from typing import Annotated, Iterable, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .board import BoardSnapshot
from .colors import format_color, parse_color
from .engine import DeltaChange
from .errors import MalformedInput
from .ingest import Cell

UNKNOWN_SUBMITTER = "unknown"


class CellPayload(BaseModel):
    x: int
    y: int
    color: str

    @field_validator("color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        try:
            return format_color(parse_color(value))
        except MalformedInput as e:
            raise ValueError(str(e)) from e

    def to_cell(self) -> Cell:
        return Cell(self.x, self.y, parse_color(self.color))


class ChangePayload(BaseModel):
    x: int
    y: int
    color: str | None


def _submitter_field():
    # "clientId" is the older name for the same field
    return Field(
        default=None,
        validation_alias=AliasChoices("submitterId", "clientId"),
        serialization_alias="submitterId",
    )


class DrawPayload(BaseModel):
    """Body of a draw submission (HTTP body or the ``draw`` message)."""

    model_config = ConfigDict(populate_by_name=True)

    cells: list[CellPayload]
    submitter_id: str | None = _submitter_field()

    def to_cells(self) -> list[Cell]:
        return [c.to_cell() for c in self.cells]


class DrawMessage(DrawPayload):
    type: Literal["draw"]


class PingMessage(BaseModel):
    type: Literal["ping"]


class SnapshotMessage(BaseModel):
    type: Literal["snapshot"]
    board: list[list[str | None]]
    generation: int
    width: int
    height: int


class DeltaMessage(BaseModel):
    type: Literal["delta"]
    changes: list[ChangePayload]
    generation: int


class ImmediateDrawMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["immediate_draw"]
    cells: list[CellPayload]
    submitter_id: str | None = _submitter_field()


class PongMessage(BaseModel):
    type: Literal["pong"]


class ErrorMessage(BaseModel):
    type: Literal["error"]
    message: str


ClientMessage = Annotated[Union[DrawMessage, PingMessage], Field(discriminator="type")]
ServerMessage = Annotated[
    Union[SnapshotMessage, DeltaMessage, ImmediateDrawMessage, PongMessage, ErrorMessage],
    Field(discriminator="type"),
]

_client_adapter: TypeAdapter = TypeAdapter(ClientMessage)
_server_adapter: TypeAdapter = TypeAdapter(ServerMessage)


def _decode(adapter: TypeAdapter, raw: str | bytes | dict):
    try:
        if isinstance(raw, (str, bytes)):
            return adapter.validate_json(raw)
        return adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedInput(_summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    where = ".".join(str(part) for part in first.get("loc", ())) or "message"
    return f"{where}: {first.get('msg', 'invalid')}"


def decode_client_message(raw: str | bytes | dict) -> DrawMessage | PingMessage:
    """Decode an inbound socket message; raises ``MalformedInput``."""
    return _decode(_client_adapter, raw)


def decode_server_message(raw: str | bytes | dict):
    """Decode an outbound message (observer side); raises ``MalformedInput``."""
    return _decode(_server_adapter, raw)


def decode_draw_payload(raw: str | bytes | dict) -> DrawPayload:
    """Decode an HTTP draw body (no ``type`` tag); raises ``MalformedInput``."""
    try:
        if isinstance(raw, (str, bytes)):
            return DrawPayload.model_validate_json(raw)
        return DrawPayload.model_validate(raw)
    except ValidationError as e:
        raise MalformedInput(_summarize(e)) from e


# -- Outbound builders -------------------------------------------------------


def snapshot_message(snapshot: BoardSnapshot) -> dict:
    return {
        "type": "snapshot",
        "board": snapshot.to_rows(),
        "generation": snapshot.generation,
        "width": snapshot.width,
        "height": snapshot.height,
    }


def delta_message(changes: Iterable[DeltaChange], generation: int) -> dict:
    return {
        "type": "delta",
        "changes": [c.to_dict() for c in changes],
        "generation": generation,
    }


def immediate_draw_message(cells: Iterable[Cell], submitter_id: str | None) -> dict:
    return {
        "type": "immediate_draw",
        "cells": [c.to_dict() for c in cells],
        "submitterId": submitter_id or UNKNOWN_SUBMITTER,
    }


def pong_message() -> dict:
    return {"type": "pong"}


def error_message(message: str) -> dict:
    return {"type": "error", "message": message}


def encode(message: dict) -> str:
    return json.dumps(message, separators=(",", ":"))
