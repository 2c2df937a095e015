"""Models for the Virtual Radar Server aircraft list document."""

from __future__ import annotations

import re
from typing import Annotated, Any, Callable

from pydantic import BaseModel, ConfigDict, Field, PlainValidator, model_validator

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _integral(value: Any) -> int | None:
    """Return ``value`` as an int if it is a JSON number with no fraction."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def string_or_number(
    from_string: Callable[[str], Any], from_number: Callable[[int], Any], label: str
) -> PlainValidator:
    """Build a decoder for a field servers send as either a string or a number.

    The string shape is tried first, then the numeric shape; anything else
    (booleans, objects, fractional numbers) is rejected. A JSON null decodes
    like an empty string.
    """

    def decode(value: Any) -> Any:
        if value is None:
            value = ""
        if isinstance(value, str):
            try:
                return from_string(value)
            except ValueError as exc:
                raise ValueError(f"{label}: could not decode {value!r}: {exc}") from exc
        number = _integral(value)
        if number is not None:
            return from_number(number)
        raise ValueError(f"{label}: could not decode {value!r}")

    return PlainValidator(decode)


def _parse_int(raw: str) -> int:
    if not _INTEGER_RE.fullmatch(raw):
        raise ValueError("not a decimal integer")
    return int(raw)


def _parse_squawk(raw: str) -> int:
    return 0 if raw == "" else _parse_int(raw)


def _drop_nulls(data: Any, keep: tuple[str, ...] = ()) -> Any:
    """Remove null members so the field defaults apply."""

    if not isinstance(data, dict):
        return data
    return {key: value for key, value in data.items() if value is not None or key in keep}


def _numeric_code(label: str) -> PlainValidator:
    return string_or_number(str, str, label)


Revision = Annotated[int, string_or_number(_parse_int, int, "lastDv")]
Squawk = Annotated[int, string_or_number(_parse_squawk, int, "Sqk")]
WakeTurbulenceCategory = Annotated[str, _numeric_code("WTC")]
Species = Annotated[str, _numeric_code("Species")]
EngineType = Annotated[str, _numeric_code("EngType")]
EngineMount = Annotated[str, _numeric_code("EngMount")]


class Aircraft(BaseModel):
    """A single aircraft observation from one poll."""

    id: int = Field(default=0, alias="Id", description="Server-assigned aircraft id")
    icao: str = Field(default="", alias="Icao", description="ICAO 24-bit hex code")
    registration: str = Field(default="", alias="Reg")
    callsign: str = Field(default="", alias="Call")
    aircraft_type: str = Field(default="", alias="Type", description="ICAO type designator")
    model: str = Field(default="", alias="Mdl")
    manufacturer: str = Field(default="", alias="Man")
    operator: str = Field(default="", alias="Op")
    operator_code: str = Field(default="", alias="OpCode")
    country: str = Field(default="", alias="Cou")
    origin: str = Field(default="", alias="From")
    destination: str = Field(default="", alias="To")

    lat: float = Field(default=0.0, alias="Lat", description="Latitude in decimal degrees")
    lon: float = Field(default=0.0, alias="Long", description="Longitude in decimal degrees")
    altitude: int = Field(default=0, alias="Alt", description="Pressure altitude in feet")
    ground_altitude: int = Field(default=0, alias="GAlt")
    speed: float = Field(default=0.0, alias="Spd", description="Ground speed in knots")
    track: float = Field(default=0.0, alias="Trak", description="Track in degrees")
    vertical_speed: int = Field(default=0, alias="Vsi", description="Feet per minute")
    position_time: int = Field(default=0, alias="PosTime", description="Epoch milliseconds")
    on_ground: bool = Field(default=False, alias="Gnd")
    military: bool = Field(default=False, alias="Mil")
    emergency: bool = Field(default=False, alias="Help")

    squawk: Squawk = Field(default=0, alias="Sqk")
    wake_turbulence_category: WakeTurbulenceCategory = Field(default="", alias="WTC")
    species: Species = Field(default="", alias="Species")
    engines: str = Field(default="", alias="Engines")
    engine_type: EngineType = Field(default="", alias="EngType")
    engine_mount: EngineMount = Field(default="", alias="EngMount")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class Feed(BaseModel):
    """A receiver feed advertised by the server."""

    id: int = 0
    name: str = ""

    model_config = ConfigDict(extra="ignore")


class AircraftList(BaseModel):
    """Top-level ``AircraftList.json`` response."""

    last_dv: Revision = Field(default=0, alias="lastDv", description="Revision marker")
    total_aircraft: int = Field(default=0, alias="totalAc")
    source: int = Field(default=0, alias="src")
    server_time: int = Field(default=0, alias="stm", description="Epoch milliseconds")
    aircraft: list[Aircraft] = Field(default_factory=list, alias="acList")
    feeds: list[Feed] = Field(default_factory=list)
    source_feed: int = Field(default=0, alias="srcFeed")
    config_changed: bool = Field(default=False, alias="configChanged")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        # a null revision marker is still a decode error
        return _drop_nulls(data, keep=("lastDv",))


__all__ = [
    "Aircraft",
    "AircraftList",
    "EngineMount",
    "EngineType",
    "Feed",
    "Revision",
    "Species",
    "Squawk",
    "WakeTurbulenceCategory",
    "string_or_number",
]
