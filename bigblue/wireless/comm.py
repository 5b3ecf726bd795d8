"""
Defines the text protocol for sending drive commands to the rover.

Every command is one line of comma-separated ASCII tokens ending in a single
newline. There is no framing, checksum, escaping or acknowledgement.

    NORTH,START        direction pressed
    NORTH,STOP         direction released
    SPIRAL,START,2     spiral search started at speed 2
    SPIRAL,SPEED,3     spiral speed changed while running
    SPIRAL,STOP        spiral search stopped
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


MIN_SPEED: int = 1
MAX_SPEED: int = 3
SEPARATOR: str = ","
TERMINATOR: str = "\n"


class Direction(Enum):
    NORTH = "NORTH"
    SOUTH = "SOUTH"
    EAST = "EAST"
    WEST = "WEST"


class Edge(Enum):
    START = "START"
    STOP = "STOP"


class SpiralAction(Enum):
    START = "START"
    STOP = "STOP"
    SPEED = "SPEED"


@dataclass(frozen=True)
class DirectionCommand:
    direction: Direction
    edge: Edge


@dataclass(frozen=True)
class SpiralCommand:
    action: SpiralAction
    speed: Optional[int] = None

    @classmethod
    def start(cls, speed: int) -> "SpiralCommand":
        return cls(SpiralAction.START, speed)

    @classmethod
    def stop(cls) -> "SpiralCommand":
        return cls(SpiralAction.STOP)

    @classmethod
    def set_speed(cls, speed: int) -> "SpiralCommand":
        return cls(SpiralAction.SPEED, speed)


Command = Union[DirectionCommand, SpiralCommand]

SPIRAL_TOKEN = "SPIRAL"


def _check_speed(speed: Optional[int]) -> int:
    if speed is None or not MIN_SPEED <= speed <= MAX_SPEED:
        raise ValueError(f"Spiral speed must be in [{MIN_SPEED}, {MAX_SPEED}], got {speed!r}")
    return speed


def encode_command(command: Command) -> bytes:
    """Return the exact wire bytes for ``command``."""
    if isinstance(command, DirectionCommand):
        tokens = [command.direction.value, command.edge.value]
    elif isinstance(command, SpiralCommand):
        tokens = [SPIRAL_TOKEN, command.action.value]
        if command.action is not SpiralAction.STOP:
            tokens.append(str(_check_speed(command.speed)))
    else:
        raise TypeError(f"Not a command: {command!r}")
    return (SEPARATOR.join(tokens) + TERMINATOR).encode("ascii")


def decode_command(line: Union[bytes, str]) -> Command:
    """Parse one wire line (with or without its newline) back into a command."""
    if isinstance(line, bytes):
        try:
            line = line.decode("ascii")
        except UnicodeDecodeError as e:
            raise ValueError(f"Non-ASCII command line: {line!r}") from e
    tokens = line.rstrip(TERMINATOR).split(SEPARATOR)

    if tokens[0] == SPIRAL_TOKEN:
        try:
            action = SpiralAction(tokens[1])
        except (IndexError, ValueError) as e:
            raise ValueError(f"Malformed spiral command: {line!r}") from e
        if action is SpiralAction.STOP:
            if len(tokens) != 2:
                raise ValueError(f"Malformed spiral command: {line!r}")
            return SpiralCommand.stop()
        if len(tokens) != 3 or not tokens[2].isdigit():
            raise ValueError(f"Malformed spiral command: {line!r}")
        return SpiralCommand(action, _check_speed(int(tokens[2])))

    if len(tokens) != 2:
        raise ValueError(f"Malformed direction command: {line!r}")
    try:
        return DirectionCommand(Direction(tokens[0]), Edge(tokens[1]))
    except ValueError as e:
        raise ValueError(f"Malformed direction command: {line!r}") from e


__all__ = [
    "Command",
    "Direction",
    "DirectionCommand",
    "Edge",
    "MAX_SPEED",
    "MIN_SPEED",
    "SpiralAction",
    "SpiralCommand",
    "decode_command",
    "encode_command",
]
