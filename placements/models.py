from dataclasses import dataclass


@dataclass(frozen=True)
class OptionalInt:
    value: int = 0
    valid: bool = False     # False for "undefined" or a missing element


@dataclass(frozen=True)
class Value:
    value: float = 0.0
    unit: str = ""
