"""Lighting effect types."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

from razerctl.core.errors import ValidationError

_COLOR_RE = re.compile(r"#[0-9a-fA-F]{6}")

REACTIVE_SPEED_MIN = 0x01
REACTIVE_SPEED_MAX = 0x04


class LedId(IntEnum):
    ZERO = 0x00
    SCROLL_WHEEL = 0x01
    BATTERY = 0x03
    LOGO = 0x04
    BACKLIGHT = 0x05
    MACRO = 0x07
    GAME = 0x08

    @classmethod
    def from_name(cls, name: str) -> LedId:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            allowed = ", ".join(led.name.lower() for led in cls)
            raise ValidationError(f"Unknown LED '{name}'. Allowed: {allowed}") from None


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    @classmethod
    def parse(cls, text: str) -> Color:
        if not _COLOR_RE.fullmatch(text):
            raise ValidationError(f"Please specify a color in hex (ex: #0cff1d), got '{text}'")
        return cls(r=int(text[1:3], 16), g=int(text[3:5], 16), b=int(text[5:7], 16))

    def to_bytes(self) -> bytes:
        return bytes((self.r, self.g, self.b))

    def __str__(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


class EffectCode(IntEnum):
    NONE = 0x00
    STATIC = 0x01
    BREATHING = 0x02
    SPECTRUM = 0x03
    REACTIVE = 0x05


@dataclass(frozen=True)
class EffectOff:
    code = EffectCode.NONE


@dataclass(frozen=True)
class StaticEffect:
    color: Color
    code = EffectCode.STATIC


@dataclass(frozen=True)
class BreathingRandom:
    code = EffectCode.BREATHING


@dataclass(frozen=True)
class BreathingSingle:
    color: Color
    code = EffectCode.BREATHING


@dataclass(frozen=True)
class BreathingDual:
    first: Color
    second: Color
    code = EffectCode.BREATHING


@dataclass(frozen=True)
class SpectrumEffect:
    code = EffectCode.SPECTRUM


@dataclass(frozen=True)
class ReactiveEffect:
    color: Color
    speed: int
    code = EffectCode.REACTIVE


LightingEffect = (
    EffectOff
    | StaticEffect
    | BreathingRandom
    | BreathingSingle
    | BreathingDual
    | SpectrumEffect
    | ReactiveEffect
)
