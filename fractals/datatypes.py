import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

BOUNDED = -1  # iteration value of an orbit that never escaped


class Transform(IntEnum):
    """Map applied to z before raising it to the rule's power."""

    IDENTITY = 0  # Mandelbrot: z^p + c
    RECTIFY = 1  # Burning Ship: (|Re z| + i|Im z|)^p + c
    CONJUGATE = 2  # Tricorn: conj(z)^p + c

    @classmethod
    def from_name(cls, name):
        aliases = {
            "mandelbrot": cls.IDENTITY,
            "burning-ship": cls.RECTIFY,
            "tricorn": cls.CONJUGATE,
        }
        key = name.strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls[key.upper()]
        except KeyError:
            raise ValueError(f"Unknown transform: {name}") from None


@dataclass(frozen=True)
class FractalRule:
    """z_(n+1) = transform(z_n)^power + param, escaping once |z_(n+1)| >= escape_radius."""

    transform: Transform = Transform.IDENTITY
    power: complex = 2
    param: complex = 0
    escape_radius: float = 2.0

    def __post_init__(self):
        object.__setattr__(self, "transform", Transform(self.transform))
        object.__setattr__(self, "power", complex(self.power))
        object.__setattr__(self, "param", complex(self.param))
        object.__setattr__(self, "escape_radius", float(self.escape_radius))
        if not math.isfinite(self.escape_radius) or self.escape_radius <= 0:
            raise ValueError(f"Escape radius must be positive, got {self.escape_radius}")


@dataclass(frozen=True)
class Viewport:
    corner: complex  # top left
    width: float
    height: float
    rows: int
    columns: int

    def __post_init__(self):
        object.__setattr__(self, "corner", complex(self.corner))
        object.__setattr__(self, "width", float(self.width))
        object.__setattr__(self, "height", float(self.height))
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"Viewport extent must be positive, got {self.width} x {self.height}")
        if int(self.rows) != self.rows or int(self.columns) != self.columns:
            raise ValueError(f"Viewport resolution must be integral, got {self.rows} x {self.columns}")
        object.__setattr__(self, "rows", int(self.rows))
        object.__setattr__(self, "columns", int(self.columns))
        if self.rows <= 0 or self.columns <= 0:
            raise ValueError(f"Viewport resolution must be positive, got {self.rows} x {self.columns}")

    @property
    def center(self):
        return self.corner + complex(self.width / 2, -self.height / 2)

    @property
    def shape(self):
        return self.rows, self.columns


@dataclass
class OrbitResult:
    iterations: int
    final: complex
    orbit: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.complex128))

    @property
    def escaped(self):
        return self.iterations != BOUNDED


@dataclass(frozen=True)
class ColorScheme:
    """
    Cyclic palette for escape-time values.

    colors: RGB triples to cycle through, e.g. [blue | orange | white]
    iters_per_cycle: iterations spanned by one pass over all colors
    (color_count * 10 is a good ratio)
    set_color: color of points that never escape
    continuous: smooth the iteration count before the lookup
    """

    colors: tuple
    iters_per_cycle: float
    set_color: tuple = (0, 0, 0)
    continuous: bool = False

    def __post_init__(self):
        colors = tuple(tuple(int(channel) for channel in color) for color in self.colors)
        object.__setattr__(self, "colors", colors)
        object.__setattr__(self, "set_color", tuple(int(channel) for channel in self.set_color))
        if len(colors) < 2:
            raise ValueError(f"A color scheme needs at least two colors, got {len(colors)}")
        if any(len(color) != 3 for color in colors + (self.set_color,)):
            raise ValueError("Colors must be RGB triples")
        if not self.iters_per_cycle > 0:
            raise ValueError(f"Iterations per cycle must be positive, got {self.iters_per_cycle}")

    @property
    def color_count(self):
        return len(self.colors)
