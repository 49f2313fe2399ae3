import math
from dataclasses import replace

import numpy as np
from numba import njit

from fractals.datatypes import Viewport

SNAP_TOLERANCE = 1e-9  # fractional cell positions this close to an integer land on it
MOVE_FRACTION = 0.1
ZOOM_IN_FACTOR = 0.9
ZOOM_OUT_FACTOR = 1.1


@njit
def cell_index(position):
    """Truncate a fractional cell position toward zero, snapping float noise at cell edges."""
    nearest = math.floor(position + 0.5)
    if abs(position - nearest) < SNAP_TOLERANCE:
        return int(nearest)
    return int(position)


def to_plane(viewport, row, col):
    """Complex number at the top left of cell (row, col)."""
    real = viewport.corner.real + col * viewport.width / viewport.columns
    imag = viewport.corner.imag - row * viewport.height / viewport.rows
    return complex(real, imag)


def to_grid(viewport, point):
    """Cell (row, col) containing a complex number and whether it lies inside the grid."""
    point = complex(point)
    if not (math.isfinite(point.real) and math.isfinite(point.imag)):
        return -1, -1, False

    offset = point - viewport.corner
    col = cell_index(offset.real * viewport.columns / viewport.width)
    row = cell_index(-offset.imag * viewport.rows / viewport.height)
    return row, col, 0 <= row < viewport.rows and 0 <= col < viewport.columns


def sample_viewport(viewport):
    """
    Sample every cell of a viewport.
    Returns a (rows, columns) complex array, top row first.
    """
    real = viewport.corner.real + np.arange(viewport.columns) * viewport.width / viewport.columns
    imag = viewport.corner.imag - np.arange(viewport.rows) * viewport.height / viewport.rows
    R, I = np.meshgrid(real, imag)
    return R + 1j * I


def sample_region(region, count, rng):
    """
    Draw `count` points uniformly from the rectangle of a viewport.
    Draws are interleaved per point, so splitting a count into batches yields the same points.
    """
    u, v = rng.random((count, 2)).T
    return (region.corner.real + u * region.width) + 1j * (region.corner.imag - v * region.height)


def centered_viewport(center, width, height, rows, columns):
    center = complex(center)
    return Viewport(center + complex(-width / 2, height / 2), width, height, rows, columns)


def with_extent(viewport, width, height):
    """Change the extent in the complex plane while keeping the center fixed."""
    return centered_viewport(viewport.center, width, height, viewport.rows, viewport.columns)


def resize(viewport, rows, columns):
    return replace(viewport, rows=rows, columns=columns)


def move(viewport, direction):
    step_x = viewport.width * MOVE_FRACTION
    step_y = viewport.height * MOVE_FRACTION
    shifts = {
        "up": complex(0, step_y),
        "down": complex(0, -step_y),
        "left": complex(-step_x, 0),
        "right": complex(step_x, 0),
    }
    if direction not in shifts:
        raise ValueError(f"Unknown direction: {direction}")
    return replace(viewport, corner=viewport.corner + shifts[direction])


def zoom(viewport, factor):
    return with_extent(viewport, viewport.width * factor, viewport.height * factor)


def zoom_in(viewport):
    return zoom(viewport, ZOOM_IN_FACTOR)


def zoom_out(viewport):
    return zoom(viewport, ZOOM_OUT_FACTOR)
