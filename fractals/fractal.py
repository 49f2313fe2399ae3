import logging
from time import time

import numpy as np
from numba import njit, prange

from fractals.datatypes import BOUNDED, OrbitResult, Transform

IDENTITY = int(Transform.IDENTITY)
RECTIFY = int(Transform.RECTIFY)
CONJUGATE = int(Transform.CONJUGATE)


@njit
def apply_transform(z, transform):
    if transform == RECTIFY:
        return complex(abs(z.real), abs(z.imag))
    if transform == CONJUGATE:
        return z.conjugate()
    return z


@njit
def complex_power(z, power):
    """z^power = exp(power * log(z)) for any complex base and exponent."""
    if z.real == 0.0 and z.imag == 0.0:
        if power.real > 0.0:
            return 0j
        if power.real == 0.0 and power.imag == 0.0:
            return 1 + 0j
        return complex(np.inf, 0.0)
    return z**power


@njit
def orbit(z, transform, power, param, escape_radius, max_iterations, captured):
    """
    Iterate z = transform(z)^power + param until |z| >= escape_radius.
    The value about to be transformed is stored in `captured` while there is room.

    Returns (iterations or BOUNDED, final z, number of iterations performed)
    """
    capacity = captured.shape[0]
    iterations = 0
    escaped = abs(z) >= escape_radius
    while not escaped and iterations < max_iterations:
        if iterations < capacity:
            captured[iterations] = z
        z = complex_power(apply_transform(z, transform), power) + param
        escaped = abs(z) >= escape_radius
        iterations += 1

    if escaped:
        return iterations, z, iterations
    return BOUNDED, z, iterations


def evaluate(rule, start, max_iterations, capture_cap=0):
    """Run the orbit of `start` under `rule`, keeping at most `capture_cap` visited points."""
    captured = np.empty(max(int(capture_cap), 0), dtype=np.complex128)
    iterations, final, performed = orbit(
        complex(start),
        int(rule.transform),
        rule.power,
        rule.param,
        rule.escape_radius,
        int(max_iterations),
        captured,
    )
    return OrbitResult(
        iterations=int(iterations),
        final=complex(final),
        orbit=captured[:min(performed, captured.shape[0])].copy(),
    )


@njit(parallel=True)
def _escape_grid(corner, width, height, rows, columns, transform, power, param, escape_radius, max_iterations, julia):
    escape_counts = np.empty((rows, columns), dtype=np.int32)
    magnitudes = np.empty((rows, columns), dtype=np.float64)
    no_capture = np.empty(0, dtype=np.complex128)

    for i in prange(rows):  # parallelized
        for j in range(columns):
            point = complex(corner.real + j * width / columns, corner.imag - i * height / rows)
            if julia:
                start = point
                c = param
            else:
                start = param
                c = point
            count, z, _ = orbit(start, transform, power, c, escape_radius, max_iterations, no_capture)
            escape_counts[i, j] = count
            magnitudes[i, j] = abs(z)

    return escape_counts, magnitudes


def compute_fractal(viewport, rule, max_iterations=100, julia=False):
    """
    Compute escape counts for every cell of the viewport.

    Mandelbrot mode uses the cell as the parameter and rule.param as the seed of every orbit,
    julia mode starts the orbit at the cell with rule.param fixed.
    Returns (escape_counts, magnitudes), escape counts being BOUNDED for points that never escape.
    """
    start_time = time()
    escape_counts, magnitudes = _escape_grid(
        viewport.corner,
        viewport.width,
        viewport.height,
        viewport.rows,
        viewport.columns,
        int(rule.transform),
        rule.power,
        rule.param,
        rule.escape_radius,
        int(max_iterations),
        bool(julia),
    )
    logging.info(
        f"Escape-time computation of {viewport.rows}x{viewport.columns} cells "
        f"completed in {time() - start_time:.2f} seconds."
    )
    return escape_counts, magnitudes
