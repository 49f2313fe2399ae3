"""
Monte-Carlo orbit density (Buddhabrot).

Random points of a sampling region are used both as the start and as the parameter of their own
orbit. Every point visited by an orbit that escapes after more than `min_length` iterations is
counted in the histogram bin it falls into.
"""
import itertools
import logging
from time import time, time_ns

import numpy as np
from numba import njit, prange

from fractals.fractal import orbit
from fractals.parameters import cell_index, sample_region, to_grid

GRID_DTYPE = np.uint32
GRID_CEILING = int(np.iinfo(GRID_DTYPE).max)  # bins saturate instead of wrapping around
DEFAULT_BATCH_SIZE = 10_000
CAPTURE_BUDGET = 256 * 2**20  # bytes of captured orbit points held per batch

_session_counter = itertools.count()


def session_seed():
    """Seed that differs between sessions started within the same clock tick."""
    return np.random.SeedSequence([time_ns(), next(_session_counter)])


def new_grid(viewport):
    return np.zeros((viewport.rows, viewport.columns), dtype=GRID_DTYPE)


def batch_rows(batch_size, sample_count, max_length):
    """Orbits evaluated per batch, limited so their captured points fit in CAPTURE_BUDGET."""
    budget_rows = CAPTURE_BUDGET // (int(max_length) * np.dtype(np.complex128).itemsize)
    return max(1, min(int(batch_size), int(sample_count), budget_rows))


@njit(parallel=True)
def _sample_orbits(samples, transform, power, escape_radius, max_length, captured, lengths):
    for i in prange(samples.shape[0]):  # parallelized
        point = samples[i]
        iterations, _, _ = orbit(point, transform, power, point, escape_radius, max_length, captured[i])
        lengths[i] = iterations


@njit
def _bin_orbits(grid, corner, width, height, captured, lengths, min_length, ceiling):
    rows, columns = grid.shape
    added = 0
    for i in range(lengths.shape[0]):
        length = lengths[i]
        if length <= min_length:
            continue
        for k in range(length):
            offset = captured[i, k] - corner
            col = cell_index(offset.real * columns / width)
            row = cell_index(-offset.imag * rows / height)
            if 0 <= row < rows and 0 <= col < columns:
                if grid[row, col] < ceiling:
                    grid[row, col] += 1
                added += 1
    return added


def accumulate(
    grid,
    viewport,
    region,
    rule,
    min_length,
    max_length,
    sample_count,
    rng,
    batch_size=DEFAULT_BATCH_SIZE,
    should_stop=None,
):
    """
    Add the orbits of `sample_count` random points of `region` to `grid`.

    grid: (viewport.rows, viewport.columns) histogram, modified in place
    viewport: area of the complex plane covered by the grid
    region: area the starting points are drawn from
    rule: transform, power and escape radius of the orbits, its param is replaced by each sample
    min_length: orbits escaping after this many iterations or fewer are ignored
    max_length: iteration cap, also the number of points kept per orbit
    rng: numpy Generator drawing the samples
    should_stop: optional callable checked between batches, stops the accumulation when true

    Returns the number of orbit points added to the grid
    """
    if grid.shape != viewport.shape:
        raise ValueError(f"Grid of shape {grid.shape} does not match viewport {viewport.shape}")
    if sample_count <= 0 or max_length <= 0 or min_length >= max_length:
        return 0

    max_length = int(max_length)
    captured = np.empty((batch_rows(batch_size, sample_count, max_length), max_length), dtype=np.complex128)
    lengths = np.empty(captured.shape[0], dtype=np.int64)

    added = 0
    remaining = int(sample_count)
    while remaining > 0:
        if should_stop is not None and should_stop():
            logging.info(f"Accumulation halted with {remaining} samples left.")
            break

        count = min(remaining, captured.shape[0])
        samples = sample_region(region, count, rng)
        _sample_orbits(
            samples,
            int(rule.transform),
            rule.power,
            rule.escape_radius,
            max_length,
            captured[:count],
            lengths[:count],
        )
        added += int(
            _bin_orbits(
                grid,
                viewport.corner,
                viewport.width,
                viewport.height,
                captured[:count],
                lengths[:count],
                int(min_length),
                GRID_CEILING,
            )
        )
        remaining -= count

    return added


class DensityPlot:
    """Histogram of orbit points over a fixed area of the complex plane."""

    def __init__(self, viewport, seed=None):
        self.viewport = viewport
        self.grid = new_grid(viewport)
        self.rng = np.random.default_rng(session_seed() if seed is None else seed)
        self.plotted = 0

    def clear(self):
        self.grid.fill(0)
        self.plotted = 0

    def redefine(self, viewport):
        """Clear the plot and move it to a new area, reallocating if the resolution changes."""
        if viewport.shape != self.grid.shape:
            self.grid = new_grid(viewport)
        else:
            self.grid.fill(0)
        self.viewport = viewport
        self.plotted = 0
        logging.info(f"Plot redefined to {viewport.width} x {viewport.height} at {viewport.center}.")

    def max(self):
        return int(self.grid.max())

    def at(self, point):
        """Count of the bin containing `point`, None outside the plot."""
        row, col, in_bounds = to_grid(self.viewport, point)
        if not in_bounds:
            return None
        return int(self.grid[row, col])

    def accumulate(self, region, rule, min_length, max_length, sample_count, **kwargs):
        start_time = time()
        added = accumulate(
            self.grid, self.viewport, region, rule, min_length, max_length, sample_count, self.rng, **kwargs
        )
        self.plotted += added
        logging.info(
            f"Plotted {added} points from {sample_count} orbits in {time() - start_time:.2f} seconds "
            f"({self.plotted} total)."
        )
        return added
