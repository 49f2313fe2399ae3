import logging

import numpy as np

from fractals.parameters import cell_index


def visible_range(source_viewport, target_viewport):
    """
    Rows and columns of the source grid covered by the target viewport.
    The range may reach outside the source grid.

    Returns (min_row, max_row, min_col, max_col), max values exclusive
    """
    offset = target_viewport.corner - source_viewport.corner
    rows_per_unit = source_viewport.rows / source_viewport.height
    columns_per_unit = source_viewport.columns / source_viewport.width

    min_row = cell_index(-offset.imag * rows_per_unit)
    max_row = cell_index((-offset.imag + target_viewport.height) * rows_per_unit)
    min_col = cell_index(offset.real * columns_per_unit)
    max_col = cell_index((offset.real + target_viewport.width) * columns_per_unit)
    return min_row, max_row, min_col, max_col


def _target_indices(start, stop, range_start, range_size, target_size):
    """Source indices in [start, stop) and the target index each one lands on."""
    source = np.arange(start, stop)
    return source, (source - range_start) * target_size // range_size


def project(source, source_viewport, target_viewport, target_rows=None, target_columns=None):
    """
    Aggregate the cells of a grid over `source_viewport` into a grid over `target_viewport`.

    Source cells landing on the same target cell are summed, target cells no source cell maps to
    stay 0.
    Returns (aggregated grid, maximum aggregated value)
    """
    target_rows = target_viewport.rows if target_rows is None else int(target_rows)
    target_columns = target_viewport.columns if target_columns is None else int(target_columns)
    target = np.zeros((target_rows, target_columns), dtype=np.uint64)

    min_row, max_row, min_col, max_col = visible_range(source_viewport, target_viewport)
    row_span = max_row - min_row
    col_span = max_col - min_col
    if row_span <= 0 or col_span <= 0 or target.size == 0:
        logging.warning("Target viewport covers no cells of the source grid.")
        return target, 0

    rows, columns = source.shape
    source_rows, target_row_index = _target_indices(
        max(min_row, 0), min(max_row, rows), min_row, row_span, target_rows
    )
    source_cols, target_col_index = _target_indices(
        max(min_col, 0), min(max_col, columns), min_col, col_span, target_columns
    )
    if source_rows.size == 0 or source_cols.size == 0:
        return target, 0

    block = source[source_rows[0]:source_rows[-1] + 1, source_cols[0]:source_cols[-1] + 1]
    np.add.at(target, (target_row_index[:, None], target_col_index[None, :]), block.astype(np.uint64))
    return target, int(target.max())
