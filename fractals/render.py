import logging
from time import time

from PIL import Image

from fractals.coloring import color_grid, colormap_rgb, greyscale, intensity_grid, smooth_iterations
from fractals.fractal import compute_fractal
from fractals.parameters import resize
from fractals.plot_utils import project


def render_escape_time(rule, viewport, max_iterations, scheme, julia=False):
    """Color every cell of the viewport by how fast its orbit escapes."""
    escape_counts, magnitudes = compute_fractal(viewport, rule, max_iterations, julia=julia)
    bounded = escape_counts < 0
    values = escape_counts
    if scheme.continuous:
        values = smooth_iterations(escape_counts, magnitudes, rule.escape_radius, rule.power)
    return color_grid(scheme, values, bounded=bounded)


def render_density(plot, viewport, gamma, rows=None, columns=None, colormap=None):
    """
    Show the part of a density plot inside `viewport`.
    Brightness is normalized by the largest bin in view, so it adapts as the view moves.
    """
    counts, max_count = project(plot.grid, plot.viewport, viewport, rows, columns)
    intensities = intensity_grid(counts, max_count, gamma)
    if colormap is None:
        return greyscale(intensities)
    return colormap_rgb(intensities, colormap)


def render_settings(settings, rows=None, columns=None):
    """Escape-time render of the settings' view, at any resolution."""
    viewport = settings.view
    if rows is not None or columns is not None:
        viewport = resize(
            viewport,
            viewport.rows if rows is None else rows,
            viewport.columns if columns is None else columns,
        )
    return render_escape_time(
        settings.rule, viewport, settings.iterations, settings.color_scheme(), julia=settings.julia
    )


def to_image(rgb):
    return Image.fromarray(rgb)


def save_image(rgb, file_path):
    """Write a grid of RGB triples to an image file, the format following the file extension."""
    start_time = time()
    rows, columns, _ = rgb.shape
    to_image(rgb).save(file_path)
    logging.info(f"Exported {columns}x{rows} image to {file_path} in {time() - start_time:.2f} seconds.")
