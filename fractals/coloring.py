import numpy as np
from matplotlib import colormaps


def intensity(count, max_count, gamma):
    """Brightness in [0, 1] of a bin: (count / max_count) ^ gamma."""
    if max_count <= 0:
        return 0.0
    return float((count / max_count) ** gamma)


def intensity_grid(counts, max_count, gamma):
    if max_count <= 0:
        return np.zeros(np.shape(counts), dtype=np.float64)
    return (np.asarray(counts, dtype=np.float64) / max_count) ** gamma


def greyscale(intensities):
    grey = (np.clip(intensities, 0.0, 1.0) * 255).astype(np.uint8)
    return np.repeat(grey[..., None], 3, axis=-1)


def colormap_rgb(intensities, name):
    """Color normalized values with a matplotlib colormap."""
    colormap = colormaps[name]
    return (colormap(np.clip(intensities, 0.0, 1.0))[..., :3] * 255).astype(np.uint8)


def smooth_iterations(escape_counts, magnitudes, escape_radius, power):
    """
    Turn discrete escape counts into continuous values:
        n - log(log|z| / log(radius)) / log|power|

    Cells that never escaped or escaped at the start keep their count, as do cells that ended with
    |z| <= 1 or a non-finite |z|, and so does everything when the radius is at most 1 or |power| is 0 or 1.
    """
    values = np.asarray(escape_counts, dtype=np.float64)
    magnitudes = np.asarray(magnitudes, dtype=np.float64)
    power_abs = abs(complex(power))
    if escape_radius <= 1 or power_abs == 0 or power_abs == 1:
        return values.copy()

    smoothable = (values > 0) & (magnitudes > 1) & np.isfinite(magnitudes)
    with np.errstate(divide="ignore", invalid="ignore"):
        correction = np.log(np.log(magnitudes) / np.log(escape_radius)) / np.log(power_abs)
        return np.where(smoothable, values - correction, values)


def color_grid(scheme, values, bounded=None):
    """
    Color escape-time values with a cyclic palette.

    values: iteration values, negative for points inside the set
    bounded: mask of points inside the set, defaults to values < 0
    Returns an array of uint8 RGB triples with the shape of values plus a trailing axis of 3
    """
    values = np.asarray(values, dtype=np.float64)
    if bounded is None:
        bounded = values < 0

    colors = np.array(scheme.colors, dtype=np.float64)
    count = scheme.color_count

    # Collapse values into one cycle, then find the palette position
    cycled = np.mod(values, scheme.iters_per_cycle)
    position = cycled * count / scheme.iters_per_cycle
    index = np.floor(position).astype(np.int64)
    weight = (position - index)[..., None]

    first = colors[index % count]
    second = colors[(index + 1) % count]
    rgb = np.rint((1 - weight) * first + weight * second).astype(np.uint8)
    rgb[bounded] = scheme.set_color
    return rgb


def scheme_color(scheme, value):
    """Color of a single iteration value, `scheme.set_color` when the value is negative."""
    return tuple(int(channel) for channel in color_grid(scheme, np.array([value]))[0])
