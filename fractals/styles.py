import numpy as np
from matplotlib import colormaps

from fractals.datatypes import ColorScheme


def rgba_to_rgb(color):
    return tuple(int(c * 255) for c in color[:3])


SCHEMES = {
    # blue background with orange and white highlight
    "starry": ColorScheme(
        colors=((0, 0, 100), (10, 75, 150), (252, 178, 0), (240, 252, 121), (255, 255, 255)),
        iters_per_cycle=50,
    ),
    # dark red background with yellow and blue highlight
    "firey": ColorScheme(
        colors=((183, 60, 0), (224, 77, 30), (237, 244, 26), (118, 190, 252), (255, 255, 255)),
        iters_per_cycle=35,
    ),
    # dark green background with cyan and yellow highlight
    "foresty": ColorScheme(
        colors=((23, 109, 24), (170, 92, 32), (175, 132, 66), (27, 211, 205)),
        iters_per_cycle=40,
    ),
}


def scheme_from_colormap(name, color_count=8, iters_per_cycle=None, set_color=(0, 0, 0), continuous=False):
    """Build a cyclic palette by sampling a matplotlib colormap at evenly spaced points."""
    colormap = colormaps[name]
    colors = [rgba_to_rgb(colormap(x)) for x in np.linspace(0.0, 1.0, color_count)]
    return ColorScheme(
        colors=tuple(colors),
        iters_per_cycle=color_count * 10 if iters_per_cycle is None else iters_per_cycle,
        set_color=set_color,
        continuous=continuous,
    )


def get_scheme(name, continuous=False):
    """Look up a built-in scheme, falling back to matplotlib colormaps."""
    if name in SCHEMES:
        scheme = SCHEMES[name]
        return ColorScheme(scheme.colors, scheme.iters_per_cycle, scheme.set_color, continuous)
    if name in colormaps:
        return scheme_from_colormap(name, continuous=continuous)
    raise ValueError(f"No color scheme found called {name!r}")


def available_schemes():
    return list(SCHEMES) + sorted(colormaps.keys())
