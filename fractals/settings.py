import logging
from dataclasses import dataclass, replace

import yaml

from fractals.datatypes import FractalRule, Transform, Viewport
from fractals.styles import get_scheme

CONTINUOUS_ESCAPE_RADIUS = 100.0  # default radius when smoothing, a large radius hides the bands


@dataclass
class FractalSettings:
    rule: FractalRule
    view: Viewport  # window being displayed or exported
    iterations: int = 100
    julia: bool = False
    scheme: str = "starry"
    continuous: bool = False
    # density (Buddhabrot) mode
    gamma: float = 0.5
    plot: Viewport | None = None  # area and resolution of the histogram
    region: Viewport | None = None  # area orbits are started from
    min_length: int = 10
    max_length: int = 100
    samples: int = 10000  # orbits per accumulation pass
    colormap: str | None = None  # greyscale when None

    def __post_init__(self):
        if self.iterations < 0:
            raise ValueError(f"Iterations must not be negative, got {self.iterations}")
        if not self.gamma > 0:
            raise ValueError(f"Gamma must be positive, got {self.gamma}")
        if self.samples < 0:
            raise ValueError(f"Samples per pass must not be negative, got {self.samples}")

    def color_scheme(self):
        return get_scheme(self.scheme, continuous=self.continuous)


default_settings = FractalSettings(
    rule=FractalRule(Transform.IDENTITY, power=2, param=0, escape_radius=2),
    view=Viewport(corner=complex(-1, 1), width=2, height=2, rows=1000, columns=1000),
)

buddhabrot_settings = FractalSettings(
    rule=FractalRule(Transform.IDENTITY, power=2, param=0, escape_radius=2),
    view=Viewport(corner=complex(-2, 2), width=4, height=4, rows=1000, columns=1000),
    plot=Viewport(corner=complex(-2, 2), width=4, height=4, rows=1000, columns=1000),
    region=Viewport(corner=complex(-2, 2), width=4, height=4, rows=1, columns=1),
)


def complex_to_dict(value):
    return {"real": float(value.real), "imag": float(value.imag)}


def dict_to_complex(value):
    """Accept {real, imag} mappings, [real, imag] pairs or plain numbers."""
    if isinstance(value, dict):
        return complex(value.get("real", 0.0), value.get("imag", 0.0))
    if isinstance(value, (list, tuple)):
        return complex(*value)
    return complex(value)


def viewport_to_dict(viewport):
    if viewport is None:
        return None
    return {
        "corner": complex_to_dict(viewport.corner),
        "width": viewport.width,
        "height": viewport.height,
        "rows": viewport.rows,
        "columns": viewport.columns,
    }


def dict_to_viewport(viewport_dict):
    if viewport_dict is None:
        return None
    return Viewport(
        corner=dict_to_complex(viewport_dict["corner"]),
        width=viewport_dict["width"],
        height=viewport_dict["height"],
        rows=viewport_dict.get("rows", 1),
        columns=viewport_dict.get("columns", 1),
    )


def settings_to_dict(settings):
    """Convert FractalSettings to a dictionary for YAML serialization."""
    return {
        "rule": {
            "transform": settings.rule.transform.name.lower(),
            "power": complex_to_dict(settings.rule.power),
            "param": complex_to_dict(settings.rule.param),
            "radius": settings.rule.escape_radius,
        },
        "location": {
            "view": viewport_to_dict(settings.view),
        },
        "computation": {
            "iterations": settings.iterations,
            "julia": settings.julia,
        },
        "presentation": {
            "scheme": settings.scheme,
            "continuous": settings.continuous,
            "gamma": settings.gamma,
            "colormap": settings.colormap,
        },
        "density": {
            "plot": viewport_to_dict(settings.plot),
            "region": viewport_to_dict(settings.region),
            "min_length": settings.min_length,
            "max_length": settings.max_length,
            "samples": settings.samples,
        },
    }


def dict_to_settings(settings_dict, base=default_settings):
    """
    Convert a dictionary to a FractalSettings object.
    Missing sections and keys keep the values of `base`.
    """
    rule_dict = settings_dict.get("rule") or {}
    location = settings_dict.get("location") or {}
    computation = settings_dict.get("computation") or {}
    presentation = settings_dict.get("presentation") or {}
    density = settings_dict.get("density") or {}

    continuous = presentation.get("continuous", base.continuous)
    radius = rule_dict.get("radius")
    if radius is None:
        radius = CONTINUOUS_ESCAPE_RADIUS if continuous else base.rule.escape_radius

    rule = FractalRule(
        transform=Transform.from_name(rule_dict["transform"]) if "transform" in rule_dict else base.rule.transform,
        power=dict_to_complex(rule_dict["power"]) if "power" in rule_dict else base.rule.power,
        param=dict_to_complex(rule_dict["param"]) if "param" in rule_dict else base.rule.param,
        escape_radius=radius,
    )
    scheme = presentation.get("scheme", base.scheme)
    get_scheme(scheme)  # fail on unknown names when loading rather than when rendering

    return replace(
        base,
        rule=rule,
        view=dict_to_viewport(location["view"]) if "view" in location else base.view,
        iterations=int(computation.get("iterations", base.iterations)),
        julia=bool(computation.get("julia", base.julia)),
        scheme=scheme,
        continuous=bool(continuous),
        gamma=float(presentation.get("gamma", base.gamma)),
        colormap=presentation.get("colormap", base.colormap),
        plot=dict_to_viewport(density["plot"]) if "plot" in density else base.plot,
        region=dict_to_viewport(density["region"]) if "region" in density else base.region,
        min_length=int(density.get("min_length", base.min_length)),
        max_length=int(density.get("max_length", base.max_length)),
        samples=int(density.get("samples", base.samples)),
    )


def save_settings(settings, file_path):
    """Save fractal settings to a YAML file."""
    settings_dict = settings_to_dict(settings)
    with open(file_path, "w") as file:
        yaml.dump(settings_dict, file, default_flow_style=False)
    logging.info(f"Settings saved to {file_path}")


def load_settings(file_path, base=default_settings):
    """Load fractal settings from a YAML file."""
    with open(file_path, "r") as file:
        settings_dict = yaml.safe_load(file) or {}
    settings = dict_to_settings(settings_dict, base=base)
    logging.info(f"Settings loaded from {file_path}")
    return settings
