"""Response-curve presets and evaluation.

Curves are defined on the normalised 0..1 input range.  The end points
``(0, 0)`` and ``(1, 1)`` are implicit; a curve only lists the points in
between.  Used to preview settings, not to write them to the game.
"""

from __future__ import annotations

import numpy as np

from .models import CurveData, CurvePoint


CURVE_PRESETS: dict[str, list[tuple[float, float]]] = {
    "linear": [],
    "smooth": [
        (0.2, 0.05), (0.4, 0.15), (0.6, 0.35), (0.8, 0.65),
    ],
    "aggressive": [
        (0.1, 0.015), (0.2, 0.02), (0.3, 0.04), (0.4, 0.06), (0.5, 0.08),
        (0.6, 0.15), (0.7, 0.26), (0.8, 0.38), (0.9, 0.58),
    ],
    "precise": [
        (0.1, 0.02), (0.3, 0.08), (0.5, 0.20), (0.7, 0.45), (0.9, 0.80),
    ],
}


def preset_curve(name: str) -> CurveData:
    """Return a fresh :class:`CurveData` for preset *name*.

    Raises :class:`KeyError` for unknown presets.
    """
    if name not in CURVE_PRESETS:
        raise KeyError(f"Unknown curve preset {name!r}")
    return CurveData(points=[CurvePoint(input=x, output=y) for x, y in CURVE_PRESETS[name]])


def evaluate_curve(curve: CurveData | None, x: float | np.ndarray) -> float | np.ndarray:
    """Map input *x* (0..1, scalar or array) through *curve*.

    Piecewise-linear between the implicit end points and the curve's points
    sorted by input.  An empty or missing curve is the identity.
    """
    if curve is None or not curve.points:
        return x
    pts = sorted(curve.points, key=lambda p: p.input)
    xs = np.array([0.0] + [p.input for p in pts] + [1.0])
    ys = np.array([0.0] + [p.output for p in pts] + [1.0])
    result = np.interp(x, xs, ys)
    if np.ndim(result) == 0:
        return float(result)
    return result


def evaluate_exponent(exponent: float | None, x: float | np.ndarray) -> float | np.ndarray:
    """Apply an exponent response ``sign(x) * |x| ** exponent``."""
    if exponent is None:
        return x
    result = np.sign(x) * np.abs(x) ** exponent
    if np.ndim(result) == 0:
        return float(result)
    return result


def sample_curve(curve: CurveData | None, samples: int = 21) -> list[tuple[float, float]]:
    """Return *samples* evenly spaced ``(input, output)`` pairs for plotting."""
    if samples < 2:
        raise ValueError(f"samples must be >= 2, got {samples}")
    xs = np.linspace(0.0, 1.0, samples)
    ys = np.asarray(evaluate_curve(curve, xs))
    return [(float(a), float(b)) for a, b in zip(xs, ys)]
