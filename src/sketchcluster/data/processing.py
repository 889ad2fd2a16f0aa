"""Convert QuickDraw stroke data to fixed-length feature vectors.

A drawing is a list of strokes, each ``[x_coords, y_coords]``. All strokes are
concatenated into one point sequence of length T, which is then brought to
exactly M points:

* T == M: used as is.
* T > M: M points are picked at indices ``floor(i * T / M)``.
* T < M: points are linearly interpolated at a step of ``1/q`` of the original
  spacing, then trimmed back to M points when the step is not exact.

The result is flattened to ``(x1, y1, ..., xM, yM)``.
"""

from __future__ import annotations

import numpy as np

from ..errors import ConfigurationError, InvalidStrokeData


def concat_strokes(strokes: list[list[list[float]]]) -> tuple[np.ndarray, np.ndarray]:
    """Concatenate all strokes into one x sequence and one y sequence."""
    xs, ys = [], []
    for i, stroke in enumerate(strokes):
        stroke_x, stroke_y = stroke[0], stroke[1]
        if len(stroke_x) != len(stroke_y):
            raise InvalidStrokeData(
                f"stroke {i} has {len(stroke_x)} x values but {len(stroke_y)} y values"
            )
        xs.extend(stroke_x)
        ys.extend(stroke_y)
    return np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)


def interleave(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Merge x and y sequences into ``(x1, y1, x2, y2, ...)``."""
    out = np.empty(2 * len(xs), dtype=np.float64)
    out[0::2] = xs
    out[1::2] = ys
    return out


def downsample_indices(t: int, m: int) -> np.ndarray:
    """Indices ``floor(i * t / m)`` for ``i = 0..m-1``.

    Repeated indices are possible when t is close to m (or smaller).
    """
    return np.arange(m, dtype=np.int64) * t // m


def downsample(xs: np.ndarray, ys: np.ndarray, m: int) -> np.ndarray:
    """Keep m of the points by nearest-floor index selection."""
    idx = downsample_indices(len(xs), m)
    return interleave(xs[idx], ys[idx])


def upsample_step(t: int, m: int) -> tuple[int, int]:
    """Return ``(q, m_expanded)`` with ``m_expanded - 1`` a multiple of ``t - 1``.

    When ``(m - 1)`` divides evenly by ``(t - 1)`` the expanded length equals m.
    Otherwise q is rounded half up and ``m_expanded = q * (t - 1) + 1``, which
    has to be trimmed back to m afterwards.
    """
    if t < 2:
        raise InvalidStrokeData(f"cannot interpolate from {t} point(s)")
    if (m - 1) % (t - 1) == 0:
        return (m - 1) // (t - 1), m
    q = int(np.floor((m - 1) / (t - 1) + 0.5))
    return q, q * (t - 1) + 1


def interpolate(values: np.ndarray, q: int, m_expanded: int) -> np.ndarray:
    """Linearly interpolate ``values`` at a step of ``1/q``, producing ``m_expanded`` values.

    Output position ``i`` (1-based) blends ``values[i // q - 1]`` and
    ``values[i // q]`` with weight ``(i % q) / q`` on the latter. Terms whose
    index falls outside the input contribute nothing.
    """
    t = len(values)
    i = np.arange(1, m_expanded + 1)
    index1 = i // q - 1
    index2 = i // q
    frac = (i % q) / q

    out = np.zeros(m_expanded, dtype=np.float64)
    valid1 = (index1 >= 0) & (index1 < t)
    valid2 = (index2 >= 0) & (index2 < t)
    out[valid1] += (1.0 - frac[valid1]) * values[index1[valid1]]
    out[valid2] += frac[valid2] * values[index2[valid2]]
    return out


def upsample(xs: np.ndarray, ys: np.ndarray, m: int) -> np.ndarray:
    """Grow the point sequence to m points by interpolation."""
    q, m_expanded = upsample_step(len(xs), m)
    x_new = interpolate(xs, q, m_expanded)
    y_new = interpolate(ys, q, m_expanded)
    if m_expanded != m:
        return downsample(x_new, y_new, m)
    return interleave(x_new, y_new)


def resample(xs: np.ndarray, ys: np.ndarray, m: int) -> np.ndarray:
    """Bring a point sequence to exactly m points and flatten it to ``2 * m`` values."""
    if m < 1:
        raise ConfigurationError(f"feature_length must be >= 1, got {m}")
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    if len(xs) != len(ys):
        raise InvalidStrokeData(f"got {len(xs)} x values but {len(ys)} y values")

    t = len(xs)
    if t > m:
        return downsample(xs, ys, m)
    if t < m:
        return upsample(xs, ys, m)
    return interleave(xs, ys)


def strokes_to_features(strokes: list[list[list[float]]], feature_length: int = 70) -> np.ndarray:
    """Convert QuickDraw strokes to a ``(2 * feature_length,)`` float64 vector."""
    xs, ys = concat_strokes(strokes)
    return resample(xs, ys, feature_length)
