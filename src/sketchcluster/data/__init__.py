from .processing import (
    concat_strokes,
    downsample,
    interpolate,
    resample,
    strokes_to_features,
    upsample,
)

__all__ = [
    "concat_strokes",
    "downsample",
    "interpolate",
    "resample",
    "strokes_to_features",
    "upsample",
]
