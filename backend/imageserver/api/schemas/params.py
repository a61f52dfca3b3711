"""
Pydantic schemas for image transform parameters.
Normalizes the w/h/q query values and derives the cache key.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Optional


def _to_int(value: Any) -> Optional[int]:
    """Parse a query value as an integer, None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class TransformParams(BaseModel):
    """
    Requested resize and recompression.

    Width and height must be positive; zero, negative or non-numeric
    values are treated as absent. Quality must be non-negative; values
    above 100 are kept here and capped when encoding.
    """

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = None
    height: Optional[int] = None
    quality: Optional[int] = None

    @field_validator("width", "height", mode="before")
    @classmethod
    def positive_dimension(cls, v):
        v = _to_int(v)
        return v if v is not None and v > 0 else None

    @field_validator("quality", mode="before")
    @classmethod
    def non_negative_quality(cls, v):
        v = _to_int(v)
        return v if v is not None and v >= 0 else None

    @property
    def is_empty(self) -> bool:
        return self.width is None and self.height is None and self.quality is None

    def cache_key(self) -> Optional[str]:
        """
        Cache directory name for this parameter set.

        Fields are rendered in the fixed order width, height, quality,
        e.g. "w100h50q80". No key when every field is absent.
        """
        parts = []
        if self.width is not None:
            parts.append(f"w{self.width}")
        if self.height is not None:
            parts.append(f"h{self.height}")
        if self.quality is not None:
            parts.append(f"q{self.quality}")
        return "".join(parts) or None


def parse_transform_params(
    w: Any = None,
    h: Any = None,
    q: Any = None
) -> Optional[TransformParams]:
    """
    Build TransformParams from raw query values.

    Returns:
        TransformParams, or None when no usable parameter was supplied
    """
    params = TransformParams(width=w, height=h, quality=q)
    if params.is_empty:
        return None
    return params
