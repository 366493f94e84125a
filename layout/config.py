"""Editor configuration with environment overrides."""
import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from layout.constants import (
    COLLISION_BUFFER,
    DEFAULT_PIXELS_PER_METER,
    DEFAULT_SNAP_THRESHOLD_PX,
    MAX_HISTORY_ENTRIES,
    ZOOM_MAX,
    ZOOM_MIN,
)

log = logging.getLogger(__name__)

ENV_PREFIX = "FLOORPLAN_"


class EditorConfig(BaseModel):
    pixels_per_meter: float = Field(default=DEFAULT_PIXELS_PER_METER, gt=0)
    zoom_min: float = Field(default=ZOOM_MIN, gt=0)
    zoom_max: float = Field(default=ZOOM_MAX, gt=0)
    history_max: int = Field(default=MAX_HISTORY_ENTRIES, ge=1)
    collision_buffer: float = Field(default=COLLISION_BUFFER, ge=0)
    snap_threshold_px: float = Field(default=DEFAULT_SNAP_THRESHOLD_PX, ge=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EditorConfig":
        """Build a config, overriding defaults from ``FLOORPLAN_*`` variables.

        Unparseable values are logged and ignored.
        """
        env = os.environ if environ is None else environ
        values = {}
        for name, field in cls.model_fields.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                values[name] = field.annotation(raw)
            except ValueError:
                log.warning("Ignoring %s%s=%r: not a number", ENV_PREFIX, name.upper(), raw)
        return cls(**values)
