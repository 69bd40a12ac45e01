# settings.py
from dataclasses import dataclass, replace as _replace


@dataclass(frozen=True)
class ViewerSettings:
    # Zoom
    zoom_step: float = 0.1
    min_zoom: float = 0.5

    # Pan step, as a fraction of the (zoomed) image dimension
    pan_step: float = 0.1

    # Still images are fit to the screen minus this margin on every side
    margin: int = 50

    clear_color: str = "#030005"

    # How often the host drains queued frame advances
    poll_interval_ms: int = 5

    title: str = "vu"

    def __post_init__(self):
        if self.zoom_step <= 0:
            raise ValueError("zoom_step must be positive")
        if self.min_zoom <= 0:
            raise ValueError("min_zoom must be positive")
        if not 0 < self.pan_step <= 1:
            raise ValueError("pan_step must be in (0, 1]")
        if self.margin < 0:
            raise ValueError("margin must not be negative")
        if self.poll_interval_ms < 1:
            raise ValueError("poll_interval_ms must be at least 1")

    def replace(self, **overrides) -> "ViewerSettings":
        # None means "keep the default", which is what argparse hands us.
        changes = {k: v for k, v in overrides.items() if v is not None}
        return _replace(self, **changes)

    def max_image_size(self, screen_w: int, screen_h: int):
        return (
            max(1, screen_w - self.margin * 2),
            max(1, screen_h - self.margin * 2),
        )
