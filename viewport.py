# viewport.py
import logging
import math
from typing import Callable, Optional, Tuple

from framelib import CHANNELS, FrameSource
from settings import ViewerSettings


logger = logging.getLogger(__name__)


class PresentationError(Exception):
    pass


# -----------------------------
# Presentation buffer
# -----------------------------

class PixelBuffer:
    """
    RGBA pixel buffer (width * height * 4 bytes) that the viewport writes
    into. render() hands it to `present`; hosts may override render().
    """

    def __init__(self, width: int, height: int,
                 present: Optional[Callable[["PixelBuffer"], None]] = None):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid buffer size {width}x{height}")
        self.width = width
        self.height = height
        self.frame = bytearray(width * height * CHANNELS)
        self._present = present

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def resize(self, width: int, height: int):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid buffer size {width}x{height}")
        self.width = width
        self.height = height
        self.frame = bytearray(width * height * CHANNELS)

    def clear(self):
        self.frame[:] = bytes(len(self.frame))

    def render(self):
        if self._present is not None:
            self._present(self)


# -----------------------------
# Windowing
# -----------------------------

def centered_span(img_dim: int, win_dim: int, offset: int) -> Tuple[int, int]:
    """
    Range [start, end) of image pixels under a window of `win_dim`, with the
    window centered on the image center shifted by `offset`.
    """
    # Half the size difference, so odd window sizes still reach column/row 0.
    start = min(max((img_dim - win_dim) // 2 + offset, 0), img_dim)
    return start, start + win_dim


def window_padding(img_dim: int, win_dim: int) -> int:
    # Centers an image that is smaller than the window.
    return max(0, (win_dim - img_dim) // 2)


def pan_limit(img_dim: int, win_dim: int) -> int:
    return max(0, int(math.floor(img_dim / 2 - win_dim / 2)))


def copy_window(dest: bytearray,
                buffer: bytes,
                img_size: Tuple[int, int],
                win_size: Tuple[int, int],
                offset: Tuple[int, int]):
    """
    Copy the visible part of `buffer` into `dest` row by row. Only the copied
    region is written; everything else in `dest` is left as it was.
    """
    img_w, img_h = img_size
    win_w, win_h = win_size
    off_x, off_y = offset

    pad_x = window_padding(img_w, win_w)
    pad_y = window_padding(img_h, win_h)

    start_x, end_x = centered_span(img_w, win_w, off_x)
    start_y, end_y = centered_span(img_h, win_h, off_y)

    end_y = min(end_y, img_h)
    slice_w = max(0, min(end_x, img_w) - start_x)
    slice_w = min(slice_w, win_w - pad_x)
    row_bytes = slice_w * CHANNELS
    if row_bytes <= 0:
        return

    src = memoryview(buffer)
    for i, y in enumerate(range(start_y, end_y)):
        dy = pad_y + i
        if dy >= win_h:
            break
        a = (y * img_w + start_x) * CHANNELS
        d = (dy * win_w + pad_x) * CHANNELS
        dest[d:d + row_bytes] = src[a:a + row_bytes]


def buffer_window(buffer: bytes,
                  img_size: Tuple[int, int],
                  win_size: Tuple[int, int],
                  offset: Tuple[int, int]) -> bytearray:
    win_w, win_h = win_size
    out = bytearray(win_w * win_h * CHANNELS)
    copy_window(out, buffer, img_size, win_size, offset)
    return out


# -----------------------------
# Viewport
# -----------------------------

class Viewport:
    """
    Zoom/pan state over a FrameSource, rendered into a PixelBuffer.

    The base source stays untouched; when zoomed, a scaled copy is rebuilt
    from it on every zoom change. The base cursor decides which frame is
    shown, whichever of the two is being windowed.
    """

    def __init__(self, source: FrameSource, surface: PixelBuffer,
                 settings: Optional[ViewerSettings] = None):
        self.settings = settings or ViewerSettings()

        # Source image and the zoom cache built from it
        self.image = source
        self._scaled: Optional[FrameSource] = None

        self._zoom = 1.0
        self._pan = (0, 0)  # center-anchored

        self.surface = surface
        self._update(advance=True)

    # -----------------------------
    # Public API
    # -----------------------------
    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def pan(self) -> Tuple[int, int]:
        return self._pan

    @property
    def scaled(self) -> Optional[FrameSource]:
        return self._scaled

    @property
    def window_size(self) -> Tuple[int, int]:
        return self.surface.size

    @property
    def image_size(self) -> Tuple[int, int]:
        """Size of the image being windowed (the scaled copy when zoomed)."""
        image = self._scaled if self._scaled is not None else self.image
        return image.size()

    def draw(self) -> bool:
        try:
            self.surface.render()
        except PresentationError as e:
            logger.warning("Presentation failed: %s", e)
            return False
        return True

    def advance(self) -> bool:
        self._update(advance=True)
        return self.draw()

    def resize(self, width: int, height: int, refit: bool = False) -> bool:
        self.surface.resize(width, height)
        # Nothing to fit into an empty window; keep the current zoom.
        if refit and width > 0 and height > 0:
            w, h = self.image.size()
            return self._set_zoom(min(width / w, height / h))
        self._update()
        return self.draw()

    def zoom_in(self) -> bool:
        return self._set_zoom(self._zoom + self.settings.zoom_step)

    def zoom_out(self) -> bool:
        floor = min(self.settings.min_zoom, self._zoom)
        return self._set_zoom(max(self._zoom - self.settings.zoom_step, floor))

    def pan_up(self) -> bool:
        return self._pan_by(0, -self._pan_step(1))

    def pan_down(self) -> bool:
        return self._pan_by(0, self._pan_step(1))

    def pan_left(self) -> bool:
        return self._pan_by(-self._pan_step(0), 0)

    def pan_right(self) -> bool:
        return self._pan_by(self._pan_step(0), 0)

    # -----------------------------
    # Zoom / pan
    # -----------------------------
    def _set_zoom(self, zoom: float) -> bool:
        zoom = round(zoom, 6)
        self._zoom = zoom
        if zoom == 1.0:
            self._scaled = None
        else:
            self._scaled = self.image.scaled(zoom)
        logger.debug("Zoom %.2f -> image %dx%d", zoom, *self.image_size)
        self._update()
        return self.draw()

    def _pan_step(self, axis: int) -> int:
        return int(math.floor(self.image_size[axis] * self.settings.pan_step))

    def _pan_by(self, dx: int, dy: int) -> bool:
        self._pan = (self._pan[0] + dx, self._pan[1] + dy)
        self._update()
        return self.draw()

    def _clamp_pan(self):
        im_w, im_h = self.image_size
        win_w, win_h = self.window_size
        x_limit = pan_limit(im_w, win_w)
        y_limit = pan_limit(im_h, win_h)
        x = min(max(self._pan[0], -x_limit), x_limit)
        y = min(max(self._pan[1], -y_limit), y_limit)
        self._pan = (x, y)

    # -----------------------------
    # Core render
    # -----------------------------
    def _frame_data(self) -> bytes:
        pos = max(0, self.image.index - 1)
        image = self._scaled if self._scaled is not None else self.image
        return image.frame_at(pos)

    def _update(self, advance: bool = False):
        """Write the current windowed view of the image into the surface."""
        self._clamp_pan()
        if advance:
            self.image.next_frame()
        data = self._frame_data()

        # Clear first so a shrinking visible region leaves no stale pixels.
        self.surface.clear()
        copy_window(self.surface.frame, data, self.image_size, self.window_size, self._pan)
