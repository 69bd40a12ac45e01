# framelib.py
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageSequence, UnidentifiedImageError


logger = logging.getLogger(__name__)

# Bytes per pixel (RGBA).
CHANNELS = 4

# Used when an animated file gives no (or a zero) frame duration.
DEFAULT_FRAME_DELAY = 0.1


class DecodeError(Exception):
    pass


# -----------------------------
# Data structures
# -----------------------------

@dataclass(frozen=True)
class Frame:
    data: bytes
    width: int
    height: int

    def __post_init__(self):
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"Frame buffer is {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.data)

    @classmethod
    def from_image(cls, img: Image.Image) -> "Frame":
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        return cls(rgba.tobytes(), rgba.width, rgba.height)

    def scaled(self, scale: float, resample=Image.NEAREST) -> "Frame":
        target = scale_size(self.size, scale)
        if target == self.size:
            return self
        out = self.to_image().resize(target, resample=resample)
        return Frame.from_image(out)


class FrameSource:
    """
    Pixel data for one image: either a single still frame or a cyclic
    sequence of frames with per-frame display delays (seconds).
    """

    def size(self) -> Tuple[int, int]:
        raise NotImplementedError

    def delays(self) -> Optional[List[float]]:
        return None

    @property
    def frame_count(self) -> int:
        return 1

    @property
    def index(self) -> int:
        return 0

    def next_frame(self) -> bytes:
        raise NotImplementedError

    def current_frame(self) -> bytes:
        raise NotImplementedError

    def frame_at(self, index: int) -> bytes:
        raise NotImplementedError

    def scaled(self, scale: float, resample=Image.NEAREST) -> "FrameSource":
        raise NotImplementedError


class SingleFrame(FrameSource):
    def __init__(self, frame: Frame):
        self.frame = frame

    def __repr__(self):
        return f"SingleFrame({self.frame.width}x{self.frame.height})"

    def size(self) -> Tuple[int, int]:
        return self.frame.size

    def next_frame(self) -> bytes:
        return self.frame.data

    def current_frame(self) -> bytes:
        return self.frame.data

    def frame_at(self, index: int) -> bytes:
        return self.frame.data

    def scaled(self, scale: float, resample=Image.NEAREST) -> "SingleFrame":
        _check_scale(scale)
        return SingleFrame(self.frame.scaled(scale, resample))


class FrameSequence(FrameSource):
    """
    Animated frames sharing one canvas size. The cursor wraps, so
    next_frame() is always defined.
    """

    def __init__(self, frames: Sequence[Frame], delays: Sequence[float], index: int = 0):
        if not frames:
            raise ValueError("A frame sequence needs at least one frame")
        if len(frames) != len(delays):
            raise ValueError(
                f"Got {len(frames)} frames but {len(delays)} delays"
            )
        size = frames[0].size
        for i, f in enumerate(frames):
            if f.size != size:
                raise ValueError(f"Frame {i} is {f.width}x{f.height}, expected {size[0]}x{size[1]}")

        self.frames: List[Frame] = list(frames)
        self._delays: List[float] = [float(d) for d in delays]
        self._index = index
        self._size = size

    def __repr__(self):
        return f"FrameSequence({self._size[0]}x{self._size[1]}, {len(self.frames)} frames, index={self._index})"

    def size(self) -> Tuple[int, int]:
        return self._size

    def delays(self) -> Optional[List[float]]:
        return list(self._delays)

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def index(self) -> int:
        return self._index

    def next_frame(self) -> bytes:
        data = self.frames[self._index % len(self.frames)].data
        self._index += 1
        return data

    def current_frame(self) -> bytes:
        # The frame last handed out by next_frame(), or the first one.
        return self.frame_at(max(0, self._index - 1))

    def frame_at(self, index: int) -> bytes:
        return self.frames[index % len(self.frames)].data

    def scaled(self, scale: float, resample=Image.NEAREST) -> "FrameSequence":
        _check_scale(scale)
        frames = [f.scaled(scale, resample) for f in self.frames]
        return FrameSequence(frames, self._delays, index=self._index)


# -----------------------------
# Scaling helpers
# -----------------------------

def _check_scale(scale: float):
    if not scale > 0:
        raise ValueError(f"Scale factor must be positive, got {scale!r}")


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def scale_size(size: Tuple[int, int], scale: float) -> Tuple[int, int]:
    # Each axis is rounded on its own; never collapse to zero.
    w, h = size
    return max(1, _round_half_up(w * scale)), max(1, _round_half_up(h * scale))


def fit_scale(size: Tuple[int, int], max_size: Tuple[int, int]) -> float:
    w, h = size
    max_w, max_h = max_size
    return min(max_w / w, max_h / h)


# -----------------------------
# Decode
# -----------------------------

def _frame_delay(frame: Image.Image) -> float:
    ms = frame.info.get("duration") or 0
    if ms <= 0:
        return DEFAULT_FRAME_DELAY
    return ms / 1000.0


def read_frames(img: Image.Image) -> FrameSequence:
    frames: List[Frame] = []
    delays: List[float] = []
    for frame in ImageSequence.Iterator(img):
        frames.append(Frame.from_image(frame.convert("RGBA")))
        delays.append(_frame_delay(frame))
    return FrameSequence(frames, delays)


def read_single(img: Image.Image, max_size: Tuple[int, int]) -> SingleFrame:
    rgba = img.convert("RGBA")
    scale = fit_scale(rgba.size, max_size)
    if scale < 1.0:
        target = scale_size(rgba.size, scale)
        logger.debug("Fitting %dx%d down to %dx%d", rgba.width, rgba.height, *target)
        rgba = rgba.resize(target, resample=Image.HAMMING)
    return SingleFrame(Frame.from_image(rgba))


def decode(path: str, max_size: Tuple[int, int]) -> FrameSource:
    """
    Load an image file into a FrameSource.

    Still images are shrunk to fit within max_size. Animated images keep
    their native resolution and get one delay (seconds) per frame.
    """
    try:
        with Image.open(path) as img:
            if getattr(img, "is_animated", False):
                source = read_frames(img)
            else:
                source = read_single(img, max_size)
    except (OSError, UnidentifiedImageError, ValueError, EOFError) as e:
        raise DecodeError(f"Could not decode {path}: {e}") from e

    w, h = source.size()
    logger.info("Loaded %s (%dx%d, %d frame(s))", path, w, h, source.frame_count)
    return source
