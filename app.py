# app.py
import argparse
import logging
import sys
import tkinter as tk
from typing import Optional

from PIL import Image, ImageTk

import ui_controls
from animclock import AnimationClock, EventQueue, RequestNextFrame, animation_clock_for
from framelib import DecodeError, FrameSource, decode
from input_controller import InputController
from settings import ViewerSettings
from viewport import PixelBuffer, PresentationError, Viewport


logger = logging.getLogger(__name__)


class TkSurface(PixelBuffer):
    """Presents the pixel buffer as a single image item on a canvas."""

    def __init__(self, canvas: tk.Canvas, width: int, height: int):
        super().__init__(width, height)
        self.canvas = canvas
        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._canvas_image_id: Optional[int] = None

    def render(self):
        if self.width == 0 or self.height == 0:
            return
        try:
            img = Image.frombytes("RGBA", self.size, bytes(self.frame))
            self._tk_image = ImageTk.PhotoImage(img)
            if self._canvas_image_id is None:
                self._canvas_image_id = self.canvas.create_image(0, 0, anchor="nw", image=self._tk_image)
            else:
                self.canvas.itemconfig(self._canvas_image_id, image=self._tk_image)
        except tk.TclError as e:
            raise PresentationError(str(e)) from e


class ViewerApp(tk.Tk):
    def __init__(self, settings: Optional[ViewerSettings] = None):
        super().__init__()
        self.settings = settings or ViewerSettings()
        self.title(self.settings.title)
        self.attributes("-topmost", True)
        # Hidden until there is something to show
        self.withdraw()

        self.canvas: Optional[tk.Canvas] = None
        self.surface: Optional[TkSurface] = None
        self.viewport: Optional[Viewport] = None
        self.events = EventQueue()
        self.clock: Optional[AnimationClock] = None
        self.input: Optional[InputController] = None

        self._poll_after_id: Optional[str] = None
        self._closed = False
        self._fullscreen = False

        self.protocol("WM_DELETE_WINDOW", self.close)

    def max_image_size(self):
        return self.settings.max_image_size(self.winfo_screenwidth(), self.winfo_screenheight())

    def show(self, source: FrameSource):
        w, h = source.size()
        ui_controls.build_ui(self, w, h)

        self.surface = TkSurface(self.canvas, w, h)
        self.viewport = Viewport(source, self.surface, self.settings)

        # Install input controller (all bindings live there)
        self.input = InputController(self, self.viewport)
        self.input.install()

        self.clock = animation_clock_for(source, self.events)
        if self.clock is not None:
            self._poll_after_id = self.after(self.settings.poll_interval_ms, self._pump_events)

        self.deiconify()
        self.request_redraw()

    # -----------------------------
    # Frame advance
    # -----------------------------
    def _pump_events(self):
        self._poll_after_id = None
        for event in self.events.drain():
            if isinstance(event, RequestNextFrame):
                if not self.viewport.advance():
                    logger.warning("Frame present failed, stopping playback")
                    self.close()
                    return
        self._poll_after_id = self.after(self.settings.poll_interval_ms, self._pump_events)

    def request_redraw(self):
        if self.viewport is not None and not self.viewport.draw():
            self.close()

    # -----------------------------
    # Window
    # -----------------------------
    def toggle_fullscreen(self):
        self._fullscreen = not self._fullscreen
        self.attributes("-fullscreen", self._fullscreen)

    def close(self):
        if self._closed:
            return
        self._closed = True

        if self._poll_after_id is not None:
            try:
                self.after_cancel(self._poll_after_id)
            except tk.TclError:
                pass
            self._poll_after_id = None

        # Closing the sink first lets a mid-send worker exit on its own.
        self.events.close()
        if self.clock is not None:
            self.clock.stop()
            self.clock = None

        self.destroy()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="vu", description="Minimal image and animation viewer.")
    parser.add_argument("path", help="image to show (still, GIF, WebP, APNG)")
    parser.add_argument("--title", default=None, help="window title")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = ViewerSettings().replace(title=args.title)
    app = ViewerApp(settings)

    try:
        source = decode(args.path, app.max_image_size())
    except DecodeError as e:
        app.destroy()
        logger.error("%s", e)
        return 1

    app.show(source)
    try:
        app.mainloop()
    finally:
        app.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
