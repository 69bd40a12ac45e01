# input_controller.py
class InputController:
    """
    Dumb input layer:
      - Maps keys to viewport zoom / pan / refit and app quit / fullscreen
      - Forwards canvas resize and expose events to the viewport
      - Closes the app when a viewport call reports a failed present

    Step sizes, clamping and refit ratios are decided by the Viewport; this
    class only picks which call a key maps to.
    """

    ZOOM_IN_KEYS = ("plus", "equal", "KP_Add")
    ZOOM_OUT_KEYS = ("minus", "KP_Subtract")
    PAN_KEYS = {
        "Up": "pan_up", "k": "pan_up",
        "Down": "pan_down", "j": "pan_down",
        "Left": "pan_left", "h": "pan_left",
        "Right": "pan_right", "l": "pan_right",
    }

    def __init__(self, app, viewport):
        self.app = app
        self.viewport = viewport
        self.canvas = app.canvas

    def install(self):
        # Quit / fullscreen
        for key in ("<KeyPress-Escape>", "<KeyPress-q>", "<KeyPress-Q>"):
            self.app.bind(key, self._on_quit)
        self.app.bind("<KeyPress-f>", self._on_fullscreen)
        self.app.bind("<KeyPress-F>", self._on_fullscreen)

        # Zoom
        for key in self.ZOOM_IN_KEYS:
            self.app.bind(f"<KeyPress-{key}>", lambda _e: self._forward(self.viewport.zoom_in))
        for key in self.ZOOM_OUT_KEYS:
            self.app.bind(f"<KeyPress-{key}>", lambda _e: self._forward(self.viewport.zoom_out))
        self.app.bind("<KeyPress-0>", self._on_refit)

        # Pan
        for key, name in self.PAN_KEYS.items():
            self.app.bind(f"<KeyPress-{key}>", lambda _e, name=name: self._forward(getattr(self.viewport, name)))

        # Window events
        self.canvas.bind("<Configure>", self._on_configure)
        self.canvas.bind("<Expose>", self._on_expose)

    def _forward(self, action):
        if not action():
            self.app.close()
        return "break"

    # -----------------------------
    # Keys
    # -----------------------------
    def _on_quit(self, _e=None):
        self.app.close()
        return "break"

    def _on_fullscreen(self, _e=None):
        self.app.toggle_fullscreen()
        return "break"

    def _on_refit(self, _e=None):
        w, h = self.viewport.window_size
        return self._forward(lambda: self.viewport.resize(w, h, refit=True))

    # -----------------------------
    # Window events
    # -----------------------------
    def _on_configure(self, e):
        size = (max(1, int(e.width)), max(1, int(e.height)))
        if size == tuple(self.viewport.window_size):
            return
        self._forward(lambda: self.viewport.resize(size[0], size[1]))

    def _on_expose(self, _e=None):
        self._forward(self.viewport.draw)
