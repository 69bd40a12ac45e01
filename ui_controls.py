# ui_controls.py
import tkinter as tk


def build_ui(app, width: int, height: int):
    app.rowconfigure(0, weight=1)
    app.columnconfigure(0, weight=1)

    # Viewport surface; the window is sized to the image.
    app.canvas = tk.Canvas(
        app,
        width=width,
        height=height,
        bg=app.settings.clear_color,
        highlightthickness=0,
        borderwidth=0,
    )
    app.canvas.grid(row=0, column=0, sticky="nsew")
    app.geometry(f"{width}x{height}")
