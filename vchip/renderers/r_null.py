#!/usr/bin/env python3

"""
Null Renderer Plugin

This serves as a base class for other rendering plugins.

This module can be used on its own as a Renderer plugin if you only want to see
debug output, or are running headless.  It keeps the last frame it was given,
so a headless host can still inspect the display.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class RendererError(Exception):
    pass


class Renderer:
    def __init__(self, scale=None, **kwargs):  # pylint: disable=unused-argument
        self.scale = 1 if scale is None else scale
        self.frame = None
        self.tone = False
        self.set_resolution(0, 0)

    def set_resolution(self, width, height):
        self.width = width
        self.height = height

    def draw_frame(self, frame):
        # 'frame' is row-major, one byte per pixel, 0 or 1
        self.frame = frame

    def refresh_display(self, content_changed=False):
        pass

    def set_tone(self, active):
        # Audio output is not emulated, but the sound timer state is still passed on
        self.tone = active

    def set_title(self, title):
        pass

    def shutdown(self):
        pass
