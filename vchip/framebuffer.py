#!/usr/bin/env python3

"""
Framebuffer Emulator

Pixels are written here by the CPU, and the host pulls finished frames out
whenever it wants to draw, usually at 60Hz.  Keeping the pixels here means the
CPU never has to call into a rendering framework, which can lower speed
substantially when called tens of thousands of times a second.

Unlike other computers, programs for this system cannot write directly into
video RAM.  Instead, sprites are drawn to the screen using an XOR method.
Collisions (where any pixel was set, but was unset by an XOR), are reported
back to the caller.

Any change to the pixels sets the dirty flag.  Only the host clears it, by
consuming a frame.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import VID_WIDTH, VID_HEIGHT
from .ram import RAM


class FramebufferError(Exception):
    pass


class Framebuffer:
    def __init__(self, vid_width=VID_WIDTH, vid_height=VID_HEIGHT):
        if vid_width <= 0 or vid_height <= 0:
            raise FramebufferError("Display dimensions must be positive")

        self.vid_width = vid_width
        self.vid_height = vid_height
        self.vid_size = vid_width * vid_height
        self.vram = RAM(self.vid_size)
        self.dirty = False

    def clear(self):
        self.vram.clear()
        self.dirty = True

    def reset(self):
        # Power-on state: blank, and nothing for the host to pick up yet
        self.vram.clear()
        self.dirty = False

    def xor_pixel(self, x, y):
        # Returns True if the pixel was set and has now been erased.  Positions always wrap at the display edges.
        vram_loc = (y % self.vid_height) * self.vid_width + (x % self.vid_width)
        pixel = self.vram.read(vram_loc)
        self.vram.write(vram_loc, pixel ^ 1)
        self.dirty = True
        return pixel != 0

    def get_pixel(self, x, y):
        return self.vram.read(y * self.vid_width + x)

    def get_vid_size(self):
        return self.vid_width, self.vid_height

    def mark_dirty(self):
        self.dirty = True

    def is_dirty(self):
        return self.dirty

    def consume_frame(self):
        # Row-major snapshot, one byte (0 or 1) per pixel
        self.dirty = False
        return self.vram.mem.tobytes()
