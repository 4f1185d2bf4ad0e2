#!/usr/bin/env python3

"""
PyGame Renderer Plugin

Used by the host to draw the frames pulled from the CPU.  This draws graphics
onto an SDL window surface via PyGame.  Note that the surface is allocated at
the size which matches the emulated display, and then the contents are
stretched (in the correct aspect ratio using 'Nearest Neighbour' translation)
to fit the window itself.  This means we don't have to draw the same pixel
multiple times.

While the sound timer is running, the window title says so.  There is no
audio output.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .r_null import RendererError, Renderer as RendererBase
from ..constants import APP_NAME


class Renderer(RendererBase):
    def __init__(self, scale=None, palette=None, **kwargs):
        if scale is None:
            scale = 512  # Default window width if not supplied, or set to default

        pygame.display.init()
        self.set_title(APP_NAME)
        self.rgb_buffer = None
        self.scaled_size = (scale, scale // 2)
        self.display_surface = pygame.display.set_mode(self.scaled_size, 0, 8)
        self.display_surface.set_alpha(None)

        # Background, then foreground.  Looked up instantly by index, so no need for a dictionary.
        colour_map = [0x222222, 0xDDDDDD]

        # Override the colours with a user-defined palette, if necessary
        if palette is not None:
            palette_split = palette.split(",")

            if len(palette_split) > 2:
                raise RendererError("Too many palette colours defined.")

            for colour_num, colour in enumerate(palette_split):
                if len(colour) != 6:
                    raise RendererError("Palette colours must all be 6 hex digits long.")

                try:
                    colour_map[colour_num] = int(colour, 16)
                except ValueError:
                    raise RendererError("Invalid palette colour defined.") from None

        # Split compound RGB values for faster byte-based lookup later
        self.rgb_map = [bytes((i >> 16, (i >> 8) & 0xFF, i & 0xFF)) for i in colour_map]

        super().__init__(scale)

    def set_resolution(self, width, height):
        total_pixels = width * height
        self.rgb_buffer = memoryview(bytearray(self.rgb_map[0] * total_pixels))  # 24-bit, filled with background

        # Call superclass method so display size is known on the next refresh
        super().set_resolution(width, height)

        # Force a refresh now, in case nothing else is drawn afterwards
        self.refresh_display(True)

    def draw_frame(self, frame):
        # Update RGB buffer in-place to minimise allocations and PyGame calls
        rgb_map = self.rgb_map
        rgb_buffer = self.rgb_buffer

        for location, pixel in enumerate(frame):
            rgb_location = location * 3
            rgb_buffer[rgb_location:rgb_location + 3] = rgb_map[pixel]

        super().draw_frame(frame)

    def refresh_display(self, content_changed=False):
        if content_changed and self.rgb_buffer:
            # Blit the bytearray straight to the surface.  This is much faster than very frequent PixelArray updates
            render_surface = pygame.image.frombuffer(self.rgb_buffer, (self.width, self.height), "RGB")
            scaled_win = pygame.transform.scale(render_surface, self.scaled_size)
            self.display_surface.blit(scaled_win, (0, 0))
            pygame.display.flip()

    def set_tone(self, active):
        self.set_title("{} - BEEP".format(APP_NAME) if active else APP_NAME)
        super().set_tone(active)

    def set_title(self, title):
        pygame.display.set_caption(title)

    def shutdown(self):
        # PyGame currently segfaults if display.quit is called via __del__
        pygame.display.quit()
        super().shutdown()
