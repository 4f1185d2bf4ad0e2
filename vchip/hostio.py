#!/usr/bin/env python3

"""
Host I/O Functionality

Handles loading ROM binaries, and drives the CPU from the host side.

The CPU never runs by itself.  The Host loop calls it once per tick at the
configured clock speed, feeds it the current key state beforehand, and pulls
finished frames out of it at 60Hz.  Sound timer edges are passed on to the
renderer, which decides how (or whether) to show them.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from time import perf_counter
from .constants import DEFAULT_CLOCK_SPEED, DISPLAY_FREQ

DISPLAY_INTERVAL = 1.0 / DISPLAY_FREQ


class Loader:
    def load_binary(self, filename):
        with open(filename, "rb") as f:
            return f.read()


class Host:
    def __init__(self, cpu, renderer, inputs, clock_speed=None, max_cycles=None):
        self.cpu = cpu
        self.renderer = renderer
        self.inputs = inputs
        self.max_cycles = max_cycles
        self.tone_active = False

        # User can specify 0 for uncapped
        clock_speed = DEFAULT_CLOCK_SPEED if clock_speed is None else clock_speed
        self.core_interval = None if clock_speed <= 0 else 1.0 / clock_speed

    def run(self):
        # Returns the number of cycles run.  Stops on quit, halt, or when 'max_cycles' is reached.
        cpu = self.cpu
        cycles = 0
        next_display_update_time = 0

        while self.max_cycles is None or cycles < self.max_cycles:
            this_time = perf_counter()  # Do this first for maximum precision

            # Prevent unnecessary display rendering in excess of host frame rate
            if this_time >= next_display_update_time:
                if self.inputs.process_messages():  # Process inputs at 60Hz too, to avoid slowdown
                    break

                next_display_update_time = this_time + DISPLAY_INTERVAL
                self.refresh()

            cpu.set_keys(self.inputs.get_key_states())
            cpu.cycle()
            cycles += 1
            self.update_tone()

            if cpu.is_halted():
                break

            if self.core_interval is not None:
                # Wait for next CPU instruction.  Do this last for maximum precision (takes into account time spent on
                # this instruction)
                next_time = this_time + self.core_interval

                while perf_counter() < next_time:  # Unfortunately we have to do this to get the timing right
                    pass

        # Show whatever was last drawn, including anything drawn just before a halt
        self.refresh()
        return cycles

    def refresh(self):
        if self.cpu.is_dirty():
            self.renderer.draw_frame(self.cpu.consume_frame())
            self.renderer.refresh_display(True)

    def update_tone(self):
        # Only report edges, so the renderer isn't called every cycle
        active = self.cpu.sound_timer_active()

        if active != self.tone_active:
            self.tone_active = active
            self.renderer.set_tone(active)
