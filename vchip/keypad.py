#!/usr/bin/env python3

"""
Keypad Emulator

Holds the state of the 16-key hex keypad as last reported by the host.  The
host supplies a complete snapshot before each cycle, and the CPU only ever
reads from it.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import NUM_KEYS


class KeypadError(Exception):
    pass


class Keypad:
    def __init__(self):
        self.key_down = [False] * NUM_KEYS

    def set_state(self, states):
        states = list(states)

        if len(states) != NUM_KEYS:
            raise KeypadError("Key state must contain exactly {} entries".format(NUM_KEYS))

        self.key_down = [bool(state) for state in states]

    def clear(self):
        self.key_down = [False] * NUM_KEYS

    def is_key_down(self, key):
        return self.key_down[key]

    def get_keypress(self):
        # Lowest-numbered key currently held, or None
        for key, down in enumerate(self.key_down):
            if down:
                return key

        return None
