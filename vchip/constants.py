#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

# App identification
APP_NAME = "VirtualChip Emulator"
APP_VERSION = "1.0.0"
APP_COPYRIGHT = "Copyright (C) 2022 Gregory Maynard-Hoare, licensed under GNU Affero General Public License v3.0"
APP_INTRO = "{} V{} -- ".format(APP_NAME, APP_VERSION)

# Machine layout
MEM_SIZE = 0x1000        # 4K of addressable memory (12-bit addresses)
LOAD_ADDRESS = 0x200     # Programs are always loaded here
FONT_ADDRESS = 0x050     # Built-in hex digit sprites live here, below the program area
NUM_REGISTERS = 0x10     # V0 - VF
FLAG_REGISTER = 0xF      # VF receives carry, borrow, shifted-out bit and collision results
STACK_SIZE = 16          # Nested subroutine levels
INSTRUCTION_SIZE = 2     # Every instruction is one big-endian 16-bit word
INDEX_BITMASK = 0xFFFF   # The index register is 16 bits wide, even though addresses are 12
VID_WIDTH = 64
VID_HEIGHT = 32
NUM_KEYS = 0x10          # Hex keypad 0-F

# 5-byte sprites for the hex digits 0-F, each 4 pixels wide
SYSTEM_FONT = bytes((
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
))
FONT_SPRITE_SIZE = 5

# Host timing
DEFAULT_CLOCK_SPEED = 700  # Instructions per second
DISPLAY_FREQ = 60.0        # Host display refresh and keyboard polling rate

# Default mappings for keys 0-F, later populated into a dictionary.  Note that the keyscans (on a UK QWERTY keyboard)
# and ASCII characters for these are the same code
DEFAULT_KEYMAP = "120,49,50,51,113,119,101,97,115,100,122,99,52,114,102,118"

# CPU quirks, all of which can be overridden from the command line
CPU_QUIRKS = ["shift", "jump", "load", "logic"]
