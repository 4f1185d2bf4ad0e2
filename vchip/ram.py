#!/usr/bin/env python3

"""
RAM Emulator

Supports reading and writing of blocks of memory or individual bytes.  Every
access is bounds-checked, so that an instruction pointing outside memory is
reported to the CPU rather than silently wrapping or truncating.

Range checks are available separately, so that multi-byte instructions can
validate their whole span before writing anything.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class RAMError(Exception):
    pass


class RAM:
    def __init__(self, mem_size=0):
        self.resize(mem_size)

    def resize(self, mem_size):
        self.mem = memoryview(bytearray(mem_size))
        self.mem_top = mem_size - 1
        self.mem_size = mem_size

    def read(self, location):
        self.check_overflow(location)
        return self.mem[location]

    def read_block(self, location, size=1):
        self.check_range(location, size)
        return self.mem[location:location + size]

    def write(self, location, byte):
        self.check_overflow(location)
        self.mem[location] = byte

    def write_block(self, location, block):
        block_size = len(block)
        self.check_range(location, block_size)
        self.mem[location:location + block_size] = block

    def check_overflow(self, location):
        if location < 0 or location > self.mem_top:
            raise RAMError("Memory access out of bounds at 0x{:04x}".format(location))

    def check_range(self, location, size):
        # An empty span is always valid, wherever it starts
        if size > 0:
            self.check_overflow(location)
            self.check_overflow(location + size - 1)

    def clear(self):
        self.mem[:] = bytes(self.mem_size)
