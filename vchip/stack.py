#!/usr/bin/env python3

"""
Stack Emulator

The CPU call stack is not part of system RAM, because there is no specified
location for it, and there is no stack pointer register exposed to the running
program.  A wrapped list fully emulates it, with the depth doubling as the
stack pointer.

Overflow and underflow are checked before anything is changed, so a failed
push or pop leaves the stack exactly as it was.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class StackError(Exception):
    pass


class Stack:
    def __init__(self, size):
        self.items = []
        self.size = size

    def push(self, item):
        # Fetching the stack size with 'len' should be immediate, so no slow loop
        if len(self.items) >= self.size:
            raise StackError("Stack overflow")

        self.items.append(item)

    def pop(self):
        try:
            return self.items.pop()
        except IndexError:
            raise StackError("Stack underflow") from None

    def get_depth(self):
        return len(self.items)

    def clear(self):
        self.items.clear()

    def get_items(self):
        # For debugging
        return self.items
