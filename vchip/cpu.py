#!/usr/bin/env python3

"""
CPU Emulator (CHIP-8)

Like a real computer, this is where most of the processing happens.  The host
calls 'cycle' once per tick, and each call performs exactly one fetch, decode,
execute and timer tick.  Nothing is visible to the host part-way through a
cycle.

If an instruction cannot be completed (an unknown opcode, stack misuse, or a
memory access outside RAM), the CPU halts.  Every precondition is checked
before anything is changed, so a halted CPU still shows the state from just
before the faulting instruction.  Only 'reset' brings it back.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import randint
from .constants import (
    MEM_SIZE, LOAD_ADDRESS, FONT_ADDRESS, FONT_SPRITE_SIZE, SYSTEM_FONT, NUM_REGISTERS, FLAG_REGISTER, STACK_SIZE,
    INSTRUCTION_SIZE, INDEX_BITMASK
)
from .debugger import Debugger
from .framebuffer import Framebuffer
from .keypad import Keypad
from .ram import RAM, RAMError
from .stack import Stack, StackError

CPU_ENDIAN = "big"  # CHIP-8 is big-endian


class CPUError(Exception):
    pass


class LoadError(CPUError):
    pass


class CPU:
    def __init__(self, ram=None, stack=None, framebuffer=None, keypad=None, debugger=None, shift_quirks=None,
                 jump_quirks=None, load_quirks=None, logic_quirks=None):

        self.ram = RAM(MEM_SIZE) if ram is None else ram
        self.stack = Stack(STACK_SIZE) if stack is None else stack
        self.framebuffer = Framebuffer() if framebuffer is None else framebuffer
        self.keypad = Keypad() if keypad is None else keypad
        self.debugger = Debugger() if debugger is None else debugger
        self.live_debug = self.debugger.is_live()

        """
        Quirks
        ------

        - Shift quirks: Enabled.  Shifts read Vx, and Vy is ignored.
        - Jump quirks : Disabled.  Bnnn always adds V0.
        - Load quirks : Disabled.  Fx55 / Fx65 leave the index register alone.
        - Logic quirks: Disabled.  OR / AND / XOR leave Vf alone.
        """

        self.shift_quirks = True if shift_quirks is None else shift_quirks
        self.jump_quirks = False if jump_quirks is None else jump_quirks
        self.load_quirks = False if load_quirks is None else load_quirks
        self.logic_quirks = False if logic_quirks is None else logic_quirks

        # Define instruction pointers.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            # Initial lookup for instructions' first nibble
            0x0: self._0nnn,  # Alias for bitmask 0xFFFF
            0x1: self._1nnn,
            0x2: self._2nnn,
            0x3: self._3xkk,
            0x4: self._4xkk,
            0x5: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x6: self._6xkk,
            0x7: self._7xkk,
            0x8: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x9: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0xA: self._Annn,
            0xB: self._Bnnn,
            0xC: self._Cxkk,
            0xD: self._Dxyn,
            0xE: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            0xF: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            # Instructions beginning with nibble 0x0, bitmask 0xFFFF (i.e., exact match)
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            # Instructions beginning with nibble 0x5/0x8/0x9, bitmask 0xF00F
            0x5000: self._5xy0,
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x800E: self._8xyE,
            0x9000: self._9xy0,
            # Instructions beginning with nibble 0xE/0xF, bitmask 0xF0FF
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

        self.v = memoryview(bytearray(NUM_REGISTERS))  # Bytearrays are mutable, so this should be fast when updated
        self.reset()

    # Host interface

    def reset(self):
        # Power-on state.  This is also the only way out of a halt.
        self.ram.clear()
        self.ram.write_block(FONT_ADDRESS, SYSTEM_FONT)
        self.stack.clear()
        self.framebuffer.reset()
        self.keypad.clear()
        self.v[:] = bytes(NUM_REGISTERS)
        self.i = 0   # Index register
        self.dt = 0  # Delay timer
        self.st = 0  # Sound timer

        # Program counter, plus the address and opcode of the instruction being executed (for debugging and faults)
        self.pc = LOAD_ADDRESS
        self.debug_pc = LOAD_ADDRESS
        self.opcode = 0

        self.halted = False
        self.fault = None
        self.cycles = 0

    def load_program(self, data):
        if self.cycles:
            raise LoadError("Programs can only be loaded after a reset, before the first cycle")

        available = self.ram.mem_size - LOAD_ADDRESS

        if len(data) > available:
            raise LoadError(
                "Program is {} bytes, but only {} bytes are available from 0x{:03x}".format(
                    len(data), available, LOAD_ADDRESS
                )
            )

        self.ram.write_block(LOAD_ADDRESS, data)

    def cycle(self):
        if self.halted:
            return

        self.cycles += 1
        # Keep track of the program counter before altering it in any way, so a fault can put it back
        self.debug_pc = self.pc

        try:
            self.opcode = self.fetch()
        except RAMError:
            self.halt("Fetch out of bounds at address 0x{:04x}".format(self.pc))
            return

        try:
            self.inc_pc()  # Program counter updates after fetch (and technically before decode), but before execute
            self.decode_exec()
        except (CPUError, StackError, RAMError) as err:
            self.halt("{}: opcode 0x{:04x} at address 0x{:03x}".format(err, self.opcode, self.debug_pc))
            return

        self.tick_timers()

    def halt(self, fault):
        self.pc = self.debug_pc
        self.halted = True
        self.fault = fault

    def is_halted(self):
        return self.halted

    def get_fault(self):
        return self.fault

    def set_keys(self, states):
        self.keypad.set_state(states)

    def is_dirty(self):
        return self.framebuffer.is_dirty()

    def consume_frame(self):
        return self.framebuffer.consume_frame()

    def sound_timer_active(self):
        return self.st > 0

    # Internals

    def fetch(self):
        return int.from_bytes(self.ram.read_block(self.pc, INSTRUCTION_SIZE), CPU_ENDIAN, signed=False)

    def tick_timers(self):
        if self.dt > 0:
            self.dt -= 1

        # The host sees the sound timer go from 1 to 0 here, and stops its tone
        if self.st > 0:
            self.st -= 1

    def _call_masked_instruction(self, masked_opcode):
        instruction = self.instructions.get(masked_opcode)

        if instruction is None:
            self._opcode_unsupported()

        instruction()

    def decode_exec(self):
        self._call_masked_instruction((0xF000 & self.opcode) >> 12)

    def inc_pc(self):
        self.pc += INSTRUCTION_SIZE

    def dec_pc(self):
        # Only used to re-run instructions (e.g. keypress wait)
        self.pc -= INSTRUCTION_SIZE

    # References to Vx, Vy, byte and addr are always in the same opcode position throughout all instructions, so avoid
    # excessive code duplication (ever so slight slowdown).  Don't reference these more than necessary as they are
    # recalculated each time.
    @property
    def vx(self):
        return (self.opcode & 0xF00) >> 8

    @property
    def vy(self):
        return (self.opcode & 0xF0) >> 4

    @property
    def addr(self):
        return self.opcode & 0xFFF

    @property
    def byte(self):
        return self.opcode & 0xFF

    @property
    def nibble(self):
        return self.opcode & 0xF

    def _opcode_unsupported(self):
        raise CPUError("Unknown opcode")

    def debug(self, instruction):
        self.debugger.output(self, instruction)

    def _0nnn(self):
        opcode = self.opcode

        if opcode < 0x10:
            # Let's use opcodes 0x0 - 0xF internally for indexing, since they're not real instructions
            self._opcode_unsupported()

        self._call_masked_instruction(opcode)

    def _5nnn_8nnn_9nnn(self):
        self._call_masked_instruction(self.opcode & 0xF00F)

    def _Ennn_Fnnn(self):
        self._call_masked_instruction(self.opcode & 0xF0FF)

    def _00E0(self):  # CLS
        if self.live_debug:
            self.debug("CLS")

        self.framebuffer.clear()

    def _00EE(self):  # RET
        if self.live_debug:
            self.debug("RET")

        self.pc = self.stack.pop()

    def _1nnn(self):  # JP addr
        if self.live_debug:
            self.debug("JP 0x{:03x}".format(self.addr))

        self.pc = self.addr

    def _2nnn(self):  # CALL addr
        if self.live_debug:
            self.debug("CALL 0x{:03x}".format(self.addr))

        # The program counter already points at the next instruction, which is the return address
        self.stack.push(self.pc)
        self.pc = self.addr

    def _post_skip(self):
        self.inc_pc()

    def _3xkk(self):  # SE Vx, byte
        if self.live_debug:
            self.debug("SE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] == self.byte:
            self._post_skip()

    def _4xkk(self):  # SNE Vx, byte
        if self.live_debug:
            self.debug("SNE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] != self.byte:
            self._post_skip()

    def _5xy0(self):  # SE Vx, Vy
        if self.live_debug:
            self.debug("SE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] == self.v[self.vy]:
            self._post_skip()

    def _6xkk(self):  # LD Vx, byte
        if self.live_debug:
            self.debug("LD V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        self.v[self.vx] = self.byte

    def _7xkk(self):  # ADD Vx, byte
        vx = self.vx
        byte = self.byte

        if self.live_debug:
            self.debug("ADD V{:01x}, 0x{:02x}".format(vx, byte))

        # No carry flag for this one
        byte += self.v[vx]
        self.v[vx] = byte & 0xFF

    def _post_8xy1_8xy2_8xy3(self):
        if self.logic_quirks:
            self.v[FLAG_REGISTER] = 0

    def _8xy0(self):  # LD Vx, Vy
        if self.live_debug:
            self.debug("LD V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] = self.v[self.vy]

    def _8xy1(self):  # OR Vx, Vy
        if self.live_debug:
            self.debug("OR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] |= self.v[self.vy]
        self._post_8xy1_8xy2_8xy3()

    def _8xy2(self):  # AND Vx, Vy
        if self.live_debug:
            self.debug("AND V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] &= self.v[self.vy]
        self._post_8xy1_8xy2_8xy3()

    def _8xy3(self):  # XOR Vx, Vy
        if self.live_debug:
            self.debug("XOR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] ^= self.v[self.vy]
        self._post_8xy1_8xy2_8xy3()

    # For all the flag-setting instructions below, the flag is worked out from the operands before anything is written,
    # then Vf is written last.  If Vf is also the destination, the flag wins.

    def _8xy4(self):  # ADD Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("ADD V{:01x}, V{:01x}".format(vx, vy))

        val = self.v[vx] + self.v[vy]
        self.v[vx] = val & 0xFF
        self.v[FLAG_REGISTER] = int(val > 0xFF)  # Vf is set when carrying

    def _post_8xy5_8xy7(self, val):  # Post-SUB/SUBN
        self.v[self.vx] = val & 0xFF
        self.v[FLAG_REGISTER] = int(val >= 0)  # Vf is set when NOT borrowing

    def _8xy5(self):  # SUB Vx, Vy
        if self.live_debug:
            self.debug("SUB V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vx] - self.v[self.vy])

    def _debug_8xy6_8xyE(self, direction):
        self.debug(
            "{} V{:01x}".format(direction, self.vx) if self.shift_quirks else
            "{} V{:01x}, V{:01x}".format(direction, self.vx, self.vy)
        )

    def _8xy6(self):  # SHR Vx {, Vy}
        if self.live_debug:
            self._debug_8xy6_8xyE("SHR")

        val = self.v[self.vx if self.shift_quirks else self.vy]
        self.v[self.vx] = val >> 1  # The result is put in Vx either way
        self.v[FLAG_REGISTER] = val & 1

    def _8xy7(self):  # SUBN Vx, Vy
        if self.live_debug:
            self.debug("SUBN V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vy] - self.v[self.vx])

    def _8xyE(self):  # SHL Vx {, Vy}
        if self.live_debug:
            self._debug_8xy6_8xyE("SHL")

        val = self.v[self.vx if self.shift_quirks else self.vy]
        self.v[self.vx] = (val << 1) & 0xFF
        self.v[FLAG_REGISTER] = val >> 7

    def _9xy0(self):  # SNE Vx, Vy
        if self.live_debug:
            self.debug("SNE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] != self.v[self.vy]:
            self._post_skip()

    def _Annn(self):  # LD I, addr
        if self.live_debug:
            self.debug("LD I, 0x{:03x}".format(self.addr))

        self.i = self.addr

    def _Bnnn(self):  # JP V0, addr
        vr = self.vx if self.jump_quirks else 0

        if self.live_debug:
            self.debug("JP V{:01x}, 0x{:03x}".format(vr, self.addr))

        # Not masked.  A target past the end of RAM is caught by the next fetch.
        self.pc = self.v[vr] + self.addr

    def _Cxkk(self):  # RND Vx, byte
        if self.live_debug:
            self.debug("RND V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        self.v[self.vx] = randint(0, 0xFF) & self.byte

    def _Dxyn(self):  # DRW Vx, Vy, nibble
        height = self.nibble

        if self.live_debug:
            self.debug("DRW V{:01x}, V{:01x}, 0x{:01x}".format(self.vx, self.vy, height))

        # Reading the whole sprite first means a sprite hanging off the end of RAM faults before any pixel changes
        sprite = self.ram.read_block(self.i, height)
        vid_width, vid_height = self.framebuffer.get_vid_size()
        vx_pos = self.v[self.vx] % vid_width
        vy_pos = self.v[self.vy] % vid_height
        collided = False

        for y, spr_data in enumerate(sprite):
            for x in range(8):
                if spr_data & (0x80 >> x):
                    # Don't stop drawing on a collision.  Set the flag, and never unset it for this sprite.
                    if self.framebuffer.xor_pixel(vx_pos + x, vy_pos + y):
                        collided = True

        self.v[FLAG_REGISTER] = int(collided)
        self.framebuffer.mark_dirty()

    def _Ex9E(self):  # SKP Vx
        if self.live_debug:
            self.debug("SKP V{:01x}".format(self.vx))

        if self.keypad.is_key_down(self.v[self.vx] & 0xF):
            self._post_skip()

    def _ExA1(self):  # SKNP Vx
        if self.live_debug:
            self.debug("SKNP V{:01x}".format(self.vx))

        if not self.keypad.is_key_down(self.v[self.vx] & 0xF):
            self._post_skip()

    def _Fx07(self):  # LD Vx, DT
        if self.live_debug:
            self.debug("LD V{:01x}, DT".format(self.vx))

        self.v[self.vx] = self.dt

    def _Fx0A(self):  # LD Vx, K
        if self.live_debug:
            self.debug("LD V{:01x}, K".format(self.vx))

        # This opcode waits for a keypress, but since the timers still need to run and the host still needs control
        # back, we simply decrement the incremented program counter and come back here on the next cycle.
        key = self.keypad.get_keypress()

        if key is None:
            self.dec_pc()
        else:
            self.v[self.vx] = key

    def _Fx15(self):  # LD DT, Vx
        if self.live_debug:
            self.debug("LD DT, V{:01x}".format(self.vx))

        self.dt = self.v[self.vx]

    def _Fx18(self):  # LD ST, Vx
        if self.live_debug:
            self.debug("LD ST, V{:01x}".format(self.vx))

        self.st = self.v[self.vx]

    def _Fx1E(self):  # ADD I, Vx
        if self.live_debug:
            self.debug("ADD I, V{:01x}".format(self.vx))

        self.i = (self.i + self.v[self.vx]) & INDEX_BITMASK

    def _Fx29(self):  # LD F, Vx
        if self.live_debug:
            self.debug("LD F, V{:01x}".format(self.vx))

        self.i = FONT_ADDRESS + FONT_SPRITE_SIZE * (self.v[self.vx] & 0xF)

    def _Fx33(self):  # LD B, Vx
        if self.live_debug:
            self.debug("LD B, V{:01x}".format(self.vx))

        val = self.v[self.vx]
        i = self.i
        self.ram.check_range(i, 3)
        self.ram.write(i, val // 100)              # Most-significant digit
        self.ram.write(i + 1, (val // 10) % 10)    # Middle digit
        self.ram.write(i + 2, val % 10)            # Least-significant digit

    def _post_Fx55_Fx65(self):
        if self.load_quirks:
            self.i = (self.i + self.vx + 1) & INDEX_BITMASK

    def _Fx55(self):  # LD [I], Vx
        if self.live_debug:
            self.debug("LD [I], V{:01x}".format(self.vx))

        # Ensure with +1s that the final register is copied
        count = self.vx + 1
        self.ram.write_block(self.i, self.v[:count])
        self._post_Fx55_Fx65()

    def _Fx65(self):  # LD Vx, [I]
        if self.live_debug:
            self.debug("LD V{:01x}, [I]".format(self.vx))

        count = self.vx + 1
        self.v[:count] = self.ram.read_block(self.i, count)
        self._post_Fx55_Fx65()
