#!/usr/bin/env python3

"""
Main Startup Module

Simply call main(args) to start the emulator, replacing args with a dictionary
of options.  This can be done via the Terminal or GUI.

All options must be supplied.  Defaults can be specified with a 'None'.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import APP_INTRO, APP_COPYRIGHT, CPU_QUIRKS, VID_WIDTH, VID_HEIGHT
from .cpu import CPU
from .debugger import Debugger
from .hostio import Host, Loader


class StartupError(Exception):
    pass


def main(args):
    print("".join((APP_INTRO, APP_COPYRIGHT)))
    quirk_settings = {}

    for cpu_quirk in CPU_QUIRKS:
        quirk_label = "{}_quirks".format(cpu_quirk)
        quirk_setting = args[quirk_label]
        quirk_settings[quirk_label] = None if quirk_setting is None else bool(quirk_setting)

    opt_renderer = args["renderer"]
    auto_select_renderer = opt_renderer is None  # If necessary, try PyGame first, then run headless

    # flake8: noqa: F401
    if auto_select_renderer or opt_renderer == "pygame":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import pygame
        except ImportError:
            if auto_select_renderer:
                opt_renderer = "null"
            else:
                raise StartupError(
                    "PyGame does not appear to be installed."
                )
        else:
            from .inputs.i_pygame import Inputs
            from .renderers.r_pygame import Renderer

    if opt_renderer == "null":
        # pylint: disable=import-outside-toplevel
        from .inputs.i_null import Inputs
        from .renderers.r_null import Renderer

    # Set up debugger and live output if necessary.  This must be done before the CPU is created.
    debugger = Debugger()
    debugger.set_live(args["debug"])

    # Create a new CPU.  It owns its RAM, stack, framebuffer and keypad, and starts off reset.
    cpu = CPU(debugger=debugger, **quirk_settings)

    # Read ROM binary and write it into RAM
    cpu.load_program(Loader().load_binary(args["filename"]))

    # Set up a new rendering system, and host inputs linked to it in case it provides inputs too
    renderer = Renderer(scale=args["scale"], palette=args["palette"])
    renderer.set_resolution(VID_WIDTH, VID_HEIGHT)
    inputs = Inputs(args["keymap"], renderer)
    host = Host(cpu, renderer, inputs, clock_speed=args["clock_speed"], max_cycles=args["max_cycles"])

    try:
        host.run()
    finally:
        # The host loop has stopped, so shut down the rendering framework.  __del__ cannot be relied upon when using PyPy
        inputs.shutdown()
        renderer.shutdown()

    if cpu.is_halted():
        print("Emulation halted.\n\n{}Debug info:\n{}".format(APP_INTRO, debugger.debug(cpu, "???", verbose=True)))

    return cpu
