# gojunit internal utilities
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import os
import sys

class GojunitError(Exception):
    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg

class ReportConsistencyError(GojunitError):
    """The transcript led the report builder into a state the test runner
    never produces (e.g. a build failure banner for a package that also
    ran tests). Usually a classifier bug; the report would be misleading."""
    pass

_debug_enabled = False

def set_debug(enabled):
    """Enable or disable output from dbug_print()."""
    global _debug_enabled
    _debug_enabled = bool(enabled)

def _pop_prefix(kwargs, default):
    prefix = default
    if 'prefix' in kwargs:
        prefix = kwargs['prefix']
        del kwargs['prefix']
    return prefix

def log_print(*args, **kwargs):
    """
    Print an ordinary log message to standard output.

    Supports the same arguments are 'print'.

    Args:
        prefix (optional): optional prefix for the message.
    """
    prefix = _pop_prefix(kwargs, "")
    print(prefix, end=('' if prefix == '' else ' '))
    print(*args, **kwargs)

def err_print(*args, **kwargs):
    """
    Print an error message to standard error.

    Supports the same arguments as 'print'.

    Args:
        prefix (optional): custom prefix to use instead of '<program> ERROR:'.
    """
    prefix = _pop_prefix(kwargs,
        "{} ERROR:".format(os.path.basename(sys.argv[0])))
    print(prefix, file=sys.stderr, end=('' if prefix == '' else ' '))
    print(file=sys.stderr, flush=True, *args, **kwargs)

def warn_print(*args, **kwargs):
    """
    Print a warning message to standard error.

    Supports the same arguments as 'print'.

    Args:
        prefix (optional): custom prefix to use instead of '<program> WARNING:'.
    """
    prefix = _pop_prefix(kwargs,
        "{} WARNING:".format(os.path.basename(sys.argv[0])))
    print(prefix, file=sys.stderr, end=('' if prefix == '' else ' '))
    print(file=sys.stderr, flush=True, *args, **kwargs)

def dbug_print(*args, **kwargs):
    """
    Print a debugging message to standard error.

    Does nothing unless debugging was enabled with set_debug().
    Supports the same arguments are 'print'.

    Args:
        prefix (optional): custom prefix to use instead of 'DEBUG:'.
    """
    prefix = _pop_prefix(kwargs, "DEBUG:")
    if _debug_enabled:
        print(prefix, file=sys.stderr, end=('' if prefix == '' else ' '))
        print(file=sys.stderr, *args, **kwargs)

def decode_line(data, where=None):
    """Decode a line of UTF-8 input; str input is returned unchanged.

    Undecodable bytes are replaced; the line is never dropped.

    Args:
        data (bytes or str): Line to decode.
        where (str, optional): Description of the input for the warning.
    """
    if isinstance(data, str):
        return data
    try:
        return data.decode('utf-8') # raises UnicodeDecodeError
    except UnicodeDecodeError:
        warn_print("UnicodeDecodeError in {}" \
            .format(where if where is not None else "input"))
        return data.decode('utf-8', errors='replace')
