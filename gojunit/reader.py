# gojunit transcript readers
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Readers that turn an input stream into a sequence of bounded lines.

A reader is iterated to obtain lines of the transcript, without their
line terminators, decoded to str. Both text streams and binary streams
(e.g. sys.stdin.buffer or a file opened with 'rb') are accepted.
"""

import json

from gojunit.utils import *

MAX_LINE_SIZE = 4 * 1024 * 1024
"""Lines longer than this are truncated."""

MAX_SCAN_TOKEN_SIZE = 64 * 1024
"""Lines longer than this are not classified, only kept as output."""

def _strip_newline(line):
    newline, cr = ('\n', '\r') if isinstance(line, str) else (b'\n', b'\r')
    if line.endswith(newline):
        line = line[:-1]
        if line.endswith(cr):
            line = line[:-1]
    return line

class LimitedLineReader:
    """Reads lines of at most limit characters from a stream.

    Longer lines are truncated, but the rest of the line is still
    consumed from the stream, so the following line starts at the
    right place.

    Args:
        stream: Text or binary stream with a readline() method.
        limit (int, optional): Maximum line length, default MAX_LINE_SIZE.
        where (str, optional): Description of the stream for warnings.
    """

    def __init__(self, stream, limit=MAX_LINE_SIZE, where=None):
        self._stream = stream
        self.limit = limit
        self.where = where
        self.truncated = 0 # number of lines truncated so far

    def read_line(self):
        """Return the next line, or None at end of stream."""
        line = self._stream.readline(self.limit)
        if len(line) == 0:
            return None
        newline = '\n' if isinstance(line, str) else b'\n'
        if len(line) >= self.limit and not line.endswith(newline):
            # Consume the remainder of an overlong line.
            overflow = 0
            while True:
                rest = self._stream.readline(self.limit)
                overflow += len(_strip_newline(rest))
                if len(rest) == 0 or rest.endswith(newline):
                    break
            if overflow > 0:
                self.truncated += 1
                dbug_print("truncated line longer than {} in {}" \
                    .format(self.limit,
                            self.where if self.where is not None else "input"))
            else:
                line += newline # the line ended exactly at the limit
        return decode_line(_strip_newline(line), self.where)

    def __iter__(self):
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

class JSONEventReader:
    """Reads the output lines embedded in a 'go test -json' transcript.

    Each JSON object has the fields Time, Action, Package, Test, Elapsed
    and Output; only Output is used. Objects without Output are skipped.
    Lines that are not JSON objects are passed through unchanged.

    Args:
        stream: Text or binary stream with a readline() method.
        limit (int, optional): Maximum length of a yielded line.
        where (str, optional): Description of the stream for warnings.
    """

    def __init__(self, stream, limit=MAX_LINE_SIZE, where=None):
        self._stream = stream
        self.limit = limit
        self.where = where

    def _decode_event(self, line):
        try:
            event = json.loads(line)
        except ValueError:
            warn_print("invalid JSON event in {}, keeping line as output" \
                .format(self.where if self.where is not None else "input"))
            return line
        if not isinstance(event, dict):
            return line
        output = event.get('Output')
        if output is None or output == '':
            return None
        if not isinstance(output, str):
            warn_print("non-string Output in JSON event in {}, " \
                "keeping line as output" \
                .format(self.where if self.where is not None else "input"))
            return line
        if output.endswith('\n'):
            output = output[:-1]
        return output

    def __iter__(self):
        while True:
            line = self._stream.readline()
            if len(line) == 0:
                return
            line = decode_line(_strip_newline(line), self.where)
            if line.startswith('{'):
                line = self._decode_event(line)
                if line is None:
                    continue
            if len(line) > self.limit:
                line = line[:self.limit]
            yield line

class TeeReader:
    """Wraps a stream, copying everything read from it to sink.

    Both streams must be text streams or both binary streams.
    """

    def __init__(self, stream, sink):
        self._stream = stream
        self._sink = sink

    def read(self, size=-1):
        data = self._stream.read(size)
        self._sink.write(data)
        return data

    def readline(self, size=-1):
        data = self._stream.readline(size)
        self._sink.write(data)
        return data
