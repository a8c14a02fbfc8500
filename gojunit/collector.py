# gojunit output collector
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import itertools

class OutputCollector:
    """Stores lines of output grouped by id.

    Output can be retrieved for one or more ids, and the output of
    different ids can be merged, all while preserving the order in which
    the lines were originally appended. Each line is stamped with a
    sequence number from a single counter, so output that arrived
    interleaved between several ids can be put back in arrival order.
    """

    def __init__(self):
        self._lines = {} # id -> list of (seq, text)
        self._seq = itertools.count()

    def append(self, id, text):
        """Append a line of text to the output of the specified id."""
        if id not in self._lines:
            self._lines[id] = []
        self._lines[id].append((next(self._seq), text))

    def clear(self, id):
        """Delete all output for the given id."""
        if id in self._lines:
            del self._lines[id]

    def contains(self, id):
        """Return True if any output was collected for the given id."""
        return len(self._lines.get(id, [])) > 0

    def get(self, id):
        """Return the list of output lines for the given id."""
        return [text for _seq, text in self._lines.get(id, [])]

    def get_all(self, *ids):
        """Return the output lines of all given ids in arrival order."""
        merged = []
        for id in ids:
            merged += self._lines.get(id, [])
        merged.sort(key=lambda line: line[0])
        return [text for _seq, text in merged]

    def merge(self, from_id, into_id):
        """Move the output of from_id into into_id, keeping arrival order."""
        merged = self._lines.get(from_id, []) + self._lines.get(into_id, [])
        merged.sort(key=lambda line: line[0])
        self._lines[into_id] = merged
        self.clear(from_id)
