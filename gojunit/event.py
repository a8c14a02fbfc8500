# gojunit parser events
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Events emitted by the line classifier.

Each line of a Go test transcript is classified into zero or more
events. There is one Event subclass per kind of marker line, and every
event carries its kind in the 'type' field so that a list of events can
be dumped as JSON for debugging.
"""

from datetime import timedelta

from gojunit.model import Record

class Event(Record):
    type = None
    """Tag identifying the kind of event; set by each subclass."""

    def __init__(self, **fields):
        super().__init__(type=self.__class__.type, **fields)

class RunTest(Event):
    type = 'run_test'

    def __init__(self, name):
        super().__init__(name=name)

class PauseTest(Event):
    type = 'pause_test'

    def __init__(self, name):
        super().__init__(name=name)

class ContTest(Event):
    type = 'cont_test'

    def __init__(self, name):
        super().__init__(name=name)

class EndTest(Event):
    """'--- PASS: TestName (0.01s)'; indent is the subtest level."""
    type = 'end_test'

    def __init__(self, name, result, duration=None, indent=0):
        super().__init__(name=name, result=result,
                         duration=duration if duration is not None \
                             else timedelta(0),
                         indent=indent)

class Status(Event):
    """A bare 'PASS', 'FAIL' or 'SKIP' line."""
    type = 'status'

    def __init__(self, result):
        super().__init__(result=result)

class Summary(Event):
    """Package summary line, e.g. 'ok  package/name 0.160s'.

    Attributes:
        name (str): Package name.
        result (str): 'ok', 'FAIL' or '?'.
        duration (timedelta): Package duration, zero if not printed.
        annotation (str): '(cached)' and/or '[bracketed message]', verbatim.
        coverage_pct (float): Coverage percentage, or None.
        coverage_pkgs (list of str): Packages the coverage refers to, or None.
    """
    type = 'summary'

    def __init__(self, name, result, duration=None, annotation='',
                 coverage_pct=None, coverage_pkgs=None):
        super().__init__(name=name, result=result,
                         duration=duration if duration is not None \
                             else timedelta(0),
                         annotation=annotation,
                         coverage_pct=coverage_pct,
                         coverage_pkgs=coverage_pkgs)

class Coverage(Event):
    type = 'coverage'

    def __init__(self, pct, pkgs=None):
        super().__init__(pct=pct, pkgs=pkgs)

class RunBenchmark(Event):
    type = 'run_benchmark'

    def __init__(self, name):
        super().__init__(name=name)

class BenchmarkResult(Event):
    """'BenchmarkOne-8  2000000  604 ns/op [...]'"""
    type = 'benchmark'

    def __init__(self, name, iterations=0, ns_per_op=0.0, mb_per_sec=0.0,
                 bytes_per_op=0, allocs_per_op=0):
        super().__init__(name=name, iterations=iterations,
                         ns_per_op=ns_per_op, mb_per_sec=mb_per_sec,
                         bytes_per_op=bytes_per_op,
                         allocs_per_op=allocs_per_op)

class EndBenchmark(Event):
    type = 'end_benchmark'

    def __init__(self, name, result):
        super().__init__(name=name, result=result)

class BuildOutput(Event):
    """'# package/name' banner preceding compiler output."""
    type = 'build_output'

    def __init__(self, name):
        super().__init__(name=name)

class Output(Event):
    type = 'output'

    def __init__(self, text):
        super().__init__(text=text)

EVENT_CLASSES = [RunTest, PauseTest, ContTest, EndTest, Status, Summary,
                 Coverage, RunBenchmark, BenchmarkResult, EndBenchmark,
                 BuildOutput, Output]

EVENT_TYPES = [cls.type for cls in EVENT_CLASSES]
"""Tags of every kind of event; each must have a handler in ReportBuilder."""
