# gojunit data model
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""gojunit data model.

Provides classes representing a test report reconstructed from
a Go test transcript: a Report holds Packages, a Package holds Tests
(benchmarks are Tests carrying a Benchmark measurement) and possibly
a build or run Error.
"""

import json
from datetime import timedelta, datetime

from gojunit.utils import *

##########################
# result codes and times #
##########################

PASS = 'PASS'
FAIL = 'FAIL'
SKIP = 'SKIP'
UNKNOWN = 'UNKNOWN'

_result_words = {'PASS': PASS,
                 'FAIL': FAIL,
                 'SKIP': SKIP,
                 'BENCH': PASS}
"""Maps runner words (end markers, status lines, summaries) to result codes."""

def parse_result(word):
    """Return the result code for a runner word, UNKNOWN if unrecognized.

    A package summary word of 'ok' or '?' maps to UNKNOWN;
    only a 'FAIL' summary is considered failing.
    """
    if word is None:
        return UNKNOWN
    return _result_words.get(word, UNKNOWN)

def parse_seconds(s):
    """Parse a decimal number of seconds into a timedelta (zero if empty)."""
    if s is None or s == '':
        return timedelta(0)
    try:
        return timedelta(seconds=float(s))
    except ValueError:
        return timedelta(0)

def trim_prefix_spaces(line, indent):
    """Trim the whitespace the test runner prepends to test output.

    Test output is prefixed by a series of 4-space indents (one more than
    the subtest level) and a tab. The spaces are only trimmed if the
    prefix consists of whole 4-space groups; a leading tab is always trimmed.

    Args:
        line (str): Line of test output.
        indent (int): Subtest level of the test that printed the line.
    """
    prefix_len = len(line) - len(line.lstrip(' '))
    if prefix_len < len(line) and prefix_len % 4 == 0:
        for _ in range(indent + 1):
            if not line.startswith("    "):
                break
            line = line[4:]
    if line.startswith("\t"):
        line = line[1:]
    return line

##############################
# Record base and JSON logic #
##############################

def _serialize_value(value):
    if isinstance(value, Record):
        return value.to_json(as_dict=True)
    elif isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    elif isinstance(value, timedelta):
        return value.total_seconds()
    elif isinstance(value, datetime):
        return value.isoformat()
    return value

class Record(dict):
    """Base class for report entities.

    Subclasses dict to support reading and writing fields as dict
    fields or as attributes. All fields are serialized by to_json().
    """

    def to_json(self, pretty=False, as_dict=False):
        """Serialize this record to a JSON string or dict.

        Args:
            pretty (bool or int, optional): Output the JSON as a properly
                indented string instead of as a compact string. Passing an
                int configures the indentation level (default 4).
            as_dict (bool, optional): Return a dict instead of a string.
        """
        serialized = {}
        for field, value in self.items():
            serialized[field] = _serialize_value(value)
        if as_dict:
            return serialized
        elif pretty:
            indent = pretty if isinstance(pretty, int) \
                and not isinstance(pretty, bool) else 4
            return json.dumps(serialized, indent=indent)
        else:
            return json.dumps(serialized)

    # XXX: Protocol to support reading/writing arbitrary JSON fields as attrs:

    def __getattr__(self, field):
        # XXX Called if attribute is not found -- look in JSON dict.
        try:
            return self[field]
        except KeyError:
            raise AttributeError(field)

    def __setattr__(self, field, value):
        self[field] = value

    def __delattr__(self, field):
        try:
            del self[field]
        except KeyError:
            raise AttributeError(field)

###########################################
# Benchmark, Test, Error, Package, Report #
###########################################

BENCHMARK_KEY = 'benchmark'
"""Key of the Benchmark measurement in Test.data."""

class Benchmark(Record):
    """Measurements printed on a single benchmark result line.

    Attributes:
        iterations (int): Number of iterations the benchmark ran.
        ns_per_op (float): Average nanoseconds per operation.
        mb_per_sec (float): Throughput in MB/s, 0 if not reported.
        bytes_per_op (int): Bytes allocated per operation, 0 if not reported.
        allocs_per_op (int): Allocations per operation, 0 if not reported.
    """

    def __init__(self, iterations=0, ns_per_op=0.0, mb_per_sec=0.0,
                 bytes_per_op=0, allocs_per_op=0):
        super().__init__(iterations=iterations, ns_per_op=ns_per_op,
                         mb_per_sec=mb_per_sec, bytes_per_op=bytes_per_op,
                         allocs_per_op=allocs_per_op)

    def approximate_duration(self):
        """Total running time implied by iterations * ns_per_op."""
        return timedelta(microseconds=self.iterations * self.ns_per_op / 1000)

class Test(Record):
    """A single test or benchmark run within a Package.

    Attributes:
        id (int): Identifier, unique within the whole report.
        name (str): The name of the test, e.g. 'TestParent/Subtest'.
        duration (timedelta): Time taken by the test.
        result (str): One of PASS, FAIL, SKIP, UNKNOWN.
        indent (int): Subtest nesting level; 0 for a top-level test.
        output (list of str): Lines of output attributed to this test.
        data (dict): Additional data, e.g. the Benchmark measurement
            stored under BENCHMARK_KEY.
    """

    def __init__(self, id, name, duration=None, result=UNKNOWN, indent=0,
                 output=None, data=None):
        super().__init__(id=id, name=name,
                         duration=duration if duration is not None \
                             else timedelta(0),
                         result=result, indent=indent,
                         output=output if output is not None else [],
                         data=data if data is not None else {})

    @property
    def benchmark(self):
        """The Benchmark measurement of this test, or None."""
        return self.data.get(BENCHMARK_KEY)

    def set_benchmark(self, benchmark):
        self.data[BENCHMARK_KEY] = benchmark

    def is_benchmark(self):
        return self.name.startswith("Benchmark")

class Error(Record):
    """A build or run failure that is not attributable to a single test.

    Attributes:
        id (int): Identifier, unique within the whole report.
        name (str): Name of the package the error occurred in.
        cause (str): Annotation from the package summary,
            e.g. '[build failed]'.
        duration (timedelta): Duration from the package summary.
        output (list of str): Lines of output belonging to the error.
    """

    def __init__(self, id=0, name='', cause='', duration=None, output=None):
        super().__init__(id=id, name=name, cause=cause,
                         duration=duration if duration is not None \
                             else timedelta(0),
                         output=output if output is not None else [])

class Property(Record):
    def __init__(self, name, value):
        super().__init__(name=name, value=value)

class Package(Record):
    """Results of the tests of a single package.

    Attributes:
        name (str): The package name (import path).
        duration (timedelta): Duration from the package summary.
        timestamp (datetime): Time at which the package was reported.
        coverage (float): Statement coverage percentage, 0 if unknown.
        output (list of str): Output not attributable to any test.
        tests (list of Test): Tests and benchmarks in insertion order.
        properties (list of Property): Key/value properties.
        build_error (Error): Compilation failure, or None.
        run_error (Error): Failure outside any known test, or None.
    """

    def __init__(self, name, duration=None, timestamp=None, coverage=0.0,
                 output=None, tests=None, properties=None,
                 build_error=None, run_error=None):
        super().__init__(name=name,
                         duration=duration if duration is not None \
                             else timedelta(0),
                         timestamp=timestamp, coverage=coverage,
                         output=output if output is not None else [],
                         tests=tests if tests is not None else [],
                         properties=properties if properties is not None \
                             else [],
                         build_error=build_error, run_error=run_error)

    def set_property(self, name, value):
        """Set property name to value, replacing any existing value.

        The property is moved to the end of the property list.
        """
        self.properties = [prop for prop in self.properties
                           if prop.name != name]
        self.properties.append(Property(name, value))

class Report(Record):
    """An ordered list of Packages."""

    def __init__(self, packages=None):
        super().__init__(packages=packages if packages is not None else [])

    def is_successful(self):
        """False if any package has a build or run error, or any test
        did not pass or skip."""
        for pkg in self.packages:
            if pkg.build_error is not None or pkg.run_error is not None:
                return False
            for test in pkg.tests:
                if test.result != PASS and test.result != SKIP:
                    return False
        return True

    def count_results(self):
        """Return a dict mapping each result code to the number of tests."""
        counts = {PASS: 0, FAIL: 0, SKIP: 0, UNKNOWN: 0}
        for pkg in self.packages:
            for test in pkg.tests:
                counts[test.result] += 1
        return counts
