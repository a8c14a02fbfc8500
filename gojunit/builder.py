# gojunit report builder
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Assembles a Report from the sequence of events of a Go test transcript.

The ReportBuilder keeps track of the active context whenever a test,
benchmark or build error is created. The line classifier keeps no state
of its own and simply emits events for every line it reads; by tracking
the active context, any output appended to the ReportBuilder gets
attributed to the correct test or build error.
"""

from datetime import datetime, timedelta
from dateutil import tz

from gojunit.utils import *
from gojunit.model import *
from gojunit.collector import OutputCollector
from gojunit.event import EVENT_TYPES

GLOBAL_ID = 0
"""Pseudo-id of output that belongs to the package rather than a test."""

SUBTEST_MODE_DEFAULT = 'default'
IGNORE_PARENT_RESULTS = 'ignore-parent-results'
EXCLUDE_PARENTS = 'exclude-parents'

SUBTEST_MODES = [SUBTEST_MODE_DEFAULT, IGNORE_PARENT_RESULTS, EXCLUDE_PARENTS]

def _drop_last_segment(name):
    idx = name.rfind('/')
    if idx >= 0:
        return name[:idx]
    return ''

def _combined_duration(tests):
    total = timedelta(0)
    for test in tests:
        total += test.duration
    return total

def _group_result(tests):
    result = UNKNOWN
    for test in tests:
        if test.result == FAIL:
            return FAIL
        if result != PASS:
            result = test.result
    return result

class ReportBuilder:
    """Builds a Report from parser events.

    Events are applied one at a time with process_event() (or by calling
    the individual operations directly); build() finishes the report.

    Args:
        package_name (str, optional): Name of the package created for
            tests that are not followed by a package summary.
        subtest_mode (str, optional): One of SUBTEST_MODES.
        timestamp_func (callable, optional): Returns the datetime to use as
            the timestamp of each package. Defaults to the current time.
        first_id (int, optional): First id to allocate. Pass the next_id of
            a previous builder to keep ids unique across several inputs.
    """

    def __init__(self, package_name='', subtest_mode=SUBTEST_MODE_DEFAULT,
                 timestamp_func=None, first_id=1):
        self.package_name = package_name
        self.subtest_mode = subtest_mode
        self.timestamp_func = timestamp_func if timestamp_func is not None \
            else (lambda: datetime.now(tz.tzlocal()))

        self.packages = []
        self._tests = {} # id -> Test, for the package being assembled
        self._test_order = [] # ids of self._tests in creation order
        self._names = {} # name -> ids of self._tests, oldest first
        self._build_errors = {} # id -> Error, kept until its summary

        self.next_id = first_id # never reset
        self.last_id = GLOBAL_ID # active context
        self.output = OutputCollector()
        self.coverage_pct = 0.0
        self._parent_ids = set() # ids of tests that contain subtests

    def process_event(self, event):
        """Apply a single parser event to the report being built."""
        handler = _event_handlers.get(event.get('type'))
        if handler is None:
            raise GojunitError("unknown event type {}" \
                .format(event.get('type')))
        handler(self, event)

    def build(self):
        """Finish and return the Report containing all packages so far."""
        self.flush()
        return Report(packages=list(self.packages))

    def flush(self):
        """Create a package for tests that were not followed by a summary."""
        if len(self._tests) > 0:
            self.create_package(self.package_name, '', timedelta(0), '')

    def _allocate_id(self):
        id = self.next_id
        self.next_id += 1
        return id

    def _new_id(self):
        self.last_id = self._allocate_id()
        return self.last_id

    def _add_test(self, test):
        self._tests[test.id] = test
        self._test_order.append(test.id)
        if test.name not in self._names:
            self._names[test.name] = []
        self._names[test.name].append(test.id)

    def find_test(self, name):
        """Return the id of the most recently created test with this name,
        or None. The active test wins if its name matches."""
        if self.last_id in self._tests \
           and self._tests[self.last_id].name == name:
            return self.last_id
        ids = self._names.get(name)
        if ids:
            return ids[-1]
        return None

    def _find_parent_id(self, name):
        parent = _drop_last_segment(name)
        while parent != '':
            id = self.find_test(parent)
            if id is not None:
                return id
            parent = _drop_last_segment(parent)
        return None

    def is_parent(self, id):
        return id in self._parent_ids

    #############################
    # test and benchmark events #
    #############################

    def create_test(self, name):
        """Add a test with the given name and mark it as active."""
        parent_id = self._find_parent_id(name)
        if parent_id is not None:
            self._parent_ids.add(parent_id)
        id = self._new_id()
        self._add_test(Test(id, name))

    def pause_test(self, name):
        """Mark the active context as no longer active."""
        self.last_id = GLOBAL_ID

    def continue_test(self, name):
        """Mark the most recently created test with this name as active."""
        id = self.find_test(name)
        self.last_id = id if id is not None else GLOBAL_ID

    def end_test(self, name, result, duration, indent):
        """Set the result, duration and indent of the test with this name.

        A test is created if none exists, which happens when go test
        was run without -v.
        """
        id = self.find_test(name)
        if id is None:
            dbug_print("end marker for test {} that never started" \
                .format(name))
            self.create_test(name)
            id = self.last_id
        test = self._tests[id]
        test.result = parse_result(result)
        test.duration = duration
        test.indent = indent
        self.last_id = GLOBAL_ID

    def end(self):
        """Mark the active context as no longer active."""
        self.last_id = GLOBAL_ID

    def create_benchmark(self, name):
        self.create_test(name)

    def benchmark_result(self, name, iterations, ns_per_op, mb_per_sec,
                         bytes_per_op, allocs_per_op):
        """Record a benchmark result and mark the benchmark as active.

        An existing benchmark with this name is updated only if it has
        no result yet; otherwise a new one is added.
        """
        id = self.find_test(name)
        if id is None or self._tests[id].result != UNKNOWN:
            self.create_test(name)
            id = self.last_id

        benchmark = Benchmark(iterations, ns_per_op, mb_per_sec,
                              bytes_per_op, allocs_per_op)
        test = self._tests[id]
        test.result = PASS
        test.duration = benchmark.approximate_duration()
        test.indent = 0
        test.data = {}
        test.set_benchmark(benchmark)

    def end_benchmark(self, name, result):
        self.end_test(name, result, timedelta(0), 0)

    ##################################
    # build errors, coverage, output #
    ##################################

    def create_build_error(self, package_name):
        """Create a build error for the package and mark it as active."""
        id = self._new_id()
        self._build_errors[id] = Error(id=id, name=package_name)

    def coverage(self, pct, packages=None):
        """Set the coverage percentage of the package being assembled."""
        self.coverage_pct = pct

    def append_output(self, text):
        """Append output to the active context, or to the package."""
        self.output.append(self.last_id, text)

    #####################
    # package summaries #
    #####################

    def _contains_failures(self):
        for test in self._tests.values():
            if test.result == FAIL or test.result == UNKNOWN:
                return True
        return False

    def _find_build_error(self, name):
        for id in sorted(self._build_errors):
            if self._build_errors[id].name == name:
                return id
        return None

    def create_package(self, name, result, duration, annotation):
        """Add a package containing everything collected since the last one.

        Build errors are handled separately: only a build error for this
        exact package name is attached, and the rest of the state is left
        alone. Afterwards all state except the id counter is reset.

        Raises:
            ReportConsistencyError: A build error for this package was
                found together with tests or benchmarks.
        """
        if duration is None:
            duration = timedelta(0)
        pkg = Package(name, duration=duration)
        if self.timestamp_func is not None:
            pkg.timestamp = self.timestamp_func()

        build_id = self._find_build_error(name)
        if build_id is not None:
            if len(self._tests) > 0:
                raise ReportConsistencyError("unexpected tests found in " \
                    "package {} with a build error".format(name))
            build_error = self._build_errors.pop(build_id)
            build_error.duration = duration
            build_error.cause = annotation
            build_error.output = self.output.get(build_id)
            self.output.clear(build_id)
            pkg.build_error = build_error
            self.packages.append(pkg)
            return

        # Output without any tests: either there were no tests at all,
        # or something other than a build failed.
        if self.output.contains(GLOBAL_ID) and len(self._tests) == 0:
            if parse_result(result) == FAIL:
                dbug_print("run error in package {} with no tests" \
                    .format(name))
                pkg.run_error = Error(id=self._allocate_id(), name=name,
                                      output=self.output.get(GLOBAL_ID))
            else:
                pkg.output = self.output.get(GLOBAL_ID)
            pkg.coverage = self.coverage_pct
            self.packages.append(pkg)
            self._reset()
            return

        # The summary says we failed but no test failed, so something
        # else must have failed.
        if parse_result(result) == FAIL and len(self._tests) > 0 \
           and not self._contains_failures():
            dbug_print("run error in package {} outside of any test" \
                .format(name))
            pkg.run_error = Error(id=self._allocate_id(), name=name,
                                  output=self.output.get(GLOBAL_ID))
            self.output.clear(GLOBAL_ID)

        tests = []
        for id in self._test_order:
            test = self._tests[id]
            if self.is_parent(id):
                if self.subtest_mode == IGNORE_PARENT_RESULTS:
                    test.result = PASS
                elif self.subtest_mode == EXCLUDE_PARENTS:
                    self.output.merge(id, GLOBAL_ID)
                    continue
            test.output = self.output.get(id)
            tests.append(test)
        tests = self._group_benchmarks_by_name(tests)

        pkg.coverage = self.coverage_pct
        pkg.output = self.output.get(GLOBAL_ID)
        pkg.tests = tests
        self.packages.append(pkg)
        self._reset()

    def _reset(self):
        # next_id is kept so that ids stay unique across packages.
        for id in self._test_order:
            self.output.clear(id)
        self.last_id = GLOBAL_ID
        self.output.clear(GLOBAL_ID)
        self.coverage_pct = 0.0
        self._tests = {}
        self._test_order = []
        self._names = {}
        self._parent_ids = set()

    def _group_benchmarks_by_name(self, tests):
        """Merge repeated runs of the same benchmark into one Test.

        Metrics are averaged over the passing runs only.
        """
        grouped = []
        by_name = {}
        for test in tests:
            if not test.is_benchmark():
                grouped.append(test)
                continue
            if test.name not in by_name:
                grouped.append(Test(test.id, test.name))
                by_name[test.name] = []
            by_name[test.name].append(test)

        for i, group in enumerate(grouped):
            if group.name not in by_name:
                continue
            runs = by_name[group.name]
            total = Benchmark()
            count = 0
            for test in runs:
                if test.result != PASS or test.benchmark is None:
                    continue
                bench = test.benchmark
                total.iterations += bench.iterations
                total.ns_per_op += bench.ns_per_op
                total.mb_per_sec += bench.mb_per_sec
                total.bytes_per_op += bench.bytes_per_op
                total.allocs_per_op += bench.allocs_per_op
                count += 1

            group.duration = _combined_duration(runs)
            group.result = _group_result(runs)
            group.output = self.output.get_all(*[test.id for test in runs])
            if count > 0:
                total.iterations //= count
                total.ns_per_op /= count
                total.mb_per_sec /= count
                total.bytes_per_op //= count
                total.allocs_per_op //= count
                group.set_benchmark(total)
            grouped[i] = group
        return grouped

    def _summary(self, name, result, duration, annotation,
                 coverage_pct=None, coverage_pkgs=None):
        if coverage_pct is not None:
            self.coverage(coverage_pct, coverage_pkgs)
        self.create_package(name, result, duration, annotation)

_event_handlers = {
    'run_test': lambda b, ev: b.create_test(ev.name),
    'pause_test': lambda b, ev: b.pause_test(ev.name),
    'cont_test': lambda b, ev: b.continue_test(ev.name),
    'end_test': lambda b, ev: b.end_test(ev.name, ev.result,
                                         ev.duration, ev.indent),
    'status': lambda b, ev: b.end(),
    'summary': lambda b, ev: b._summary(ev.name, ev.result, ev.duration,
                                        ev.annotation, ev.coverage_pct,
                                        ev.coverage_pkgs),
    'coverage': lambda b, ev: b.coverage(ev.pct, ev.pkgs),
    'run_benchmark': lambda b, ev: b.create_benchmark(ev.name),
    'benchmark': lambda b, ev: b.benchmark_result(ev.name, ev.iterations,
                                                  ev.ns_per_op, ev.mb_per_sec,
                                                  ev.bytes_per_op,
                                                  ev.allocs_per_op),
    'end_benchmark': lambda b, ev: b.end_benchmark(ev.name, ev.result),
    'build_output': lambda b, ev: b.create_build_error(ev.name),
    'output': lambda b, ev: b.append_output(ev.text),
}
"""Maps each event type to the ReportBuilder operation applying it."""

_unhandled = [t for t in EVENT_TYPES if t not in _event_handlers]
if len(_unhandled) > 0:
    raise GojunitError("no ReportBuilder handler for event types {}" \
        .format(", ".join(_unhandled)))
