# gojunit Go test output parser
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Parsers for the output of 'go test -v' and 'go test -json'.

Each line of the transcript is classified into events by parse_line(),
and each event is applied to a ReportBuilder as soon as it is produced.
"""

import re

from gojunit.utils import *
from gojunit.model import parse_seconds
from gojunit.event import *
from gojunit.reader import LimitedLineReader, JSONEventReader, \
    MAX_LINE_SIZE, MAX_SCAN_TOKEN_SIZE
from gojunit.builder import ReportBuilder, SUBTEST_MODES, \
    SUBTEST_MODE_DEFAULT

# Benchmark name on a line of its own.
benchmark_regex = re.compile(r'^(Benchmark[^ -]+)$')
# Benchmark name, iterations, ns/op, and optionally MB/s, B/op, allocs/op.
bench_summary_regex = re.compile(r'^(Benchmark[^ -]+)(?:-\d+\s+|\s+)(\d+)\s+'
                                 r'(\d+|\d+\.\d+)\sns/op'
                                 r'(?:\s+(\d+|\d+\.\d+)\sMB/s)?'
                                 r'(?:\s+(\d+)\sB/op)?'
                                 r'(?:\s+(\d+)\sallocs/op)?')
coverage_regex = re.compile(r'^coverage:\s+(\d+|\d+\.\d+)%\s+of\s+statements'
                            r'(?:\sin\s(.+))?$')
end_benchmark_regex = re.compile(r'^--- (BENCH|FAIL|SKIP): '
                                 r'(Benchmark[^ -]+)(?:-\d+)?$')
# Not anchored: test output without a trailing newline may precede it.
end_test_regex = re.compile(r'((?:    )*)--- (PASS|FAIL|SKIP): ([^ ]+) '
                            r'\((\d+\.\d+)(?: seconds|s)\)')
status_regex = re.compile(r'^(PASS|FAIL|SKIP)$')
summary_regex = re.compile(r'^(?P<result>\?|ok|FAIL)'
                           r'\s+(?P<name>[^ \t]+)'
                           r'(?:\s+(?P<duration>\d+\.\d+)s)?'
                           r'(?:\s+(?P<cached>\(cached\)))?'
                           r'(?:\s+(?P<status>\[[^\]]+\]))?'
                           r'(?:\s+coverage:\s+(?P<covpct>\d+\.\d+)%'
                           r'\sof\sstatements(?:\sin\s(?P<packages>.+))?)?$')

def parse_subtest_mode(text):
    """Return the subtest mode named by text ('' selects the default).

    Raises:
        GojunitError: Unknown subtest mode.
    """
    if text is None or text == '':
        return SUBTEST_MODE_DEFAULT
    if text not in SUBTEST_MODES:
        raise GojunitError("unknown subtest mode: {}".format(text))
    return text

def _parse_float(s):
    if s is None or s == '':
        return 0.0
    return float(s)

def _parse_int(s):
    if s is None or s == '':
        return 0
    return int(s)

def _parse_packages(pkg_list):
    if pkg_list is None or len(pkg_list) == 0:
        return None
    return pkg_list.split(", ")

def _strip_indent(indent):
    n = 0
    while indent.startswith("    "):
        indent = indent[4:]
        n += 1
    return n

class GoTestParser:
    """Parser for 'go test -v' output.

    Args:
        package_name (str, optional): Package name to use for tests that
            are not followed by a package summary line.
        subtest_mode (str, optional): How tests with subtests are reported,
            see parse_subtest_mode().
        timestamp_func (callable, optional): Returns the timestamp to use
            for each package.
        detect_build_output (bool, optional): Treat '# package' lines as
            build failure banners. Disable this if tests print lines
            starting with '# '.
    """

    def __init__(self, package_name='', subtest_mode=SUBTEST_MODE_DEFAULT,
                 timestamp_func=None, detect_build_output=True):
        self.package_name = package_name
        self.subtest_mode = parse_subtest_mode(subtest_mode)
        self.timestamp_func = timestamp_func
        self.detect_build_output = detect_build_output
        self._events = []
        self.next_id = 1 # first id not used by the last parse()

    def _new_reader(self, stream, where=None):
        return LimitedLineReader(stream, MAX_LINE_SIZE, where)

    def parse(self, stream, where=None, first_id=1):
        """Parse the transcript in stream and return a Report.

        Args:
            stream: Text or binary stream to read from.
            where (str, optional): Description of the stream for warnings.
            first_id (int, optional): First id to allocate. Pass next_id
                to continue the ids of the previous parse().

        Raises:
            ReportConsistencyError: The transcript could not be turned into
                a consistent report.
        """
        self._events = []
        builder = ReportBuilder(package_name=self.package_name,
                                subtest_mode=self.subtest_mode,
                                timestamp_func=self.timestamp_func,
                                first_id=first_id)
        for line in self._new_reader(stream, where):
            if len(line) > MAX_SCAN_TOKEN_SIZE:
                # Lines this long are not expected to contain test
                # infrastructure output.
                events = [Output(line)]
            else:
                events = self.parse_line(line)
            for event in events:
                self._events.append(event)
                builder.process_event(event)
        report = builder.build()
        self.next_id = builder.next_id
        return report

    def events(self):
        """Return a copy of the events produced by the last parse()."""
        return list(self._events)

    def parse_line(self, line):
        """Classify a single line of output into a list of events."""
        if line.startswith("=== RUN "):
            return [RunTest(line[8:].strip())]
        elif line.startswith("=== PAUSE "):
            return [PauseTest(line[10:].strip())]
        elif line.startswith("=== CONT "):
            return [ContTest(line[9:].strip())]

        m = end_test_regex.search(line)
        if m is not None:
            events = []
            if m.start() > 0:
                events.append(Output(line[:m.start()]))
            events.append(EndTest(m.group(3), m.group(2),
                                  parse_seconds(m.group(4)),
                                  _strip_indent(m.group(1))))
            return events

        m = status_regex.match(line)
        if m is not None:
            return [Status(m.group(1))]

        m = summary_regex.match(line)
        if m is not None:
            annotation = "{} {}".format(m.group('cached') or '',
                                        m.group('status') or '').strip()
            covpct = m.group('covpct')
            return [Summary(m.group('name'), m.group('result'),
                            parse_seconds(m.group('duration')), annotation,
                            float(covpct) if covpct is not None else None,
                            _parse_packages(m.group('packages')))]

        m = coverage_regex.match(line)
        if m is not None:
            return [Coverage(_parse_float(m.group(1)),
                             _parse_packages(m.group(2)))]

        m = benchmark_regex.match(line)
        if m is not None:
            return [RunBenchmark(m.group(1))]

        m = bench_summary_regex.match(line)
        if m is not None:
            return [BenchmarkResult(m.group(1),
                                    iterations=_parse_int(m.group(2)),
                                    ns_per_op=_parse_float(m.group(3)),
                                    mb_per_sec=_parse_float(m.group(4)),
                                    bytes_per_op=_parse_int(m.group(5)),
                                    allocs_per_op=_parse_int(m.group(6)))]

        m = end_benchmark_regex.match(line)
        if m is not None:
            return [EndBenchmark(m.group(2), m.group(1))]

        if self.detect_build_output and line.startswith("# "):
            # XXX Would be more robust to detect build output while
            # building the report.
            fields = line[2:].split()
            if len(fields) == 1 or len(fields) == 2:
                return [BuildOutput(fields[0])]

        return [Output(line)]

class GoTestJSONParser(GoTestParser):
    """Parser for 'go test -json' output.

    The Output field of every JSON event is parsed as a line of
    'go test -v' output. Accepts the same arguments as GoTestParser.
    """

    def _new_reader(self, stream, where=None):
        return JSONEventReader(stream, MAX_LINE_SIZE, where)
