# gojunit command line interface
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Command line interface: go test output in, JUnit XML out."""

import sys
import argparse
import dateutil.parser
from dateutil import tz
from tqdm import tqdm

from gojunit.utils import *
from gojunit.model import Report
from gojunit.config import ReportOptions
from gojunit.parser import GoTestParser, GoTestJSONParser
from gojunit.reader import TeeReader
from gojunit.junit import create_from_report, write_xml
from gojunit.version import __version__

PARSERS = {
    'gotest': GoTestParser,
    'gojson': GoTestJSONParser,
}

def build_arg_parser():
    """Return an argparse parser for the options defined in ReportOptions."""
    parser = argparse.ArgumentParser(prog='go-junit-report.py',
        description="Convert go test output to a JUnit XML report.")
    parser.add_argument('inputs', nargs='*', metavar='<file>',
        help="go test output to read; default stdin")
    parser.add_argument('--version', action='version',
        version="%(prog)s {}".format(__version__))

    flags = {}
    for external_name, internal_name in ReportOptions.option_names('cmdline'):
        flags.setdefault(internal_name, []).append('--' + external_name)
    for external_name, internal_name in \
        ReportOptions.option_names('cmdline_short'):
        flags.setdefault(internal_name, []).insert(0, '-' + external_name)

    for internal_name in ReportOptions.options():
        if internal_name not in flags:
            continue
        help_str = ReportOptions.option_info(internal_name, 'help_str')
        if ReportOptions.option_info(internal_name, 'boolean_flag'):
            parser.add_argument(*flags[internal_name], dest=internal_name,
                                action='store_true', default=None,
                                help=help_str)
            negated = ['--no-' + flag[2:] for flag in flags[internal_name]
                       if flag.startswith('--')]
            parser.add_argument(*negated, dest=internal_name,
                                action='store_false', default=None,
                                help=argparse.SUPPRESS)
        elif ReportOptions.option_info(internal_name, 'accumulate'):
            parser.add_argument(*flags[internal_name], dest=internal_name,
                                action='append', default=None,
                                metavar=ReportOptions.option_info \
                                    (internal_name, 'help_cookie'),
                                help=help_str)
        else:
            parser.add_argument(*flags[internal_name], dest=internal_name,
                                default=None,
                                choices=ReportOptions.option_info \
                                    (internal_name, 'choices'),
                                metavar=ReportOptions.option_info \
                                    (internal_name, 'help_cookie'),
                                help=help_str)
    return parser

def timestamp_func(opts):
    """Return a function producing the configured timestamp, or None to
    use the current time.

    Raises:
        GojunitError: The timestamp could not be parsed.
    """
    if opts.timestamp is None or opts.timestamp == '':
        return None
    try:
        timestamp = dateutil.parser.parse(opts.timestamp)
    except (ValueError, OverflowError):
        raise GojunitError("invalid timestamp '{}'".format(opts.timestamp))
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=tz.tzutc())
    return lambda: timestamp

def new_parser(opts):
    """Create the parser selected by the options.

    Raises:
        GojunitError: Unknown parser or subtest mode.
    """
    if opts.parser not in PARSERS:
        raise GojunitError("unknown parser '{}'".format(opts.parser))
    return PARSERS[opts.parser](package_name=opts.package_name,
                                subtest_mode=opts.subtest_mode,
                                timestamp_func=timestamp_func(opts),
                                detect_build_output=opts.detect_build_output)

def _print_events(parser, stream):
    for event in parser.events():
        print(event.to_json(), file=stream)

def _parse_input(parser, stream, where, opts, stdout, stderr):
    if opts.iocopy:
        stream = TeeReader(stream, getattr(stdout, 'buffer', stdout))
    report = parser.parse(stream, where, first_id=parser.next_id)
    if opts.print_events:
        _print_events(parser, stderr)
    return report

def apply_properties(report, opts):
    """Add the configured properties to every package of the report."""
    properties = []
    if opts.go_version is not None and opts.go_version != '':
        properties.append(('go.version', opts.go_version))
    properties += opts.get_properties()
    for pkg in report.packages:
        for name, value in properties:
            pkg.set_property(name, value)

def write_report(report, opts, stream):
    if opts.output_format == 'json':
        stream.write(report.to_json(pretty=True))
        stream.write("\n")
    else:
        testsuites = create_from_report(report, opts.hostname)
        write_xml(testsuites, stream, xml_header=not opts.no_xml_header)

def run_report(opts, stdin=None, stdout=None, stderr=None):
    """Parse the configured inputs and write the report.

    Args:
        opts (ReportOptions): The options of this invocation.
        stdin (optional): Binary or text stream used when no input file
            is given. Defaults to sys.stdin.buffer.
        stdout (optional): Text stream used when no output file is
            given. Defaults to sys.stdout.
        stderr (optional): Text stream for progress and events.
            Defaults to sys.stderr.

    Returns:
        The Report that was written.

    Raises:
        GojunitError: Invalid options.
        ReportConsistencyError: The input could not be turned into
            a consistent report.
        OSError: An input or output file could not be accessed.
    """
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    if opts.iocopy and opts.output_path is None:
        raise GojunitError("--iocopy requires --out")

    parser = new_parser(opts)
    input_paths = opts.get_list('input_paths', default=[])
    packages = []
    if len(input_paths) == 0:
        report = _parse_input(parser, stdin, "<stdin>", opts, stdout, stderr)
        packages += report.packages
    for path in tqdm(iterable=input_paths, desc="Parsing go test output",
                     leave=False, unit='file', file=stderr,
                     disable=len(input_paths) < 2):
        with open(path, 'rb') as f:
            report = _parse_input(parser, f, path, opts, stdout, stderr)
        packages += report.packages
    report = Report(packages=packages)
    apply_properties(report, opts)

    counts = report.count_results()
    dbug_print("{} packages, {} passed, {} failed, {} skipped, {} unknown" \
        .format(len(report.packages), counts['PASS'], counts['FAIL'],
                counts['SKIP'], counts['UNKNOWN']))

    if opts.output_path is not None:
        with open(opts.output_path, 'w', encoding='utf-8') as f:
            write_report(report, opts, f)
    else:
        write_report(report, opts, stdout)
    return report

def main(argv=None, env=None, global_config_path=None):
    """Run go-junit-report and return its exit status.

    Args:
        argv (list of str, optional): Arguments; defaults to sys.argv[1:].
        env (map, optional): Environment; defaults to os.environ.
        global_config_path (Path or str, optional): Per-user config file.
    """
    args = build_arg_parser().parse_args(argv)
    if args.inputs:
        args.input_paths = (args.input_paths or []) + args.inputs
    try:
        opts = ReportOptions().load(args, env, global_config_path)
        set_debug(opts.debug)
        opts.show_results()
        report = run_report(opts)
    except ReportConsistencyError as err:
        err_print("internal error: {}".format(err.msg))
        return 2
    except GojunitError as err:
        err_print(err.msg)
        return 1
    except OSError as err:
        err_print(err)
        return 1
    if opts.set_exit_code and not report.is_successful():
        return 1
    return 0
