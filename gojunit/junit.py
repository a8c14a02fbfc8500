# gojunit JUnit XML output
# Copyright (C) 2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Conversion of a Report to the JUnit XML format understood by CI systems.

Each Package becomes a <testsuite>, each Test a <testcase>. Build and run
errors of a package are reported as an extra <testcase> with an <error>.
"""

import re
from datetime import timedelta
from xml.etree import ElementTree as ET

from gojunit.model import *

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'

ansi_escape_regex = re.compile(r'\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b[@-Z\\-_]')
invalid_xml_regex = re.compile('[^\t\n\r\x20-\ud7ff\ue000-\ufffd'
                               '\U00010000-\U0010ffff]')

def clean_text(text):
    """Remove ANSI escape sequences and characters not allowed in XML."""
    text = ansi_escape_regex.sub('', text)
    return invalid_xml_regex.sub('\ufffd', text)

def format_duration(duration):
    if duration is None:
        duration = timedelta(0)
    return "{:.3f}".format(duration.total_seconds())

def format_timestamp(timestamp):
    """Format a datetime as RFC 3339, using 'Z' for UTC."""
    text = timestamp.isoformat(timespec='seconds')
    if text.endswith('+00:00'):
        text = text[:-len('+00:00')] + 'Z'
    return text

def format_output(output, indent):
    return "\n".join(trim_prefix_spaces(line, indent) for line in output)

def _element(tag, attrs, text=None):
    elem = ET.Element(tag, {k: clean_text(str(v)) for k, v in attrs})
    if text is not None:
        elem.text = clean_text(text)
    return elem

def _create_testcase(pkg, test):
    tc = _element('testcase', [('name', test.name),
                               ('classname', pkg.name),
                               ('time', format_duration(test.duration))])
    output = format_output(test.output, test.indent)
    if test.result == FAIL:
        tc.append(_element('failure', [('message', "Failed")], output))
    elif test.result == SKIP:
        tc.append(_element('skipped', [('message', "Skipped")], output))
    elif test.result == UNKNOWN:
        tc.append(_element('error', [('message', "No test result found")],
                           output))
    elif len(test.output) > 0:
        tc.append(_element('system-out', [], output))
    return tc

def _create_error_testcase(error, name, message):
    tc = _element('testcase', [('name', name),
                               ('classname', error.name),
                               ('time', format_duration(timedelta(0)))])
    tc.append(_element('error', [('message', message)],
                       "\n".join(error.output)))
    return tc

def create_testsuite(pkg, id=0, hostname=None):
    """Return a <testsuite> element and its (tests, failures, errors,
    skipped) counts for a single Package."""
    testcases = []
    failures, errors, skipped = 0, 0, 0
    total = timedelta(0)
    for test in pkg.tests:
        total += test.duration
        testcases.append(_create_testcase(pkg, test))
        if test.result == FAIL:
            failures += 1
        elif test.result == SKIP:
            skipped += 1
        elif test.result == UNKNOWN:
            errors += 1
    if pkg.build_error is not None:
        testcases.append(_create_error_testcase(pkg.build_error,
                                                pkg.build_error.cause,
                                                "Build error"))
        errors += 1
    if pkg.run_error is not None:
        testcases.append(_create_error_testcase(pkg.run_error, "Failure",
                                                "Runtime error"))
        errors += 1

    attrs = [('name', pkg.name),
             ('tests', len(testcases)),
             ('failures', failures),
             ('errors', errors),
             ('id', id)]
    if hostname is not None and hostname != '':
        attrs.append(('hostname', hostname))
    if skipped > 0:
        attrs.append(('skipped', skipped))
    duration = pkg.duration if pkg.duration else total
    attrs.append(('time', format_duration(duration)))
    if pkg.timestamp is not None:
        attrs.append(('timestamp', format_timestamp(pkg.timestamp)))
    suite = _element('testsuite', attrs)

    properties = [(prop.name, prop.value) for prop in pkg.properties]
    if pkg.coverage > 0:
        properties.append(('coverage.statements.pct',
                           "{:.2f}".format(pkg.coverage)))
    if len(properties) > 0:
        props = ET.SubElement(suite, 'properties')
        for name, value in properties:
            props.append(_element('property', [('name', name),
                                               ('value', value)]))

    for tc in testcases:
        suite.append(tc)
    if len(pkg.output) > 0:
        suite.append(_element('system-out', [], format_output(pkg.output, 0)))
    return suite, (len(testcases), failures, errors, skipped)

def create_from_report(report, hostname=None):
    """Return the <testsuites> element for a Report.

    Args:
        report (Report): The report to convert.
        hostname (str, optional): Host name recorded in every testsuite.
    """
    suites = []
    tests, failures, errors, skipped = 0, 0, 0, 0
    for i, pkg in enumerate(report.packages):
        suite, counts = create_testsuite(pkg, i, hostname)
        suites.append(suite)
        tests += counts[0]
        failures += counts[1]
        errors += counts[2]
        skipped += counts[3]

    attrs = [(name, value) for name, value in [('tests', tests),
                                               ('errors', errors),
                                               ('failures', failures),
                                               ('skipped', skipped)]
             if value > 0]
    testsuites = _element('testsuites', attrs)
    for suite in suites:
        testsuites.append(suite)
    return testsuites

def write_xml(testsuites, stream, xml_header=True):
    """Write the <testsuites> element to a text stream, tab-indented."""
    ET.indent(testsuites, space='\t')
    if xml_header:
        stream.write(XML_HEADER + "\n")
    stream.write(ET.tostring(testsuites, encoding='unicode'))
    stream.write("\n")
