import io
from datetime import timedelta, datetime, timezone

import pytest

from gojunit.event import *
from gojunit.parser import GoTestParser, GoTestJSONParser, parse_subtest_mode
from gojunit.reader import MAX_LINE_SIZE, MAX_SCAN_TOKEN_SIZE
from gojunit.utils import GojunitError
from gojunit import model

TIMESTAMP = datetime(2022, 1, 1, tzinfo=timezone.utc)

def timestamp_func():
    return TIMESTAMP

def seconds(s):
    return timedelta(seconds=s)

parse_line_cases = [
    ("=== RUN TestOne", [RunTest("TestOne")]),
    ("=== RUN   TestTwo/Subtest", [RunTest("TestTwo/Subtest")]),
    ("=== PAUSE TestOne", [PauseTest("TestOne")]),
    ("=== CONT  TestOne", [ContTest("TestOne")]),
    ("--- PASS: TestOne (12.34 seconds)",
     [EndTest("TestOne", "PASS", seconds(12.34), 0)]),
    ("    --- SKIP: TestOne/Subtest (0.00s)",
     [EndTest("TestOne/Subtest", "SKIP", seconds(0.00), 1)]),
    ("        --- FAIL: TestOne/Subtest/#01 (0.35s)",
     [EndTest("TestOne/Subtest/#01", "FAIL", seconds(0.35), 2)]),
    ("some text--- PASS: TestTwo (0.06 seconds)",
     [Output("some text"), EndTest("TestTwo", "PASS", seconds(0.06), 0)]),
    ("PASS", [Status("PASS")]),
    ("FAIL", [Status("FAIL")]),
    ("SKIP", [Status("SKIP")]),
    ("ok      package/name/ok 0.100s",
     [Summary("package/name/ok", "ok", seconds(0.100))]),
    ("FAIL    package/name/failing [build failed]",
     [Summary("package/name/failing", "FAIL", annotation="[build failed]")]),
    ("FAIL    package/other/failing [setup failed]",
     [Summary("package/other/failing", "FAIL", annotation="[setup failed]")]),
    ("ok package/other     (cached)",
     [Summary("package/other", "ok", annotation="(cached)")]),
    ("ok  \tpackage/name 0.400s  coverage: 10.0% of statements",
     [Summary("package/name", "ok", seconds(0.400), coverage_pct=10.0)]),
    ("ok  \tpackage/name 4.200s  coverage: 99.8% of statements in fmt, encoding/xml",
     [Summary("package/name", "ok", seconds(4.200), coverage_pct=99.8,
              coverage_pkgs=["fmt", "encoding/xml"])]),
    ("?   \tpackage/name\t[no test files]",
     [Summary("package/name", "?", annotation="[no test files]")]),
    ("ok  \tpackage/name\t0.001s [no tests to run]",
     [Summary("package/name", "ok", seconds(0.001),
              annotation="[no tests to run]")]),
    ("ok  \tpackage/name\t(cached) [no tests to run]",
     [Summary("package/name", "ok",
              annotation="(cached) [no tests to run]")]),
    ("coverage: 10% of statements", [Coverage(10.0)]),
    ("coverage: 10% of statements in fmt, encoding/xml",
     [Coverage(10.0, ["fmt", "encoding/xml"])]),
    ("coverage: 13.37% of statements", [Coverage(13.37)]),
    ("coverage: 99.8% of statements in fmt, encoding/xml",
     [Coverage(99.8, ["fmt", "encoding/xml"])]),
    ("BenchmarkOK", [RunBenchmark("BenchmarkOK")]),
    ("BenchmarkOne-8                     2000000\t       604 ns/op",
     [BenchmarkResult("BenchmarkOne", iterations=2000000, ns_per_op=604.0)]),
    ("BenchmarkTwo-16 30000\t52568 ns/op\t24879 B/op\t494 allocs/op",
     [BenchmarkResult("BenchmarkTwo", iterations=30000, ns_per_op=52568.0,
                      bytes_per_op=24879, allocs_per_op=494)]),
    ("BenchmarkThree      2000000000\t         0.26 ns/op",
     [BenchmarkResult("BenchmarkThree", iterations=2000000000,
                      ns_per_op=0.26)]),
    ("BenchmarkFour-8         \t   10000\t    104427 ns/op\t  95.76 MB/s\t   40629 B/op\t       5 allocs/op",
     [BenchmarkResult("BenchmarkFour", iterations=10000, ns_per_op=104427.0,
                      mb_per_sec=95.76, bytes_per_op=40629,
                      allocs_per_op=5)]),
    ("--- BENCH: BenchmarkOK-8", [EndBenchmark("BenchmarkOK", "BENCH")]),
    ("--- FAIL: BenchmarkError", [EndBenchmark("BenchmarkError", "FAIL")]),
    ("--- SKIP: BenchmarkSkip", [EndBenchmark("BenchmarkSkip", "SKIP")]),
    ("# package/name/failing1", [BuildOutput("package/name/failing1")]),
    ("# package/name/failing2 [package/name/failing2.test]",
     [BuildOutput("package/name/failing2")]),
    ("single line stdout", [Output("single line stdout")]),
    ("# some more output", [Output("# some more output")]),
    ("\tfile_test.go:11: Error message",
     [Output("\tfile_test.go:11: Error message")]),
    ("\tfile_test.go:12: Longer", [Output("\tfile_test.go:12: Longer")]),
    ("\t\terror", [Output("\t\terror")]),
    ("\t\tmessage.", [Output("\t\tmessage.")]),
]

@pytest.mark.parametrize('line, want', parse_line_cases,
                         ids=[case[0][:40] for case in parse_line_cases])
def test_parse_line(line, want):
    assert GoTestParser().parse_line(line) == want

def test_parse_line_is_repeatable():
    parser = GoTestParser()
    for line, _want in parse_line_cases:
        assert parser.parse_line(line) == parser.parse_line(line)

def test_parse_line_without_build_output_detection():
    parser = GoTestParser(detect_build_output=False)
    assert parser.parse_line("# package/name/failing1") == \
        [Output("# package/name/failing1")]

def test_event_types():
    assert len(EVENT_TYPES) == len(set(EVENT_TYPES)) == 12
    assert RunTest("TestOne").type == 'run_test'
    assert RunTest("TestOne")['type'] == 'run_test'

@pytest.mark.parametrize('text, want', [
    ('', 'default'),
    ('default', 'default'),
    ('ignore-parent-results', 'ignore-parent-results'),
    ('exclude-parents', 'exclude-parents'),
])
def test_parse_subtest_mode(text, want):
    assert parse_subtest_mode(text) == want

def test_parse_subtest_mode_invalid():
    with pytest.raises(GojunitError):
        parse_subtest_mode('exclude-children')
    with pytest.raises(GojunitError):
        GoTestParser(subtest_mode='bogus')

@pytest.mark.parametrize('size', [
    128,
    4095,
    4096,
    4096 * 2,
    10 * 1024,
    MAX_SCAN_TOKEN_SIZE,
    MAX_SCAN_TOKEN_SIZE + 1,
    MAX_LINE_SIZE - 1,
    MAX_LINE_SIZE,
    MAX_LINE_SIZE + 1,
    MAX_LINE_SIZE + 128,
])
def test_parse_large_line(size):
    line1 = "\x00" * size
    line2 = "other line"
    data = "=== RUN TestOne\n--- PASS: TestOne (0.00s)\n" + line1 + "\n" + line2
    report = GoTestParser().parse(io.BytesIO(data.encode('utf-8')))
    assert len(report.packages) == 1
    output = report.packages[0].output
    assert len(output) == 2
    assert output[0] == line1[:MAX_LINE_SIZE]
    assert output[1] == line2

def test_large_line_is_not_classified():
    line = "=== RUN " + "x" * MAX_SCAN_TOKEN_SIZE
    parser = GoTestParser()
    parser.parse(io.StringIO(line + "\n"))
    assert parser.events() == [Output(line)]

def test_parse_scenario_pass():
    data = ("=== RUN TestOne\n"
            "--- PASS: TestOne (0.06s)\n"
            "PASS\n"
            "ok  \tpackage/name 0.160s\n")
    report = GoTestParser(timestamp_func=timestamp_func).parse(io.StringIO(data))
    assert len(report.packages) == 1
    pkg = report.packages[0]
    assert pkg.name == "package/name"
    assert pkg.duration == timedelta(milliseconds=160)
    assert pkg.timestamp == TIMESTAMP
    assert len(pkg.tests) == 1
    assert pkg.tests[0].name == "TestOne"
    assert pkg.tests[0].result == model.PASS
    assert pkg.tests[0].duration == timedelta(milliseconds=60)

def test_parse_scenario_exclude_parents():
    data = ("=== RUN TestParent\n"
            "parent output\n"
            "=== RUN TestParent/Child\n"
            "child output\n"
            "    --- FAIL: TestParent/Child (0.01s)\n"
            "--- PASS: TestParent (0.02s)\n"
            "ok  \tpackage/name 0.100s\n")
    parser = GoTestParser(subtest_mode='exclude-parents')
    pkg = parser.parse(io.StringIO(data)).packages[0]
    assert [(t.name, t.result) for t in pkg.tests] == \
        [("TestParent/Child", model.FAIL)]
    assert pkg.tests[0].output == ["child output"]
    assert pkg.tests[0].indent == 1
    assert pkg.output == ["parent output"]

def test_parse_scenario_build_failure():
    data = ("# package/x\n"
            "some compiler error\n"
            "FAIL\tpackage/x [build failed]\n")
    report = GoTestParser().parse(io.StringIO(data))
    assert len(report.packages) == 1
    pkg = report.packages[0]
    assert pkg.name == "package/x"
    assert pkg.build_error.cause == "[build failed]"
    assert pkg.build_error.output == ["some compiler error"]
    assert pkg.tests == []

def test_parse_without_summary():
    data = ("=== RUN TestOne\n"
            "--- PASS: TestOne (0.06s)\n")
    report = GoTestParser(package_name="default/pkg").parse(io.StringIO(data))
    assert len(report.packages) == 1
    assert report.packages[0].name == "default/pkg"
    assert [t.name for t in report.packages[0].tests] == ["TestOne"]

def test_parse_summary_coverage():
    data = ("=== RUN TestOne\n"
            "--- PASS: TestOne (0.06s)\n"
            "PASS\n"
            "ok  \tpackage/name 0.400s  coverage: 10.0% of statements\n")
    pkg = GoTestParser().parse(io.StringIO(data)).packages[0]
    assert pkg.coverage == 10.0

def test_events_returns_copy():
    parser = GoTestParser()
    parser.parse(io.StringIO("=== RUN TestOne\n--- PASS: TestOne (0.00s)\n"))
    events = parser.events()
    assert [ev.type for ev in events] == ['run_test', 'end_test']
    events.clear()
    assert len(parser.events()) == 2

def test_parse_json():
    data = (
        '{"Action":"run","Package":"package/name","Test":"TestOne"}\n'
        '{"Action":"output","Package":"package/name","Test":"TestOne","Output":"=== RUN   TestOne\\n"}\n'
        '{"Action":"output","Package":"package/name","Test":"TestOne","Output":"    one_test.go:10: hello\\n"}\n'
        '{"Action":"output","Package":"package/name","Test":"TestOne","Output":"--- FAIL: TestOne (0.01s)\\n"}\n'
        '{"Action":"fail","Package":"package/name","Test":"TestOne","Elapsed":0.01}\n'
        '{"Action":"output","Package":"package/name","Output":"FAIL\\n"}\n'
        '{"Action":"output","Package":"package/name","Output":"FAIL\\tpackage/name\\t0.020s\\n"}\n'
        '{"Action":"fail","Package":"package/name","Elapsed":0.02}\n'
    )
    report = GoTestJSONParser().parse(io.StringIO(data))
    assert len(report.packages) == 1
    pkg = report.packages[0]
    assert pkg.name == "package/name"
    assert pkg.duration == timedelta(milliseconds=20)
    assert len(pkg.tests) == 1
    assert pkg.tests[0].result == model.FAIL
    assert pkg.tests[0].output == ["    one_test.go:10: hello"]
    assert pkg.run_error is None

def test_parse_continues_ids():
    parser = GoTestParser(timestamp_func=timestamp_func)
    first = parser.parse(io.StringIO("=== RUN   TestOne\n"
                                     "--- PASS: TestOne (0.01s)\n"
                                     "ok  \tpkg/a\t0.010s\n"))
    assert parser.next_id == 2
    second = parser.parse(io.StringIO("=== RUN   TestOne\n"
                                      "--- PASS: TestOne (0.01s)\n"
                                      "ok  \tpkg/b\t0.010s\n"),
                          first_id=parser.next_id)
    assert first.packages[0].tests[0].id == 1
    assert second.packages[0].tests[0].id == 2
    assert parser.next_id == 3
    assert parser.parse(io.StringIO("")).packages == []
    assert parser.next_id == 1

def test_parse_json_with_non_string_output(capsys):
    data = (
        '{"Action":"output","Package":"pkg","Output":"=== RUN   TestOne\\n"}\n'
        '{"Action":"output","Package":"pkg","Output":5}\n'
        '{"Action":"output","Package":"pkg","Output":"--- PASS: TestOne (0.01s)\\n"}\n'
        '{"Action":"output","Package":"pkg","Output":"ok  \\tpkg\\t0.010s\\n"}\n'
    )
    report = GoTestJSONParser().parse(io.BytesIO(data.encode('utf-8')))
    test = report.packages[0].tests[0]
    assert test.result == model.PASS
    assert test.output == ['{"Action":"output","Package":"pkg","Output":5}']
    assert "non-string Output" in capsys.readouterr().err
