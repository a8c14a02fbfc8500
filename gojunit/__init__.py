"""gojunit: convert go test output into JUnit XML reports.

gojunit reads the transcript printed by 'go test -v' (or 'go test -json'),
reconstructs the packages, tests and benchmarks it describes, and writes
them out in the JUnit XML format understood by CI systems.

This module provides the parsers and the report data model.
"""

from .model import Report, Package, Test, Benchmark, Error, Property
from .parser import GoTestParser, GoTestJSONParser, parse_subtest_mode
from .builder import ReportBuilder
from .config import ReportOptions
from .utils import GojunitError, ReportConsistencyError
from .version import __version__
