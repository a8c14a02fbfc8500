import socket
from argparse import Namespace

import pytest

from gojunit.config import ReportOptions
from gojunit.utils import GojunitError

def write_config(path, text):
    path.write_text(text)
    return path

def test_defaults():
    opts = ReportOptions()
    assert opts.parser == 'gotest'
    assert opts.subtest_mode == 'default'
    assert opts.output_format == 'xml'
    assert opts.detect_build_output is True
    assert opts.set_exit_code is False
    assert opts.input_paths == []
    assert opts.output_path is None
    assert opts.hostname == socket.gethostname()
    assert opts.sources['parser'] == 'default'

def test_defaults_are_not_shared():
    first = ReportOptions()
    first.input_paths.append("a.txt")
    assert ReportOptions().input_paths == []

def test_source_priorities():
    assert ReportOptions.source_overrides('args', 'env')
    assert ReportOptions.source_overrides('env', 'env')
    assert not ReportOptions.source_overrides('global', 'local')
    assert not ReportOptions.source_overrides('bogus', 'default')

def test_higher_priority_wins():
    opts = ReportOptions()
    opts.set_option('package_name', 'from/args', 'args')
    opts.set_option('package_name', 'from/env', 'env')
    assert opts.package_name == 'from/args'
    assert opts.sources['package_name'] == 'args'

def test_boolean_values(capsys):
    opts = ReportOptions()
    opts.set_option('set_exit_code', 'yes', 'env')
    assert opts.set_exit_code is True
    opts.set_option('set_exit_code', '0', 'env')
    assert opts.set_exit_code is False
    opts.set_option('set_exit_code', 'maybe', 'env')
    assert opts.set_exit_code is False
    assert "unknown boolean option" in capsys.readouterr().err

def test_invalid_choice():
    opts = ReportOptions()
    with pytest.raises(GojunitError):
        opts.set_option('subtest_mode', 'sometimes', 'env')
    assert opts.subtest_mode == 'default'

def test_unknown_option(capsys):
    opts = ReportOptions()
    with pytest.raises(GojunitError):
        opts.set_option('no_such_option', 'x', 'args')
    opts.set_option('no_such_option', 'x', 'local')
    assert "unknown option 'no_such_option=x' from local" in \
        capsys.readouterr().err

def test_accumulate_from_string():
    opts = ReportOptions()
    opts.set_option('properties', 'a=1, b=2,', 'env')
    assert opts.properties == ['a=1', 'b=2']

def test_parse_environment():
    env = {'GOJUNIT_PARSER': 'gojson',
           'GOJUNIT_SUBTEST_MODE': 'exclude-parents',
           'GOJUNIT_DEBUG': 'true',
           'UNRELATED': 'x'}
    opts = ReportOptions().parse_environment(env)
    assert opts.parser == 'gojson'
    assert opts.subtest_mode == 'exclude-parents'
    assert opts.debug is True
    assert opts.sources['parser'] == 'env'

def test_parse_config(tmp_path, capsys):
    path = write_config(tmp_path / "config",
                        "[core]\n"
                        "package-name = core/name\n"
                        "go_version = 1.17\n"
                        "output_path = report.xml\n"
                        "[go-junit-report]\n"
                        "package-name = script/name\n"
                        "no-xml-header = yes\n"
                        "[other]\n"
                        "parser = gojson\n")
    opts = ReportOptions().parse_config(path)
    assert opts.package_name == 'script/name'
    assert opts.go_version == '1.17'
    assert opts.no_xml_header is True
    assert opts.parser == 'gotest'
    assert opts.output_path is None
    assert "non-config option 'output_path'" in capsys.readouterr().err

def test_parse_config_missing(tmp_path):
    with pytest.raises(GojunitError):
        ReportOptions().parse_config(tmp_path / "missing")

def test_load_order(tmp_path):
    global_path = write_config(tmp_path / "global",
                               "[core]\n"
                               "package-name = global/name\n"
                               "go-version = 1.16\n"
                               "timestamp = 2022-01-01T00:00:00Z\n")
    local_path = write_config(tmp_path / "local",
                              "[core]\n"
                              "go-version = 1.17\n"
                              "package-name = local/name\n")
    args = Namespace(package_name=None, go_version=None, hostname='ci',
                     input_paths=None, inputs=['x.txt'])
    env = {'GOJUNIT_CONFIG': str(local_path),
           'GOJUNIT_PACKAGE_NAME': 'env/name'}
    opts = ReportOptions().load(args, env, global_path)
    assert opts.package_name == 'env/name'
    assert opts.go_version == '1.17'
    assert opts.timestamp == '2022-01-01T00:00:00Z'
    assert opts.hostname == 'ci'
    assert opts.sources['go_version'] == 'local'
    assert opts.sources['timestamp'] == 'global'

def test_load_without_global_config(tmp_path):
    opts = ReportOptions().load(Namespace(), {}, tmp_path / "missing")
    assert opts.parser == 'gotest'

def test_parse_args_accumulates():
    opts = ReportOptions()
    opts.parse_args(Namespace(properties=['a=1']))
    opts.parse_args(Namespace(properties=['b=2']))
    assert opts.properties == ['a=1', 'b=2']

def test_get_properties():
    opts = ReportOptions()
    opts.set_option('properties', ['a=1', 'b=x=y', 'empty='], 'args')
    assert opts.get_properties() == [('a', '1'), ('b', 'x=y'), ('empty', '')]
    opts.set_option('properties', ['novalue'], 'args')
    with pytest.raises(GojunitError):
        opts.get_properties()

def test_get_list():
    opts = ReportOptions()
    assert opts.get_list('input_paths') == []
    assert opts.get_list('output_path', default=['x']) == ['x']
    opts.set_option('package_name', 'a, b', 'args')
    assert opts.get_list('package_name') == ['a', 'b']

def test_option_registry():
    assert ReportOptions.option_name('format', 'cmdline') == 'output_format'
    assert ReportOptions.option_name('p', 'cmdline_short') == 'properties'
    assert ReportOptions.option_name('GOJUNIT_TIMESTAMP', 'env') == 'timestamp'
    assert ReportOptions.option_name('nope', 'cmdline') is None
    assert ReportOptions.option_info('parser', 'choices') == \
        ['gotest', 'gojson']
    assert ReportOptions.option_info('input_paths', 'nonconfig')
    assert ReportOptions.option_info('nope', 'help_str') is None
    assert 'iocopy' in list(ReportOptions.options())
