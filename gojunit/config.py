# gojunit configuration
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import os
import socket
from pathlib import Path
from configparser import ConfigParser

from gojunit.utils import *

# ReportOptions fields that should not be overwritten by actual options:
_options_base_fields = {
    'script_name',
    'sources',
}

GLOBAL_CONFIG_PATH = Path.home() / ".config" / "gojunit" / "config"

class ReportOptions:
    """Collects options for a go-junit-report invocation.

    Each option has an internal name and possibly some external names
    used to specify that option in different configuration sources
    (command line arguments, config files and environment variables).
    The internal name of the option is the name of the ReportOptions
    instance variable storing the option's value.

    Attributes:
        script_name (str): Name of the command, also the name of the
            config file section read in addition to [core].
        sources (map): Identifies the configuration source of each option.
    """

    _options = []
    # Internal names of all defined options, in definition order.

    _option_names = {}
    # Maps (external_name, option_type) -> internal_name.
    # option_type is one of 'cmdline', 'cmdline_short', 'env', 'config'.

    _option_info = {}
    # Maps (internal_name, attr_or_flag) -> value
    # See docstring for option_info() for details.

    @classmethod
    def option_name(cls, external_name, option_type):
        """Returns the internal name of a specified option, or
        None if the external name does not reference an option.

        Args:
            external_name (str): External name of the option.
            option_type (str): One of 'cmdline', 'cmdline_short',
                'env', or 'config'.
        """
        if (external_name, option_type) not in cls._option_names:
            return None
        return cls._option_names[external_name, option_type]

    @classmethod
    def option_names(cls, option_type):
        """Iterate all external names of a specified option type.

        Yields:
            (external_name, internal_name)
        """
        for k, internal_name in cls._option_names.items():
            external_name, k_type = k
            if k_type != option_type: continue
            yield external_name, internal_name

    @classmethod
    def options(cls):
        """Iterate the internal names of all options in definition order."""
        return iter(cls._options)

    @classmethod
    def option_info(cls, internal_name, attr_or_flag_name):
        """Returns the specified attribute of a specified option.

        Permitted attributes:
        - default_value: default value of the option.
        - help_str: info about the option, used for --help.
        - help_cookie: placeholder for the option value, used for --help.
        - choices: permitted values of the option, or None.

        Permitted flags (value is boolean):
        - nonconfig: the option may not be specified in a config file.
        - boolean_flag: the option controls a boolean flag.
        - accumulate: multiple flags specifying the option will accumulate
          into a list.

        Args:
            internal_name (str): Internal name of the option.
            attr_or_flag_name (str): One of the attribute or flag
                names specified above.
        """
        if internal_name not in cls._options:
            return None
        return cls._option_info[internal_name, attr_or_flag_name]

    @classmethod
    def _add_option_name(cls, option_type, external_name, internal_name):
        if external_name is None: return
        cls._option_names[external_name, option_type] = internal_name

    @classmethod
    def add_option(cls, internal_name, cmdline=None, cmdline_short=None,
                   env=None, config=None, nonconfig=False, boolean=False,
                   accumulate=False, default=None, choices=None,
                   help_str=None, help_cookie=None):
        """Define an option.

        Args:
            internal_name (str): Internal name of the option.
            cmdline (str, optional): Long command-line flag for the option.
                If boolean, a negated '--no-<cmdline>' flag is also accepted.
            cmdline_short (str, optional): Short command-line flag.
            env (str, optional): Environment variable name for the option.
            config (str, optional): Configuration item name for the option.
                Within a config file, internal names can also be used directly.
            nonconfig (bool, optional): This option may not be set
                from a configuration file. Defaults to False.
            boolean (bool, optional): Option is a boolean flag.
            accumulate (bool, optional): Option collects a list of values.
            default (optional): Default value for the option.
            choices (list of str, optional): Permitted values.
            help_str (str, optional): A description of the option.
            help_cookie (str, optional): A 'placeholder' string for
                the option value to be used in the help message.
        """
        if internal_name in cls._options:
            warn_print("overriding definition for option '{}'" \
                    .format(internal_name))
        else:
            cls._options.append(internal_name)
        if boolean and default is None:
            default = False
        cls._option_info[internal_name, 'default_value'] = default
        cls._option_info[internal_name, 'help_str'] = help_str
        cls._option_info[internal_name, 'help_cookie'] = help_cookie
        cls._option_info[internal_name, 'choices'] = choices

        cls._add_option_name('cmdline', cmdline, internal_name)
        assert(cmdline_short is None or len(cmdline_short) == 1) # short option must be 1char
        cls._add_option_name('cmdline_short', cmdline_short, internal_name)
        cls._add_option_name('env', env, internal_name)
        cls._add_option_name('config', config, internal_name)

        cls._option_info[internal_name, 'nonconfig'] = nonconfig
        cls._option_info[internal_name, 'boolean_flag'] = boolean
        cls._option_info[internal_name, 'accumulate'] = accumulate

    def __init__(self, script_name='go-junit-report'):
        """Initialize a ReportOptions object with default values.

        Args:
            script_name (str, optional): Name of the command.
        """
        self.script_name = script_name

        # Set defaults:
        self.sources = {}
        for key in self._options:
            value = self.option_info(key, 'default_value')
            if isinstance(value, list):
                value = list(value)
            self.set_option(key, value, 'default')

        # Set additional computed defaults:
        self.set_option('hostname', socket.gethostname(), 'default')

    source_priorities = ['args', 'env', 'local', 'global', 'default']
    """Possible sources of options in order of decreasing priority.

    Here:
    - 'args' represents command line arguments
    - 'env' represents environment variables
    - 'local' represents a config file named with --config
    - 'global' represents the config file in the user's home directory
    """

    @classmethod
    def source_overrides(cls, source1, source2):
        """Return True if source1 takes priority over source2.

        If source1 is not present in source_priorities and source2 is present,
        the answer is assumed to be False.
        """
        if source1 in cls.source_priorities:
            source1_ix = cls.source_priorities.index(source1)
        else:
            source1_ix = len(cls.source_priorities)
        if source2 in cls.source_priorities:
            source2_ix = cls.source_priorities.index(source2)
        else:
            source2_ix = len(cls.source_priorities)
        return source1_ix <= source2_ix

    def set_option(self, key, value, source):
        """Set an option if it wasn't set from any higher-priority source.

        Args:
            key (str): Internal name of the option.
            value: New value for the option. Strings are converted
                for boolean and list options.
            source (str): The configuration source of the new value.
                Should be an element of ReportOptions.source_priorities.

        Raises:
            GojunitError: Unknown option, or a value not among its choices.
        """
        if key in _options_base_fields:
            warn_print("attempt to set reserved ReportOptions field '{}'" \
                    .format(key))
            return
        if key not in self._options:
            if source == 'args':
                raise GojunitError("unknown option '{}={}'".format(key, value))
            warn_print("unknown option '{}={}' from {}, skipping" \
                .format(key, value, source))
            return
        if key in self.__dict__ and key in self.sources \
           and not ReportOptions.source_overrides(source, self.sources[key]):
            return # XXX A value exists with higher priority.
        if self.option_info(key, 'boolean_flag'):
            if value in {'True','true','yes','1'}:
                value = True
            elif value in {'False','false','no','0'}:
                value = False
            elif not isinstance(value, bool):
                warn_print("unknown boolean option '{}={}'".format(key, value))
                return # keep the previous value
        elif self.option_info(key, 'accumulate') and isinstance(value, str):
            value = self._split_list(value)
        choices = self.option_info(key, 'choices')
        if choices is not None and value not in choices:
            raise GojunitError("invalid value '{}' for option '{}', " \
                "expected one of {}".format(value, key, ", ".join(choices)))
        self.__dict__[key] = value
        self.sources[key] = source

    def add_config(self, section, config, is_global=False):
        """Add configuration options from a config section.

        Args:
            section (str): Name of the config section to add.
            config (ConfigParser): ConfigParser object representing
               the config file to add options from.
            is_global (bool): If True, the config file is the per-user
                config file. Prioritize the options lower than options
                from a config file named on the command line.
        """
        if section not in config:
            return
        source = 'global' if is_global else 'local'
        for key, value in config[section].items():
            internal_name = self.option_name(key, 'config')
            if internal_name is None:
                internal_name = key.replace('-','_')
            if self.option_info(internal_name, 'nonconfig'):
                warn_print("attempt to set non-config option '{}' from config" \
                           .format(key))
                continue # don't set anything
            self.set_option(internal_name, value, source)

    def parse_config(self, config_path, global_config=False):
        """Parse a config file in INI format.

        Options are read from the sections [core] and [<script_name>].

        Args:
            config_path (Path or str): Path to config file.
            global_config (bool, optional): Config file is global
                (and should have lower priority than local config files).

        Returns:
            self

        Raises:
            GojunitError: The config file does not exist.
        """
        config = ConfigParser()
        if Path(config_path).is_file():
            config.read(str(config_path))
        else:
            raise GojunitError("configuration file {} not found" \
                .format(config_path))

        # section [core], [<script_name>]
        self.add_config('core', config, global_config)
        if self.script_name is not None:
            self.add_config(self.script_name, config, global_config)
        return self

    def parse_environment(self, env):
        """Parse a set of environment variables.

        Args:
            env (map or environ): Environment variables.

        Returns:
            self
        """
        for external_name, internal_name in self.option_names('env'):
            if external_name in env:
                self.set_option(internal_name, env[external_name], 'env')
        return self

    def parse_args(self, args):
        """Take options from a parsed argparse.Namespace.

        Attributes that are None (not given on the command line) are skipped.
        Accumulating options are extended rather than replaced.

        Returns:
            self
        """
        for key, value in vars(args).items():
            if value is None or key not in self._options:
                continue
            if self.option_info(key, 'accumulate') \
               and self.sources.get(key) == 'args':
                value = self.__dict__[key] + list(value)
            self.set_option(key, value, 'args')
        return self

    def load(self, args=None, env=None, global_config_path=None):
        """Collect options from all configuration sources.

        Args:
            args (argparse.Namespace, optional): Command line arguments.
            env (map, optional): Environment; defaults to os.environ.
            global_config_path (Path or str, optional): Per-user config
                file, read only if it exists. Defaults to GLOBAL_CONFIG_PATH.

        Returns:
            self
        """
        if args is not None:
            self.parse_args(args)
        self.parse_environment(env if env is not None else os.environ)
        if global_config_path is None:
            global_config_path = GLOBAL_CONFIG_PATH
        if Path(global_config_path).is_file():
            self.parse_config(global_config_path, global_config=True)
        if self.config_path is not None:
            self.parse_config(self.config_path)
        return self

    def _split_list(self, value):
        # TODO: Handle quoted/escaped commas.
        items = []
        for val in value.split(","):
            if val == "": continue
            items.append(val.strip())
        return items

    def get_list(self, key, default=None):
        """Parse an option that was specified as a comma-separated list."""
        if key not in self.__dict__ or self.__dict__[key] is None:
            return default
        if isinstance(self.__dict__[key], list): # XXX already parsed
            return self.__dict__[key]
        return self._split_list(self.__dict__[key])

    def get_properties(self):
        """Return the (name, value) pairs of the properties option.

        Raises:
            GojunitError: A property is not of the form 'key=value'.
        """
        properties = []
        for item in self.get_list('properties', default=[]):
            name, sep, value = item.partition('=')
            if sep == '' or name == '':
                raise GojunitError("invalid property '{}', " \
                    "expected key=value".format(item))
            properties.append((name, value))
        return properties

    def show_results(self):
        """For debugging: print the contents of this ReportOptions object."""
        dbug_print("OBTAINED OPTIONS")
        for key, val in self.__dict__.items():
            if key in _options_base_fields:
                continue
            dbug_print("{} = {} ({})".format(key, val, self.sources[key]))

# Options for input and parsing:
ReportOptions.add_option('input_paths', cmdline='in', nonconfig=True,
    accumulate=True, default=[], help_cookie='<file>',
    help_str="Read go test output from file (repeatable); default stdin.")
ReportOptions.add_option('parser', cmdline='parser', env='GOJUNIT_PARSER',
    default='gotest', choices=['gotest', 'gojson'], help_cookie='<parser>',
    help_str="Input format: 'gotest' for go test -v output, " \
        "'gojson' for go test -json output.")
ReportOptions.add_option('package_name', cmdline='package-name',
    env='GOJUNIT_PACKAGE_NAME', default='', help_cookie='<name>',
    help_str="Package name to use if none is found in the output.")
ReportOptions.add_option('subtest_mode', cmdline='subtest-mode',
    env='GOJUNIT_SUBTEST_MODE', default='default',
    choices=['default', 'ignore-parent-results', 'exclude-parents'],
    help_cookie='<mode>',
    help_str="How tests with subtests are reported.")
ReportOptions.add_option('detect_build_output', cmdline='detect-build-output',
    boolean=True, default=True,
    help_str="Treat '# package' lines as build failures.")

# Options for the report:
ReportOptions.add_option('go_version', cmdline='go-version',
    env='GOJUNIT_GO_VERSION', default=None, help_cookie='<version>',
    help_str="Go version, recorded as property go.version.")
ReportOptions.add_option('properties', cmdline_short='p', accumulate=True,
    default=[], help_cookie='<key=value>',
    help_str="Add a property to every testsuite (repeatable).")
ReportOptions.add_option('hostname', cmdline='hostname', default=None,
    help_cookie='<name>',
    help_str="Host name recorded in the report; default local host name.")
ReportOptions.add_option('timestamp', cmdline='timestamp',
    env='GOJUNIT_TIMESTAMP', default=None, help_cookie='<time>',
    help_str="Timestamp of the report; default the current time.")

# Options for output:
ReportOptions.add_option('output_path', cmdline='out', nonconfig=True,
    default=None, help_cookie='<file>',
    help_str="Write the report to file; default stdout.")
ReportOptions.add_option('output_format', cmdline='format', default='xml',
    choices=['xml', 'json'], help_cookie='<format>',
    help_str="Report format: 'xml' for JUnit XML, 'json' for the report " \
        "data model.")
ReportOptions.add_option('no_xml_header', cmdline='no-xml-header',
    boolean=True, help_str="Do not write the XML header.")
ReportOptions.add_option('set_exit_code', cmdline='set-exit-code',
    boolean=True, help_str="Exit with status 1 if any test failed.")
ReportOptions.add_option('iocopy', cmdline='iocopy', boolean=True,
    help_str="Copy input to stdout; requires --out.")
ReportOptions.add_option('print_events', cmdline='print-events',
    boolean=True, help_str="Print parser events to stderr.")
ReportOptions.add_option('debug', cmdline='debug', env='GOJUNIT_DEBUG',
    boolean=True, help_str="Print debugging messages to stderr.")
ReportOptions.add_option('config_path', cmdline='config',
    env='GOJUNIT_CONFIG', nonconfig=True, default=None, help_cookie='<file>',
    help_str="Path to an additional config file.")
