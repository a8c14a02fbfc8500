#! /usr/bin/env python3
# Convert go test output to a JUnit XML report.
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import sys

# Requires Python 3.
assert sys.version_info[0] >= 3

from gojunit.command import main

if __name__=="__main__":
    sys.exit(main())
