#!/usr/bin/env python

"""
    LMS, a small Library Management System backend

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

__version__ = '0.1.0'
