#!/usr/bin/env python

"""
    Core module for LMS: database, models and the lending services

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

from lms.core import db as database
from lms.core import models

Session = database.init()

__all__ = ["Session", "database", "models"]
