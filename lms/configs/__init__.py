#!/usr/bin/env python

"""
    Configurations for LMS

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
HOST = os.environ.get('LMS_HOST', 'localhost')
PORT = int(os.environ.get('LMS_PORT', 8080))
WORKERS = int(os.environ.get('LMS_WORKERS', 1))
DEBUG = bool(int(os.environ.get('LMS_DEBUG', 0)))
LOG_LEVEL = os.environ.get('LMS_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('LMS_SSL_CRT')
SSL_KEY = os.environ.get('LMS_SSL_KEY')
CORS_ORIGINS = [
    origin.strip() for origin in
    os.environ.get('LMS_CORS_ORIGINS', 'http://localhost:3000').split(',')
    if origin.strip()
]

# Lending policy
LOAN_PERIOD_DAYS = int(os.environ.get('LMS_LOAN_PERIOD_DAYS', 14))
DEFAULT_LIMIT = int(os.environ.get('LMS_DEFAULT_LIMIT', 50))

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}
if SSL_CRT and SSL_KEY:
    OPTIONS['ssl_keyfile'] = SSL_KEY
    OPTIONS['ssl_certfile'] = SSL_CRT

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'lms'),
}

# Database configuration
DB_URI = os.environ.get('LMS_DB_URI') or (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

__all__ = [
    'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'OPTIONS', 'CORS_ORIGINS',
    'DB_URI', 'DB_CONFIG', 'TESTING', 'LOAN_PERIOD_DAYS', 'DEFAULT_LIMIT'
]
