#!/usr/bin/env python

"""
    Configurations for Tably

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
SCHEME = 'http'
HOST = os.environ.get('TABLY_HOST', 'localhost')
PORT = int(os.environ.get('TABLY_PORT', 8080))
WORKERS = int(os.environ.get('TABLY_WORKERS', 1))
DEBUG = bool(int(os.environ.get('TABLY_DEBUG', 0)))
LOG_LEVEL = os.environ.get('TABLY_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('TABLY_SSL_CRT')
SSL_KEY = os.environ.get('TABLY_SSL_KEY')
CORS_ORIGINS = [
    o.strip() for o in os.environ.get('TABLY_CORS_ORIGINS', '').split(',') if o.strip()
]

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
    SCHEME = 'https'

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'tably'),
}

# Database configuration
DB_URI = (
    "sqlite:///:memory:" if TESTING else
    os.environ.get('TABLY_DB_URI') or
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

# Admin dashboard credentials & cookie signing
SEED = os.environ.get('TABLY_SEED', 'tably-dev-seed')
ADMIN_USERNAME = os.environ.get('TABLY_ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('TABLY_ADMIN_PASSWORD', 'admin123')

# Queue rules
MAX_PARTY_SIZE = int(os.environ.get('TABLY_MAX_PARTY_SIZE', 15))
PHONE_DIGITS = int(os.environ.get('TABLY_PHONE_DIGITS', 10))

# Auto-expiry of called entries
CALL_TIMEOUT = int(os.environ.get('TABLY_CALL_TIMEOUT', 300))
SWEEP_INTERVAL = int(os.environ.get('TABLY_SWEEP_INTERVAL', 30))
SWEEPER_ENABLED = (
    not TESTING and os.environ.get('TABLY_SWEEPER', 'on').lower() not in ('off', '0', 'false')
)

__all__ = [
    'SCHEME', 'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'OPTIONS', 'CORS_ORIGINS',
    'DB_URI', 'DB_CONFIG', 'TESTING', 'SEED', 'ADMIN_USERNAME', 'ADMIN_PASSWORD',
    'MAX_PARTY_SIZE', 'PHONE_DIGITS', 'CALL_TIMEOUT', 'SWEEP_INTERVAL',
    'SWEEPER_ENABLED',
]
