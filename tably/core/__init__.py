"""
    Core module for Tably: storage, queue lifecycle, expiry sweeps,
    analytics and admin sessions.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""
