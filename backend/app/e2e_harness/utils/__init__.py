"""
Utils Module

Retry helper, step logger and origin preflight.
"""

from .retry import with_retry
from .test_logger import TestLogger, create_test_logger
from .preflight import check_origin, wait_for_origin

__all__ = [
    'with_retry',
    'TestLogger',
    'create_test_logger',
    'check_origin',
    'wait_for_origin'
]
