"""
sqlspine - MySQL adapter core for an ORM layer.

Compiles query filters to SQL, marshals values between model properties and
MySQL columns, and plans the DDL that keeps live tables in line with their
declared models.
"""

__version__ = "0.1.0"

from sqlspine.core import *  # noqa
