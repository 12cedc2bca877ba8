"""
Shared Flask extensions.

The rate limiter lives here so blueprints can decorate routes without
importing the app factory.
"""

from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=["200 per hour"])
