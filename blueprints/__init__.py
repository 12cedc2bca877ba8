"""
Blueprint registration for PathFinder.

All blueprints are registered without URL prefixes; each declares its own
/api/... paths.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.streams import bp as streams_bp
    from blueprints.combinations import bp as combinations_bp
    from blueprints.admin import bp as admin_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(streams_bp)
    app.register_blueprint(combinations_bp)
    app.register_blueprint(admin_bp)
