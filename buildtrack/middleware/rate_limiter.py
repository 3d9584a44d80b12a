"""
Rate limiting configuration.

The Limiter instance is created in ``buildtrack/__init__.py`` with no default
limits; this module applies limits per blueprint.

Usage:
    from buildtrack.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Blueprints that accept uploads or mutations from the dashboard and PWA
WRITE_BLUEPRINTS = (
    "projects",
    "work_items",
    "attachments",
    "floor_plans",
    "production",
)

READ_BLUEPRINTS = ("calendar", "exports")

READ_RATE_LIMIT = "300/minute"


def init_rate_limits(app, limiter):
    """Apply per-blueprint limits (per remote IP).

    Write blueprints get ``WRITE_RATE_LIMIT`` from config, read-only
    blueprints a more generous limit, health probes are exempt. Disabled
    when ``RATELIMIT_ENABLED`` is false (always in testing).
    """
    if not app.config.get("RATELIMIT_ENABLED", True) or app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled")
        return

    write_limit = app.config.get("WRITE_RATE_LIMIT", "120/minute")
    for bp_name in WRITE_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(write_limit)(bp)

    for bp_name in READ_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_RATE_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: write=%s read=%s", write_limit, READ_RATE_LIMIT)
