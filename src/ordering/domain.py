"""Ordering bounded context — Order Management.

Handles the order aggregate (items, totals, status lifecycle, payment
recording) and the read models built from its events.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")
