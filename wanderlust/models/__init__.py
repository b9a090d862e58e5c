# Models package init
"""
Importing this package registers every table on Base.metadata
(used by Alembic autogenerate and by database.create_tables).
"""

from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.models.user import User

__all__ = ["Listing", "Review", "User"]
