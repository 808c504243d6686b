"""SQLAlchemy models package.

All ORM classes are imported here so mapper configuration and
`Base.metadata` do not depend on import order.
"""

from kanri.models import user  # noqa: F401
