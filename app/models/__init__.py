# SQLModel definitions, imported so Alembic sees the full metadata.
from .base import IntIdMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
