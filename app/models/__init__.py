"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from app.models.user import User  # noqa: F401
from app.models.task import Task  # noqa: F401
from app.models.comment import Comment  # noqa: F401
from app.models.time_log import TimeLog  # noqa: F401
from app.models.attachment import Attachment  # noqa: F401
