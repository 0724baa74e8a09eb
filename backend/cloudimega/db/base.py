# Import all the models, so that Base has them before being
# imported by Alembic or by create_all
from cloudimega.db.base_class import Base  # noqa
from cloudimega.models.user import User  # noqa
from cloudimega.models.file import FileMeta  # noqa
from cloudimega.models.share import Share  # noqa
