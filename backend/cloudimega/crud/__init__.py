from .crud_user import user
from .crud_file import file
from .crud_share import share
