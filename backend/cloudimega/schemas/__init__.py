from .token import Token, TokenPayload
from .user import User, UserCreate, UserInDB
from .file import SharedFile, SharedFolder
from .share import (
    Share, ShareCreate, ShareUpdate, ShareInfo, ShareAccess, ShareVerifyResult, SharedFolderContents
)
