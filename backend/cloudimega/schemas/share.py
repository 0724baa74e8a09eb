from typing import Annotated, List, Literal, Optional
from datetime import datetime, timezone
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .file import SharedFile, SharedFolder

Permission = Literal["view", "download", "edit"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _to_naive_utc(value: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class ShareBase(CamelModel):
    permission: Permission = "view"
    expires_at: Optional[UtcDatetime] = None
    max_downloads: Optional[int] = Field(None, ge=0)


class ShareCreate(ShareBase):
    file_id: Optional[int] = None
    folder_id: Optional[int] = None
    password: Optional[str] = None


class ShareUpdate(CamelModel):
    """
    Partial policy patch. Only fields the client actually sent are applied,
    so ``{"password": ""}`` clears the password while ``{}`` leaves it alone.
    """
    permission: Optional[Permission] = None
    password: Optional[str] = None
    expires_at: Optional[UtcDatetime] = None
    max_downloads: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


# Owner-facing view of a share record; the password hash never leaves the registry.
class Share(CamelModel):
    id: str
    token: str
    owner_id: int
    file_id: Optional[int] = None
    folder_id: Optional[int] = None
    permission: Permission
    has_password: bool
    expires_at: Optional[datetime] = None
    max_downloads: Optional[int] = None
    download_count: int
    is_active: bool
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    share_url: str

    @classmethod
    def from_record(cls, share, base_url: str) -> "Share":
        return cls(
            id=share.id,
            token=share.token,
            owner_id=share.owner_id,
            file_id=share.file_id,
            folder_id=share.folder_id,
            permission=share.permission,
            has_password=share.password_hash is not None,
            expires_at=share.expires_at,
            max_downloads=share.max_downloads,
            download_count=share.download_count,
            is_active=share.is_active,
            last_accessed_at=share.last_accessed_at,
            created_at=share.created_at,
            updated_at=share.updated_at,
            share_url=f"{base_url.rstrip('/')}/s/{share.token}",
        )


# Public info for share page (hide sensitive info)
class ShareInfo(CamelModel):
    type: Literal["file", "folder"]
    file_name: str
    file_size: int = 0
    mime_type: Optional[str] = None
    has_password: bool
    expires_at: Optional[datetime] = None
    is_expired: bool = False
    download_count: int = 0
    max_downloads: Optional[int] = None
    permission: Permission


class ShareAccess(CamelModel):
    password: Optional[str] = None


class ShareVerifyResult(CamelModel):
    valid: bool
    access_token: Optional[str] = None


class SharedFolderContents(CamelModel):
    folder: SharedFolder
    folders: List[SharedFolder]
    files: List[SharedFile]
