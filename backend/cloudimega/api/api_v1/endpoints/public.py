"""
Anonymous access to shared files and folders.

Every request walks the same gate: resolve the token, refuse inert shares
(revoked, expired, quota exhausted), then check the password for endpoints
that expose content. Only after all checks pass is a download slot claimed
and the first byte sent.
"""
import logging
from typing import Any, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from cloudimega import crud, models, schemas
from cloudimega.api import deps
from cloudimega.core import security
from cloudimega.core.errors import Gone, InvalidArgument, NotFound, Unauthorized
from cloudimega.storage.blob_store import BlobStore, parse_range_header
from cloudimega.utils.share_utils import GONE_MESSAGES, unusable_reason

logger = logging.getLogger(__name__)

router = APIRouter()


class ShareCredentials:
    """Password or verification token, from headers first, then the query string."""

    def __init__(
        self,
        password: Optional[str] = Query(None),
        access_token: Optional[str] = Query(None),
        x_share_password: Optional[str] = Header(None),
        x_share_access_token: Optional[str] = Header(None),
    ):
        self.password = x_share_password if x_share_password is not None else password
        self.access_token = x_share_access_token or access_token


def _verify_share_access(db: Session, token: str) -> models.Share:
    """Resolve a token and refuse shares that currently grant nothing."""
    share = crud.share.resolve_for_public_access(db, token=token)
    reason = unusable_reason(share)
    if reason:
        logger.info("Refused share %s: %s", share.id, reason)
        raise Gone(GONE_MESSAGES[reason], reason=reason)
    return share


def _check_password(db: Session, share: models.Share, creds: ShareCredentials) -> None:
    if share.password_hash is None:
        return
    if creds.access_token and security.verify_share_access_token(
        creds.access_token, share.id, share.password_hash
    ):
        return
    if not creds.password and not creds.access_token:
        raise Unauthorized("Password required", reason="password_required")
    if not crud.share.verify_password(db, share=share, password=creds.password):
        logger.info("Wrong password for share %s", share.id)
        raise Unauthorized("Invalid password", reason="invalid_password")


def _get_target(db: Session, share: models.Share):
    target_id = share.file_id if share.file_id is not None else share.folder_id
    target = crud.file.get_active(db, id=target_id)
    if not target or target.user_id != share.owner_id:
        raise NotFound("Shared file/folder deleted")
    return target


def _serve_file(
    db: Session,
    share: models.Share,
    file_meta: models.FileMeta,
    request: Request,
    store: BlobStore,
) -> StreamingResponse:
    if not store.exists(file_meta.user_id, file_meta.storage_key):
        logger.error("Blob missing for file %s of share %s", file_meta.id, share.id)
        raise NotFound("File not found")

    file_size = store.size(file_meta.user_id, file_meta.storage_key)
    byte_range = parse_range_header(request.headers.get("range"), file_size)

    if not crud.share.record_download(db, share_id=share.id):
        # Another request took the last slot, or the owner changed or revoked the share meanwhile
        share_id, token = share.id, share.token
        db.expire(share)
        current = crud.share.get_by_token(db, token=token)
        if current is None:
            logger.info("Share %s revoked during download", share_id)
            raise NotFound()
        reason = unusable_reason(current) or "quota_exhausted"
        logger.info("Refused share %s at download: %s", share_id, reason)
        raise Gone(GONE_MESSAGES[reason], reason=reason)

    logger.info("Share %s served file %s", share.id, file_meta.id)

    # URL encode the filename to handle non-ASCII characters
    encoded_filename = quote(file_meta.file_name)
    disposition = "inline" if share.permission == "view" else "attachment"
    headers = {
        "Content-Disposition": f"{disposition}; filename*=UTF-8''{encoded_filename}",
        "Accept-Ranges": "bytes",
    }
    media_type = file_meta.mime_type or "application/octet-stream"

    if byte_range is None:
        headers["Content-Length"] = str(file_size)
        return StreamingResponse(
            store.iter_range(file_meta.user_id, file_meta.storage_key, 0, file_size - 1),
            media_type=media_type,
            headers=headers,
        )

    from_bytes, until_bytes = byte_range
    headers["Content-Range"] = f"bytes {from_bytes}-{until_bytes}/{file_size}"
    headers["Content-Length"] = str(until_bytes - from_bytes + 1)
    return StreamingResponse(
        store.iter_range(file_meta.user_id, file_meta.storage_key, from_bytes, until_bytes),
        status_code=206,
        media_type=media_type,
        headers=headers,
    )


@router.get("/{token}", response_model=schemas.ShareInfo)
def get_share_info(
    *,
    db: Session = Depends(deps.get_db),
    token: str,
) -> Any:
    """
    Get public share info. No password needed, so the client can decide
    whether to prompt for one.
    """
    share = _verify_share_access(db, token)
    target = _get_target(db, share)

    return schemas.ShareInfo(
        type=share.target_type,
        file_name=target.file_name,
        file_size=0 if target.is_folder else (target.file_size or 0),
        mime_type=None if target.is_folder else target.mime_type,
        has_password=share.password_hash is not None,
        expires_at=share.expires_at,
        is_expired=False,
        download_count=share.download_count,
        max_downloads=share.max_downloads,
        permission=share.permission,
    )


@router.post("/{token}/verify", response_model=schemas.ShareVerifyResult)
def verify_share_password(
    *,
    db: Session = Depends(deps.get_db),
    token: str,
    access_in: Optional[schemas.ShareAccess] = None,
) -> Any:
    """
    Check a share password. On success returns a short-lived access token
    the client can send instead of the password.
    """
    share = _verify_share_access(db, token)
    password = access_in.password if access_in else None

    valid = crud.share.verify_password(db, share=share, password=password)
    if not valid:
        logger.info("Wrong password for share %s", share.id)
        return schemas.ShareVerifyResult(valid=False, access_token=None)
    return schemas.ShareVerifyResult(
        valid=True, access_token=security.create_share_access_token(share.id, share.password_hash)
    )


@router.get("/{token}/download")
def download_shared_file(
    *,
    db: Session = Depends(deps.get_db),
    store: BlobStore = Depends(deps.get_blob_store),
    token: str,
    request: Request,
    creds: ShareCredentials = Depends(),
) -> Any:
    """
    Download the shared file. Counts against the download limit.
    """
    share = _verify_share_access(db, token)
    if share.file_id is None:
        raise InvalidArgument("Shared item is a folder, download its files individually")
    _check_password(db, share, creds)

    file_meta = _get_target(db, share)
    return _serve_file(db, share, file_meta, request, store)


@router.get("/{token}/contents", response_model=schemas.SharedFolderContents)
def get_shared_folder_contents(
    *,
    db: Session = Depends(deps.get_db),
    token: str,
    creds: ShareCredentials = Depends(),
) -> Any:
    """
    List the immediate children of a shared folder. Never counts as a download.
    """
    share = _verify_share_access(db, token)
    if share.folder_id is None:
        raise InvalidArgument("Shared item is not a folder")
    _check_password(db, share, creds)

    folder = _get_target(db, share)
    crud.share.touch(db, share_id=share.id)

    folders, files = crud.file.get_children(db, user_id=share.owner_id, parent_id=folder.id)
    return schemas.SharedFolderContents(
        folder=schemas.SharedFolder.model_validate(folder),
        folders=[schemas.SharedFolder.model_validate(f) for f in folders],
        files=[schemas.SharedFile.model_validate(f) for f in files],
    )


@router.get("/{token}/files/{file_id}/download")
def download_shared_child_file(
    *,
    db: Session = Depends(deps.get_db),
    store: BlobStore = Depends(deps.get_blob_store),
    token: str,
    file_id: int,
    request: Request,
    creds: ShareCredentials = Depends(),
) -> Any:
    """
    Download one file listed in a shared folder. Counts against the download limit.
    """
    share = _verify_share_access(db, token)
    if share.folder_id is None:
        raise InvalidArgument("Shared item is not a folder")
    _check_password(db, share, creds)

    folder = _get_target(db, share)
    file_meta = crud.file.get_child_file(
        db, user_id=share.owner_id, parent_id=folder.id, file_id=file_id
    )
    if not file_meta:
        raise NotFound("File not found")
    return _serve_file(db, share, file_meta, request, store)
