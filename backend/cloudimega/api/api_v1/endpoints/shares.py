import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cloudimega import crud, models, schemas
from cloudimega.api import deps

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[schemas.Share])
def read_shares(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    base_url: str = Depends(deps.get_base_url),
    file_id: Optional[int] = Query(None, alias="fileId"),
    folder_id: Optional[int] = Query(None, alias="folderId"),
) -> Any:
    """
    List the caller's active shares, newest first.
    """
    shares = crud.share.get_multi_by_owner(
        db, owner_id=current_user.id, file_id=file_id, folder_id=folder_id
    )
    return [schemas.Share.from_record(s, base_url) for s in shares]

@router.get("/file/{file_id}", response_model=List[schemas.Share])
def read_file_shares(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    base_url: str = Depends(deps.get_base_url),
    file_id: int,
) -> Any:
    """
    List the caller's active shares of one file.
    """
    shares = crud.share.get_multi_by_owner(db, owner_id=current_user.id, file_id=file_id)
    return [schemas.Share.from_record(s, base_url) for s in shares]

@router.post("/", response_model=schemas.Share, status_code=201)
def create_share(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    base_url: str = Depends(deps.get_base_url),
    share_in: schemas.ShareCreate,
) -> Any:
    """
    Create a share link for a file or a folder the caller owns.
    """
    share = crud.share.create_with_owner(db=db, obj_in=share_in, owner_id=current_user.id)
    logger.info(
        "User %s shared %s %s as %s", current_user.id, share.target_type,
        share.file_id if share.file_id is not None else share.folder_id, share.id
    )
    return schemas.Share.from_record(share, base_url)

@router.put("/{share_id}", response_model=schemas.Share)
def update_share(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    base_url: str = Depends(deps.get_base_url),
    share_id: str,
    share_in: schemas.ShareUpdate,
) -> Any:
    """
    Change a share's policy. Fields left out of the body are untouched.
    """
    share = crud.share.update_policy(
        db, share_id=share_id, owner_id=current_user.id, obj_in=share_in
    )
    return schemas.Share.from_record(share, base_url)

@router.delete("/{share_id}", status_code=204)
def delete_share(
    *,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
    share_id: str,
) -> Response:
    """
    Revoke a share for good. Its token is never handed out again.
    """
    crud.share.revoke(db, share_id=share_id, owner_id=current_user.id)
    logger.info("User %s revoked share %s", current_user.id, share_id)
    return Response(status_code=204)
