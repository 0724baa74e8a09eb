import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloudimega.core.config import settings
from cloudimega.core.errors import Internal, InvalidArgument, NotFound
from cloudimega.core.security import get_password_hash, verify_password
from cloudimega.crud.base import CRUDBase
from cloudimega.crud.crud_file import file as crud_file
from cloudimega.models.share import Share
from cloudimega.schemas.share import ShareCreate, ShareUpdate
from cloudimega.utils.share_utils import generate_share_token

logger = logging.getLogger(__name__)


class CRUDShare(CRUDBase[Share, ShareCreate, ShareUpdate]):
    def create_with_owner(
        self, db: Session, *, obj_in: ShareCreate, owner_id: int
    ) -> Share:
        if (obj_in.file_id is None) == (obj_in.folder_id is None):
            raise InvalidArgument("Provide either fileId or folderId, not both")

        # Verify ownership
        if obj_in.file_id is not None:
            if not crud_file.get_owned(db, id=obj_in.file_id, user_id=owner_id, is_folder=False):
                raise NotFound("File not found")
        else:
            if not crud_file.get_owned(db, id=obj_in.folder_id, user_id=owner_id, is_folder=True):
                raise NotFound("Folder not found")

        password_hash = get_password_hash(obj_in.password) if obj_in.password else None

        for attempt in range(1, settings.SHARE_TOKEN_MAX_ATTEMPTS + 1):
            db_obj = Share(
                token=generate_share_token(),
                owner_id=owner_id,
                file_id=obj_in.file_id,
                folder_id=obj_in.folder_id,
                permission=obj_in.permission,
                password_hash=password_hash,
                expires_at=obj_in.expires_at,
                max_downloads=obj_in.max_downloads or None,
            )
            db.add(db_obj)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning("Share token collision on attempt %d, regenerating", attempt)
                continue
            db.refresh(db_obj)
            return db_obj

        raise Internal("Could not allocate a unique share token")

    def get_owned(self, db: Session, *, share_id: str, owner_id: int) -> Optional[Share]:
        return db.query(Share).filter(Share.id == share_id, Share.owner_id == owner_id).first()

    def get_multi_by_owner(
        self,
        db: Session,
        *,
        owner_id: int,
        file_id: Optional[int] = None,
        folder_id: Optional[int] = None,
    ) -> List[Share]:
        query = db.query(Share).filter(Share.owner_id == owner_id, Share.is_active == True)
        if file_id is not None:
            query = query.filter(Share.file_id == file_id)
        if folder_id is not None:
            query = query.filter(Share.folder_id == folder_id)
        return query.order_by(Share.created_at.desc()).all()

    def update_policy(
        self, db: Session, *, share_id: str, owner_id: int, obj_in: ShareUpdate
    ) -> Share:
        share = self.get_owned(db, share_id=share_id, owner_id=owner_id)
        if not share:
            raise NotFound()

        patch = obj_in.model_dump(exclude_unset=True)
        values = {}
        for field in ("permission", "is_active"):
            if field in patch:
                if patch[field] is None:
                    raise InvalidArgument(f"{field} cannot be null")
                values[field] = patch[field]
        if "password" in patch:
            # Empty or null password disables protection
            values["password_hash"] = get_password_hash(patch["password"]) if patch["password"] else None
        if "expires_at" in patch:
            values["expires_at"] = patch["expires_at"]
        if "max_downloads" in patch:
            values["max_downloads"] = patch["max_downloads"] or None

        if values:
            values["updated_at"] = datetime.utcnow()
            db.execute(
                update(Share)
                .where(Share.id == share_id, Share.owner_id == owner_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            db.refresh(share)
        return share

    def revoke(self, db: Session, *, share_id: str, owner_id: int) -> None:
        result = db.execute(
            delete(Share)
            .where(Share.id == share_id, Share.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        if result.rowcount == 0:
            raise NotFound()

    def get_by_token(self, db: Session, *, token: str) -> Optional[Share]:
        return db.query(Share).filter(Share.token == token).first()

    def resolve_for_public_access(self, db: Session, *, token: str) -> Share:
        """
        Pure lookup. Usability and password checks are left to the caller,
        which knows which of them its endpoint needs.
        """
        share = self.get_by_token(db, token=token)
        if not share:
            raise NotFound()
        return share

    def verify_password(self, db: Session, *, share: Share, password: Optional[str]) -> bool:
        if share.password_hash is None:
            return True
        if not verify_password(password or "", share.password_hash):
            return False
        self.touch(db, share_id=share.id)
        return True

    def touch(self, db: Session, *, share_id: str) -> None:
        db.execute(
            update(Share)
            .where(Share.id == share_id)
            .values(last_accessed_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()

    def record_download(self, db: Session, *, share_id: str) -> bool:
        """
        Claim one download slot. The usability predicate is re-evaluated
        inside the UPDATE, so two requests racing for the last slot cannot
        both win. Returns False when no slot was claimed.
        """
        now = datetime.utcnow()
        result = db.execute(
            update(Share)
            .where(
                Share.id == share_id,
                Share.is_active == True,
                or_(Share.expires_at.is_(None), Share.expires_at > now),
                or_(Share.max_downloads.is_(None), Share.download_count < Share.max_downloads),
            )
            .values(download_count=Share.download_count + 1, last_accessed_at=now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

share = CRUDShare(Share)
