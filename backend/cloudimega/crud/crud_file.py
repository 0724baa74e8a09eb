import mimetypes
import uuid
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from datetime import datetime

from cloudimega.crud.base import CRUDBase
from cloudimega.models.file import FileMeta
from cloudimega.storage.blob_store import BlobStore


class CRUDFileMeta(CRUDBase[FileMeta, None, None]):
    def get_active(self, db: Session, *, id: int) -> Optional[FileMeta]:
        return db.query(FileMeta).filter(
            FileMeta.id == id,
            FileMeta.is_deleted == False
        ).first()

    def get_owned(
        self, db: Session, *, id: int, user_id: int, is_folder: bool
    ) -> Optional[FileMeta]:
        """
        Ownership proof used before anything is shared. A node of the wrong
        kind, owned by someone else or in the recycle bin is reported as missing.
        """
        return db.query(FileMeta).filter(
            FileMeta.id == id,
            FileMeta.user_id == user_id,
            FileMeta.is_folder == is_folder,
            FileMeta.is_deleted == False
        ).first()

    def get_children(
        self, db: Session, *, user_id: int, parent_id: int
    ) -> Tuple[List[FileMeta], List[FileMeta]]:
        # One level only, folders and files each sorted by name
        items = (
            db.query(FileMeta)
            .filter(
                FileMeta.user_id == user_id,
                FileMeta.parent_id == parent_id,
                FileMeta.is_deleted == False
            )
            .order_by(FileMeta.file_name.asc())
            .all()
        )
        folders = [item for item in items if item.is_folder]
        files = [item for item in items if not item.is_folder]
        return folders, files

    def get_child_file(
        self, db: Session, *, user_id: int, parent_id: int, file_id: int
    ) -> Optional[FileMeta]:
        return db.query(FileMeta).filter(
            FileMeta.id == file_id,
            FileMeta.user_id == user_id,
            FileMeta.parent_id == parent_id,
            FileMeta.is_folder == False,
            FileMeta.is_deleted == False
        ).first()

    def create_folder(
        self, db: Session, *, user_id: int, name: str, parent_id: int = 0
    ) -> FileMeta:
        db_obj = FileMeta(user_id=user_id, parent_id=parent_id, file_name=name, is_folder=True)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def create_file(
        self,
        db: Session,
        *,
        store: BlobStore,
        user_id: int,
        name: str,
        data: bytes,
        parent_id: int = 0,
        mime_type: Optional[str] = None,
    ) -> FileMeta:
        """Write the bytes to the Blob Store and record the node."""
        storage_key = uuid.uuid4().hex
        store.write(user_id, storage_key, data)
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(name)
        db_obj = FileMeta(
            user_id=user_id,
            parent_id=parent_id,
            file_name=name,
            is_folder=False,
            storage_key=storage_key,
            file_size=len(data),
            mime_type=mime_type or "application/octet-stream",
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: int) -> Optional[FileMeta]:
        """Move to recycle bin (soft delete)."""
        obj = db.query(FileMeta).filter(FileMeta.id == id).first()
        if obj:
            obj.is_deleted = True
            obj.deleted_at = datetime.utcnow()
            db.add(obj)
            db.commit()
            db.refresh(obj)
        return obj

file = CRUDFileMeta(FileMeta)
