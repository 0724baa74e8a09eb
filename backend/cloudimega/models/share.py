import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from cloudimega.db.base_class import Base

class Share(Base):
    __tablename__ = "shares"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    token = Column(String(64), unique=True, index=True, nullable=False) # Public capability
    owner_id = Column(Integer, ForeignKey("sys_user.id", ondelete="CASCADE"), nullable=False, index=True)

    # Exactly one target
    file_id = Column(Integer, ForeignKey("file_meta.id", ondelete="CASCADE"), nullable=True, index=True)
    folder_id = Column(Integer, ForeignKey("file_meta.id", ondelete="CASCADE"), nullable=True, index=True)

    permission = Column(String(16), nullable=False, default="view")
    password_hash = Column(String(255), nullable=True)

    expires_at = Column(DateTime, nullable=True)
    max_downloads = Column(Integer, nullable=True) # None for unlimited
    download_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    last_accessed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    file = relationship("FileMeta", foreign_keys=[file_id])
    folder = relationship("FileMeta", foreign_keys=[folder_id])
    owner = relationship("User")

    __table_args__ = (
        CheckConstraint(
            "(file_id IS NULL) <> (folder_id IS NULL)", name="ck_shares_single_target"
        ),
    )

    @property
    def target_type(self) -> str:
        return "file" if self.file_id is not None else "folder"
