from sqlalchemy import Column, Integer, String, Boolean, BigInteger, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from cloudimega.db.base_class import Base
from datetime import datetime

class FileMeta(Base):
    """
    One node of a user's tree. Folders and files share the table; ``parent_id``
    of 0 means the user's root.
    """
    __tablename__ = "file_meta"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("sys_user.id"), nullable=False, index=True)
    parent_id = Column(Integer, default=0, index=True)
    file_name = Column(String(255), nullable=False)
    is_folder = Column(Boolean, default=False)

    # Blob Store key, relative to the owner's namespace
    storage_key = Column(String(255), nullable=True)
    file_size = Column(BigInteger, default=0)
    mime_type = Column(String(255), nullable=True)

    # Recycle Bin fields
    is_deleted = Column(Boolean, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    # Time fields
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")
