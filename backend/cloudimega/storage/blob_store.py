import logging
import os
from typing import Iterator, Optional, Tuple, Union

from cloudimega.core.config import settings
from cloudimega.core.errors import RangeNotSatisfiable

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


def parse_range_header(range_header: Optional[str], file_size: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single ``bytes=start-end`` range into inclusive offsets.

    Returns None when the whole file should be served: no header, a unit
    other than bytes, or an empty file. Suffix ranges (``bytes=-500``) and
    open ranges (``bytes=100-``) are supported; multi-range requests are not.
    """
    if not range_header or file_size == 0:
        return None
    unit, _, spec = range_header.partition("=")
    if unit.strip().lower() != "bytes":
        return None
    if "," in spec:
        raise RangeNotSatisfiable()

    from_bytes, sep, until_bytes = spec.strip().partition("-")
    if not sep:
        raise RangeNotSatisfiable()
    try:
        if from_bytes == "":
            suffix = int(until_bytes)
            if suffix <= 0:
                raise RangeNotSatisfiable()
            start = max(file_size - suffix, 0)
            end = file_size - 1
        else:
            start = int(from_bytes)
            end = int(until_bytes) if until_bytes else file_size - 1
    except ValueError:
        raise RangeNotSatisfiable()

    end = min(end, file_size - 1)
    if start < 0 or start > end:
        raise RangeNotSatisfiable()
    return start, end


class BlobStore:
    """
    Bytes on local disk, laid out as ``<root>/<owner_id>/<storage_key>``.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def path_for(self, owner_id: Union[int, str], storage_key: str) -> str:
        owner_dir = os.path.join(self.root, str(owner_id))
        path = os.path.abspath(os.path.join(owner_dir, storage_key))
        # Storage keys never leave the owner's namespace
        if os.path.commonpath([owner_dir, path]) != owner_dir or path == owner_dir:
            raise ValueError(f"Invalid storage key: {storage_key!r}")
        return path

    def exists(self, owner_id: Union[int, str], storage_key: Optional[str]) -> bool:
        if not storage_key:
            return False
        try:
            return os.path.isfile(self.path_for(owner_id, storage_key))
        except ValueError:
            return False

    def size(self, owner_id: Union[int, str], storage_key: str) -> int:
        return os.path.getsize(self.path_for(owner_id, storage_key))

    def write(self, owner_id: Union[int, str], storage_key: str, data: bytes) -> str:
        path = self.path_for(owner_id, storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def iter_range(
        self, owner_id: Union[int, str], storage_key: str, start: int = 0, end: Optional[int] = None
    ) -> Iterator[bytes]:
        """Yield bytes ``start..end`` (inclusive) in CHUNK_SIZE pieces."""
        path = self.path_for(owner_id, storage_key)
        if end is None:
            end = os.path.getsize(path) - 1
        remaining = end - start + 1
        with open(path, mode="rb") as file_like:
            file_like.seek(start)
            while remaining > 0:
                chunk = file_like.read(min(CHUNK_SIZE, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk


blob_store = BlobStore(settings.STORAGE_PATH)
