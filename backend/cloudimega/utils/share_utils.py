import secrets
from datetime import datetime
from typing import Optional

from cloudimega.core.config import settings

GONE_MESSAGES = {
    "revoked": "Share is no longer active",
    "expired": "Share has expired",
    "quota_exhausted": "Download limit reached",
}


def generate_share_token(nbytes: Optional[int] = None) -> str:
    """Unguessable public capability, hex encoded (128 bits by default)."""
    return secrets.token_hex(nbytes or settings.SHARE_TOKEN_BYTES)


def unusable_reason(share, now: Optional[datetime] = None) -> Optional[str]:
    """
    Return why a share grants no access right now, or None when it is usable.
    Checked in order: kill switch, expiry, download quota.
    """
    if now is None:
        now = datetime.utcnow()
    if not share.is_active:
        return "revoked"
    if share.expires_at is not None and share.expires_at <= now:
        return "expired"
    if share.max_downloads is not None and share.download_count >= share.max_downloads:
        return "quota_exhausted"
    return None
