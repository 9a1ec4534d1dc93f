"""
Revoked refresh-token repository. Not tenant scoped: a jti is globally unique.
"""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rest_api.models import RevokedToken


class RevokedTokenRepository:
    def __init__(self, session: Session):
        self._session = session

    def is_revoked(self, jti: str) -> bool:
        query = select(RevokedToken.jti).where(RevokedToken.jti == jti)
        return self._session.scalar(query) is not None

    def revoke(self, jti: str, expires_at: datetime) -> RevokedToken:
        """Stage the revocation; a second revocation of the same jti fails on commit."""
        entry = RevokedToken(jti=jti, expires_at=expires_at)
        self._session.add(entry)
        return entry

    def purge_expired(self, now: datetime) -> int:
        result = self._session.execute(delete(RevokedToken).where(RevokedToken.expires_at < now))
        return result.rowcount or 0
