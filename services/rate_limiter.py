from models import db, RateLimit
from utils import utcnow, format_timestamp
from logging_config import log_error, log_security_event
from services.errors import InternalError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from datetime import timedelta
from enum import Enum
import threading
import logging

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE ... WHERE
_UPSERT_INSERTS = {
    'sqlite': sqlite.insert,
    'postgresql': postgresql.insert,
}

class Decision(Enum):
    ALLOW = 'allow'
    DENY = 'deny'

class RateLimiter:
    """One accepted submission per client IP per rolling window.

    Records live in the ``rate_limits`` table so the quota survives restarts.
    On SQLite and PostgreSQL the check and the write are one conditional
    upsert, so two simultaneous requests from the same IP cannot both be
    admitted. Other databases fall back to check-then-write under a per-IP
    lock, which only serializes requests within this process.
    """

    LOCK_STRIPES = 64

    def __init__(self, window=timedelta(hours=24)):
        self.window = window
        self._locks = [threading.Lock() for _ in range(self.LOCK_STRIPES)]

    def init_app(self, app):
        """Pick up the window length from app config"""
        self.window = timedelta(seconds=app.config.get('RATE_LIMIT_WINDOW_SECONDS', 24 * 60 * 60))
        app.extensions['rate_limiter'] = self

    def admit(self, ip, now=None):
        """Decide whether ``ip`` may submit at ``now``, recording the admission.

        Raises InternalError if the store can't be read or written; nothing
        is committed in that case.
        """
        if now is None:
            now = utcnow()

        stamp = format_timestamp(now)
        cutoff = format_timestamp(now - self.window)

        try:
            insert = _UPSERT_INSERTS.get(db.engine.dialect.name)
            if insert is not None:
                admitted = self._conditional_upsert(insert, ip, stamp, cutoff)
                db.session.commit()
            else:
                with self._lock_for(ip):
                    admitted = self._check_then_write(ip, stamp, cutoff)
                    db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            log_error(e, context=f'Rate limit check for IP {ip}')
            raise InternalError() from e

        if not admitted:
            log_security_event('rate_limit_denied', ip_address=ip,
                               details=f'Window: {self.window}')
            return Decision.DENY

        logger.debug(f'Admitted submission from {ip} at {stamp}')
        return Decision.ALLOW

    def prune_expired(self, now=None):
        """Delete records whose window has already elapsed.

        An expired record and a missing record both admit the next request,
        so pruning never changes a decision.
        """
        if now is None:
            now = utcnow()
        cutoff = format_timestamp(now - self.window)

        try:
            removed = RateLimit.query.filter(RateLimit.last_request <= cutoff)\
                .delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            log_error(e, context='Pruning expired rate limit records')
            raise InternalError() from e

        logger.info(f'Pruned {removed} expired rate limit records')
        return removed

    def _conditional_upsert(self, insert, ip, stamp, cutoff):
        table = RateLimit.__table__
        stmt = insert(table).values(ip=ip, last_request=stamp)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.ip],
            set_={'last_request': stmt.excluded.last_request},
            where=table.c.last_request <= cutoff
        )
        result = db.session.execute(stmt)
        # 1 row inserted or updated means admitted; 0 means the WHERE held it back
        return result.rowcount == 1

    def _check_then_write(self, ip, stamp, cutoff):
        record = db.session.get(RateLimit, ip)
        if record is None:
            db.session.add(RateLimit(ip=ip, last_request=stamp))
            return True
        if record.last_request > cutoff:
            return False
        record.last_request = stamp
        return True

    def _lock_for(self, ip):
        return self._locks[hash(ip) % self.LOCK_STRIPES]

rate_limiter = RateLimiter()
