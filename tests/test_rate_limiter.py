"""
Tests for the per-IP daily posting limiter
"""
import pytest
from datetime import timedelta
from models import RateLimit
from services import rate_limiter as rate_limiter_module
from services.errors import InternalError
from services.rate_limiter import Decision
from utils import format_timestamp


@pytest.fixture(params=['upsert', 'check_then_write'])
def limiter_path(request, monkeypatch):
    """Run a test against both the atomic upsert and the locked fallback"""
    if request.param == 'check_then_write':
        monkeypatch.setattr(rate_limiter_module, '_UPSERT_INSERTS', {})
    return request.param


@pytest.mark.unit
class TestAdmit:
    """Test admission decisions"""

    def test_first_request_allowed(self, db_session, rate_limiter, base_time, limiter_path):
        assert rate_limiter.admit('198.51.100.1', base_time) is Decision.ALLOW

        record = db_session.session.get(RateLimit, '198.51.100.1')
        assert record is not None
        assert record.last_request == format_timestamp(base_time)

    def test_second_request_within_window_denied(self, db_session, rate_limiter, base_time, limiter_path):
        rate_limiter.admit('198.51.100.1', base_time)

        assert rate_limiter.admit('198.51.100.1', base_time + timedelta(seconds=1)) is Decision.DENY
        assert rate_limiter.admit('198.51.100.1', base_time + timedelta(hours=23, minutes=59, seconds=59)) is Decision.DENY

    def test_request_after_full_window_allowed(self, db_session, rate_limiter, base_time, limiter_path):
        rate_limiter.admit('198.51.100.1', base_time)

        assert rate_limiter.admit('198.51.100.1', base_time + timedelta(hours=24)) is Decision.ALLOW
        assert rate_limiter.admit('198.51.100.1', base_time + timedelta(hours=48, seconds=1)) is Decision.ALLOW

    def test_denied_request_does_not_move_window(self, db_session, rate_limiter, base_time, limiter_path):
        rate_limiter.admit('198.51.100.1', base_time)
        rate_limiter.admit('198.51.100.1', base_time + timedelta(hours=12))

        db_session.session.expire_all()
        record = db_session.session.get(RateLimit, '198.51.100.1')
        assert record.last_request == format_timestamp(base_time)

        # Still measured from the first accepted request
        assert rate_limiter.admit('198.51.100.1', base_time + timedelta(hours=24)) is Decision.ALLOW

    def test_accepted_request_overwrites_record(self, db_session, rate_limiter, base_time, limiter_path):
        later = base_time + timedelta(days=2)
        rate_limiter.admit('198.51.100.1', base_time)
        rate_limiter.admit('198.51.100.1', later)

        db_session.session.expire_all()
        assert RateLimit.query.filter_by(ip='198.51.100.1').count() == 1
        assert db_session.session.get(RateLimit, '198.51.100.1').last_request == format_timestamp(later)

    def test_ips_are_independent(self, db_session, rate_limiter, base_time, limiter_path):
        assert rate_limiter.admit('198.51.100.1', base_time) is Decision.ALLOW
        assert rate_limiter.admit('198.51.100.2', base_time) is Decision.ALLOW
        assert rate_limiter.admit('2001:db8::1', base_time) is Decision.ALLOW
        assert RateLimit.query.count() == 3

    def test_store_failure_raises_internal_error(self, db_session, rate_limiter, base_time, limiter_path):
        RateLimit.__table__.drop(db_session.engine)

        with pytest.raises(InternalError) as excinfo:
            rate_limiter.admit('198.51.100.1', base_time)

        assert excinfo.value.status_code == 500
        assert excinfo.value.message == 'internal server error'


@pytest.mark.unit
class TestPruneExpired:
    """Test removal of records outside the window"""

    def test_prunes_only_expired_records(self, db_session, rate_limiter, base_time):
        rate_limiter.admit('198.51.100.1', base_time - timedelta(days=3))
        rate_limiter.admit('198.51.100.2', base_time - timedelta(hours=24))
        rate_limiter.admit('198.51.100.3', base_time - timedelta(hours=1))

        removed = rate_limiter.prune_expired(base_time)

        assert removed == 2
        assert [r.ip for r in RateLimit.query.all()] == ['198.51.100.3']

    def test_pruning_does_not_change_decisions(self, db_session, rate_limiter, base_time):
        rate_limiter.admit('198.51.100.1', base_time - timedelta(days=3))
        rate_limiter.admit('198.51.100.3', base_time - timedelta(hours=1))

        rate_limiter.prune_expired(base_time)

        assert rate_limiter.admit('198.51.100.1', base_time) is Decision.ALLOW
        assert rate_limiter.admit('198.51.100.3', base_time) is Decision.DENY

    def test_prune_command(self, db_session, runner, rate_limiter, base_time):
        # The command prunes relative to the wall clock
        rate_limiter.admit('198.51.100.1', base_time.replace(year=2001))

        result = runner.invoke(args=['prune-rate-limits'])

        assert result.exit_code == 0
        assert 'Removed 1 expired rate limit records.' in result.output
        assert RateLimit.query.count() == 0
