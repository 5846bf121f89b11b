"""
Pytest configuration and fixtures for testing
"""
import pytest
import os
from datetime import datetime, timedelta, timezone

# Set test environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from app import create_app
from models import db, Comment
from utils import format_timestamp

ADMIN_PASSWORD = 'correct-horse-battery-staple'
ORIGIN = 'https://lain.ovh'


@pytest.fixture(scope='session')
def app():
    """Create and configure a test app instance"""
    app = create_app('testing')

    # Ensure we're using testing config
    assert app.config['TESTING'] is True
    assert 'memory' in app.config['SQLALCHEMY_DATABASE_URI']

    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the app"""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Create a test CLI runner"""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def db_session(app):
    """
    Create fresh tables for a test.
    Drop everything after the test.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.remove()
        db.drop_all()


@pytest.fixture
def comment_service(app):
    return app.extensions['comment_service']


@pytest.fixture
def rate_limiter(app):
    return app.extensions['rate_limiter']


@pytest.fixture
def base_time():
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def eight_comments(db_session, base_time):
    """Eight comments one minute apart, comment-1 oldest"""
    comments = []
    for i in range(1, 9):
        comment = Comment(
            username=f'user{i}',
            content=f'comment-{i}',
            timestamp=format_timestamp(base_time + timedelta(minutes=i))
        )
        db_session.session.add(comment)
        comments.append(comment)
    db_session.session.commit()
    return comments


# Helper functions for tests

def post_comment(client, ip='203.0.113.10', **payload):
    """Helper to post a comment from a given client IP"""
    return client.post('/comments', json=payload, environ_base={'REMOTE_ADDR': ip})
