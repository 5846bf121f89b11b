from models import db, Comment
from utils import sanitize_input, utcnow, format_timestamp, verify_password_hash
from logging_config import log_audit_event, log_error, log_security_event
from services.errors import AuthError, InternalError, ValidationError
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field

@dataclass(frozen=True)
class AdminIdentity:
    """The reserved username and the hash that unlocks it"""
    username: str
    password_hash: str = field(repr=False)

    def __post_init__(self):
        if not self.username or not self.password_hash:
            raise ValueError("Admin username and password hash must both be set")
        object.__setattr__(self, 'username', self.username.lower())

    @classmethod
    def from_config(cls, app_config):
        username = app_config.get('ADMIN_USERNAME')
        password_hash = app_config.get('ADMIN_PASSWORD_HASH')
        if not username or not password_hash:
            raise ValueError("SERVER_USERNAME and SERVER_PASSWORD_HASH environment variables must be set")
        return cls(username=username, password_hash=password_hash)

    def is_reserved(self, username):
        return username.lower() == self.username

    def verify_password(self, password):
        return verify_password_hash(password, self.password_hash)

class CommentService:
    """Validation and storage for board comments"""

    def __init__(self, admin_identity, max_username_length=25, max_content_length=100):
        if admin_identity is None:
            raise ValueError("CommentService requires an AdminIdentity")
        self.admin_identity = admin_identity
        self.max_username_length = max_username_length
        self.max_content_length = max_content_length

    @classmethod
    def from_config(cls, app_config):
        return cls(
            AdminIdentity.from_config(app_config),
            max_username_length=app_config.get('USERNAME_MAX_LENGTH', 25),
            max_content_length=app_config.get('CONTENT_MAX_LENGTH', 100)
        )

    def post_comment(self, raw_username, raw_content, password=None, ip_address=None, now=None):
        """Sanitize, check and store a new comment.

        The caller is expected to have passed the rate limiter for this IP
        already. The reserved username check runs before the length checks,
        so a wrong admin password is reported even for an empty comment.

        Returns:
            The stored Comment with its assigned id

        Raises:
            AuthError: reserved username without the right password
            ValidationError: content or username out of bounds
            InternalError: the comment couldn't be stored
        """
        username = sanitize_input(raw_username)
        content = sanitize_input(raw_content)

        if self.admin_identity.is_reserved(username):
            if not password or not self.admin_identity.verify_password(password):
                log_security_event(
                    'reserved_username_denied',
                    username=username,
                    ip_address=ip_address,
                    details='Missing or invalid password'
                )
                raise AuthError()
            log_security_event('reserved_username_verified', username=username, ip_address=ip_address)

        if not content or len(content) > self.max_content_length:
            raise ValidationError(
                f'comment must be between 1 and {self.max_content_length} characters!',
                field='content'
            )

        if not username or len(username) > self.max_username_length:
            raise ValidationError(
                f'username must be between 1 and {self.max_username_length} characters!',
                field='username'
            )

        if now is None:
            now = utcnow()

        comment = Comment(
            username=username,
            content=content,
            timestamp=format_timestamp(now)
        )

        try:
            db.session.add(comment)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            log_error(e, context=f'Storing comment from IP {ip_address}')
            raise InternalError() from e

        log_audit_event(
            action='CREATE',
            entity_type='Comment',
            entity_id=comment.id,
            username=comment.username,
            new_value=comment.content,
            ip_address=ip_address
        )
        return comment

    def list_comments(self, page=1, limit=5):
        """Return one page of comments, newest first.

        Comments sharing a timestamp are ordered by id, newest first, so
        pages never overlap or skip.

        Returns:
            dict with ``comments`` (list of Comment), ``total_pages`` and ``total``
        """
        if not isinstance(page, int) or page < 1:
            raise ValidationError('page must be a positive integer', field='page')
        if not isinstance(limit, int) or limit < 1:
            raise ValidationError('limit must be a positive integer', field='limit')

        try:
            pagination = Comment.query\
                .order_by(desc(Comment.timestamp), desc(Comment.id))\
                .paginate(page=page, per_page=limit, error_out=False, count=True)
        except SQLAlchemyError as e:
            db.session.rollback()
            log_error(e, context=f'Listing comments page={page} limit={limit}')
            raise InternalError() from e

        return {
            'comments': pagination.items,
            'total_pages': pagination.pages,
            'total': pagination.total
        }
