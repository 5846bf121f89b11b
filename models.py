from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

class Comment(db.Model):
    __tablename__ = 'comments'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)
    # ISO-8601 UTC with millisecond precision, e.g. 2026-10-17T22:12:00.000Z
    timestamp = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'content': self.content,
            'timestamp': self.timestamp
        }

    def __repr__(self):
        return f'<Comment {self.id} by {self.username}>'

class RateLimit(db.Model):
    """Last accepted submission per client IP"""
    __tablename__ = 'rate_limits'

    ip = db.Column(db.Text, primary_key=True)
    last_request = db.Column(db.Text, nullable=False)

    def __repr__(self):
        return f'<RateLimit {self.ip} at {self.last_request}>'
