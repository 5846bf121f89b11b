from flask import Flask
from models import db, Comment, RateLimit
from config import config
import os

def _standalone_app():
    app = Flask(__name__)
    env = os.environ.get('FLASK_ENV', 'development')
    app.config.from_object(config[env])
    db.init_app(app)
    return app

def init_db(app=None):
    """Initialize the database with all tables"""
    if app is None:
        app = _standalone_app()

    with app.app_context():
        # Existing tables (e.g. a comments.db from an earlier deployment) are kept
        db.create_all()
        print("Database tables created successfully!")
        print(f"  Comments: {Comment.query.count()}")
        print(f"  Rate limit records: {RateLimit.query.count()}")

if __name__ == '__main__':
    init_db()
