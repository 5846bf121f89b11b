from flask import Blueprint, request, jsonify, current_app
from services.errors import CommentBoardError, RateLimitError
from services.rate_limiter import Decision
from utils import parse_positive_int, utcnow

comments_bp = Blueprint('comments', __name__)

@comments_bp.errorhandler(CommentBoardError)
def handle_comment_board_error(error):
    """Turn service errors into JSON responses"""
    if error.status_code >= 500:
        current_app.logger.error(f'{error.status_code} on {request.method} {request.path} from IP {request.remote_addr}')
    return jsonify({'error': error.message}), error.status_code

@comments_bp.route('/comments', methods=['GET'])
def get_comments():
    """Get comments newest first with pagination"""
    page = parse_positive_int(request.args.get('page'), 1)
    limit = parse_positive_int(request.args.get('limit'), current_app.config['COMMENTS_PER_PAGE'])

    comment_service = current_app.extensions['comment_service']
    result = comment_service.list_comments(page=page, limit=limit)

    return jsonify({
        'comments': [comment.to_dict() for comment in result['comments']],
        'totalPages': result['total_pages']
    })

@comments_bp.route('/comments', methods=['POST'])
def create_comment():
    """Post a comment - one per IP per day"""
    ip_address = request.remote_addr
    now = utcnow()

    # The daily quota is spent here, before validation, and is not refunded
    # if the comment is rejected afterwards
    rate_limiter = current_app.extensions['rate_limiter']
    if rate_limiter.admit(ip_address, now) is Decision.DENY:
        raise RateLimitError()

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    comment_service = current_app.extensions['comment_service']
    comment = comment_service.post_comment(
        data.get('username'),
        data.get('content'),
        password=data.get('password'),
        ip_address=ip_address,
        now=now
    )

    current_app.logger.info(f'Comment {comment.id} added by {comment.username} from IP {ip_address}')
    return jsonify({'message': 'comment added!'}), 201
