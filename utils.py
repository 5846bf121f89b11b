from datetime import datetime, timezone
from markupsafe import Markup
from werkzeug.security import check_password_hash
import bcrypt
import re

# Elements whose text is dropped along with the tag itself
_CONTENT_ELEMENTS_RE = re.compile(
    r'<(script|style|iframe|noscript|template|textarea|title)\b[^>]*>.*?</\1\s*>',
    re.IGNORECASE | re.DOTALL
)
_COMMENT_RE = re.compile(r'<!--.*?-->', re.DOTALL)
# A tag starts with '<' or '</' followed by a letter; '< b' is plain text
_TAG_RE = re.compile(r'</?[A-Za-z][^>]*>')

_BCRYPT_PREFIXES = ('$2a$', '$2b$', '$2y$')

def sanitize_input(value):
    """Reduce free text to plain text with no markup.

    Non-string input yields an empty string. Comments, tags and their
    attributes are removed, entities are decoded and the ends are trimmed.
    Text between a stray ``<`` and ``>`` is kept, as is whitespace inside
    the text. The pass repeats until the text stops changing, so
    entity-encoded markup like ``&lt;b&gt;`` is stripped as well and
    ``sanitize_input(sanitize_input(x)) == sanitize_input(x)``.
    """
    if not isinstance(value, str):
        return ''

    text = value
    while True:
        cleaned = _CONTENT_ELEMENTS_RE.sub('', text)
        cleaned = _COMMENT_RE.sub('', cleaned)
        cleaned = _TAG_RE.sub('', cleaned)
        cleaned = str(Markup(cleaned).unescape()).strip()
        if cleaned == text:
            # No tags left; drop delimiters that never formed one
            cleaned = text.replace('<', '').replace('>', '').strip()
            if cleaned == text:
                return text
        text = cleaned

def utcnow():
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)

def format_timestamp(moment):
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC. The output has a fixed width so
    stored timestamps compare correctly as strings.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f'{moment.microsecond // 1000:03d}Z'

def verify_password_hash(password, password_hash):
    """Check a password against a bcrypt or werkzeug hash.

    Both libraries compare in constant time. Malformed hashes and passwords
    bcrypt refuses (over 72 bytes) count as a mismatch.
    """
    if not isinstance(password, str) or not password or not password_hash:
        return False

    try:
        if password_hash.startswith(_BCRYPT_PREFIXES):
            return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
        return check_password_hash(password_hash, password)
    except ValueError:
        return False

def parse_positive_int(value, default):
    """Parse a query parameter as a positive integer, falling back to default"""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default
