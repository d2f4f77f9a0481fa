"""
Security utilities for input sanitization
"""
import html
import bleach

# HTML tags allowed in user content
ALLOWED_HTML_TAGS = ['b', 'i', 'u', 'em', 'strong', 'p', 'br']


def sanitize_input(text, allow_html=False):
    """Sanitize user input to prevent XSS"""
    if not text or not isinstance(text, str):
        return text

    if allow_html:
        text = bleach.clean(text, tags=ALLOWED_HTML_TAGS, strip=True)
    else:
        text = html.escape(text)

    return text.replace('\x00', '')


def sanitize_list(values):
    """Sanitize every string in a list, leaving other values untouched"""
    if not isinstance(values, list):
        return values
    return [sanitize_input(value) for value in values]
