"""
Input validation utilities
"""
import re


def validate_email(email):
    """Validate email format"""
    if not email or not isinstance(email, str):
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email) is not None


def validate_password(password):
    """Validate password strength"""
    if not password or len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r'[A-Za-z]', password):
        return False, "Password must contain at least one letter"

    if not re.search(r'\d', password):
        return False, "Password must contain at least one digit"

    return True, "Password is valid"


def parse_location(data):
    """Read a location from {latitude, longitude} or GeoJSON-style
    {coordinates: [longitude, latitude]}. None means "no location".
    """
    if data is None:
        return None, None
    if not isinstance(data, dict):
        raise ValueError('location must be an object')

    if 'coordinates' in data:
        coordinates = data['coordinates']
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
            raise ValueError('location.coordinates must be [longitude, latitude]')
        longitude, latitude = coordinates
    else:
        latitude, longitude = data.get('latitude'), data.get('longitude')

    return latitude, longitude
