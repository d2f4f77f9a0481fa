# models/__init__.py
from models.user import User
from models.profile import UserProfile, UserPreferences, Gender, GenderPreference
from models.swipe import Swipe, SwipeDirection
from models.match import Match

__all__ = [
    'User', 'UserProfile', 'UserPreferences', 'Gender', 'GenderPreference',
    'Swipe', 'SwipeDirection', 'Match'
]
