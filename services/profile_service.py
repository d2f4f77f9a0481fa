from models.profile import UserProfile, UserPreferences
from utils.errors import UserNotFoundError, ValidationError
from utils.security import sanitize_input, sanitize_list
from utils.validators import parse_location

# Wire name -> model attribute
PROFILE_FIELDS = {
    'name': 'name',
    'age': 'age',
    'gender': 'gender',
    'bio': 'bio',
    'photos': 'photos',
    'interests': 'interests'
}
PREFERENCE_FIELDS = {
    'minAge': 'min_age',
    'maxAge': 'max_age',
    'genderPreference': 'gender_preference',
    'maxDistance': 'max_distance'
}


class ProfileService:
    def __init__(self, db, logger):
        self.db = db
        self.logger = logger

    def get_profile(self, user_id):
        """Get user profile and preferences"""
        profile = UserProfile.query.filter_by(user_id=user_id).first()
        if not profile:
            raise UserNotFoundError('Profile not found')

        preferences = UserPreferences.query.filter_by(user_id=user_id).first()
        return {
            'profile': profile.to_dict(),
            'preferences': preferences.to_dict() if preferences else None
        }

    def update_profile(self, user_id, data):
        """Update profile fields, location and preferences"""
        profile = UserProfile.query.filter_by(user_id=user_id).first()
        if not profile:
            raise UserNotFoundError('Profile not found')

        try:
            for key, attribute in PROFILE_FIELDS.items():
                if key in data:
                    value = data[key]
                    if key in ('name', 'bio'):
                        value = sanitize_input(value)
                    elif key == 'interests':
                        value = sanitize_list(value)
                    setattr(profile, attribute, value)

            if 'location' in data:
                try:
                    latitude, longitude = parse_location(data['location'])
                except ValueError as e:
                    raise ValidationError(str(e))
                profile.set_location(latitude, longitude)

            if 'preferences' in data:
                self._update_preferences(user_id, data['preferences'] or {})

            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise

        self.logger.info(f"Updated profile for user {user_id}")
        return self.get_profile(user_id)

    def _update_preferences(self, user_id, data):
        prefs = UserPreferences.query.filter_by(user_id=user_id).first()
        if not prefs:
            prefs = UserPreferences(user_id=user_id)
            self.db.session.add(prefs)

        for key, attribute in PREFERENCE_FIELDS.items():
            if key in data:
                setattr(prefs, attribute, data[key])

        self.db.session.flush()
        if prefs.min_age > prefs.max_age:
            raise ValidationError('minAge cannot be greater than maxAge')
