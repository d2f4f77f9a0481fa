import math
from datetime import datetime
from enum import Enum
from sqlalchemy.orm import validates
from extensions import db
from utils.errors import ValidationError

MIN_AGE = 18
MAX_BIO_LENGTH = 500
MAX_NAME_LENGTH = 100

# Model attribute -> API field name, for error messages
PREFERENCE_WIRE_NAMES = {
    'min_age': 'minAge',
    'max_age': 'maxAge'
}


class Gender(Enum):
    MALE = 'male'
    FEMALE = 'female'
    OTHER = 'other'


class GenderPreference(Enum):
    MALE = 'male'
    FEMALE = 'female'
    BOTH = 'both'


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _coerce_enum(enum_cls, value, field):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ', '.join(_enum_values(enum_cls))
        raise ValidationError(f"{field} must be one of: {allowed}")


def _string_list(value, field):
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{field} must be a list of strings")
    return list(value)


class UserProfile(db.Model):
    __tablename__ = 'user_profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    gender = db.Column(db.Enum(Gender, values_callable=_enum_values, name='gender'), nullable=False)
    bio = db.Column(db.Text)
    photos = db.Column(db.JSON, default=list)
    interests = db.Column(db.JSON, default=list)
    # Both null when the user has not shared a location
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint(f'age >= {MIN_AGE}', name='check_profile_min_age'),
        db.Index('idx_profile_location', 'latitude', 'longitude'),
    )

    @validates('age')
    def validate_age(self, key, age):
        try:
            age = int(age)
        except (TypeError, ValueError):
            raise ValidationError('age must be a number')
        if age < MIN_AGE:
            raise ValidationError(f'age must be at least {MIN_AGE}')
        return age

    @validates('gender')
    def validate_gender(self, key, gender):
        return _coerce_enum(Gender, gender, 'gender')

    @validates('name')
    def validate_name(self, key, name):
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('name is required')
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f'name must be at most {MAX_NAME_LENGTH} characters')
        return name

    @validates('bio')
    def validate_bio(self, key, bio):
        if bio is not None and not isinstance(bio, str):
            raise ValidationError('bio must be a string')
        if bio and len(bio) > MAX_BIO_LENGTH:
            raise ValidationError(f'bio must be at most {MAX_BIO_LENGTH} characters')
        return bio

    @validates('photos')
    def validate_photos(self, key, photos):
        return _string_list(photos, 'photos')

    @validates('interests')
    def validate_interests(self, key, interests):
        # Tags are a set; keep first-seen order for stable output
        return list(dict.fromkeys(_string_list(interests, 'interests')))

    @validates('latitude')
    def validate_latitude(self, key, latitude):
        if latitude is not None and not -90 <= float(latitude) <= 90:
            raise ValidationError('latitude must be between -90 and 90')
        return latitude

    @validates('longitude')
    def validate_longitude(self, key, longitude):
        if longitude is not None and not -180 <= float(longitude) <= 180:
            raise ValidationError('longitude must be between -180 and 180')
        return longitude

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def set_location(self, latitude, longitude):
        """Set both coordinates, or clear them with (None, None)"""
        if (latitude is None) != (longitude is None):
            raise ValidationError('latitude and longitude must be provided together')
        try:
            self.latitude = float(latitude) if latitude is not None else None
            self.longitude = float(longitude) if longitude is not None else None
        except (TypeError, ValueError):
            raise ValidationError('latitude and longitude must be numbers')

    def summary(self):
        """Minimal projection sent with match notifications"""
        return {
            'name': self.name,
            'photos': list(self.photos or [])
        }

    def to_dict(self):
        return {
            'id': self.user_id,
            'name': self.name,
            'age': self.age,
            'gender': self.gender.value if self.gender else None,
            'bio': self.bio,
            'photos': list(self.photos or []),
            'interests': list(self.interests or []),
            'location': {
                'latitude': self.latitude,
                'longitude': self.longitude
            } if self.has_location else None
        }


class UserPreferences(db.Model):
    __tablename__ = 'user_preferences'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    min_age = db.Column(db.Integer, default=MIN_AGE, nullable=False)
    max_age = db.Column(db.Integer, default=100, nullable=False)
    gender_preference = db.Column(
        db.Enum(GenderPreference, values_callable=_enum_values, name='gender_preference'),
        default=GenderPreference.BOTH,
        nullable=False
    )
    max_distance = db.Column(db.Float, default=50, nullable=False)  # kilometers
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates('min_age', 'max_age')
    def validate_age_bound(self, key, value):
        field = PREFERENCE_WIRE_NAMES[key]
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f'{field} must be a number')
        if value < MIN_AGE:
            raise ValidationError(f'{field} must be at least {MIN_AGE}')
        return value

    @validates('gender_preference')
    def validate_gender_preference(self, key, preference):
        return _coerce_enum(GenderPreference, preference, 'genderPreference')

    @validates('max_distance')
    def validate_max_distance(self, key, max_distance):
        try:
            max_distance = float(max_distance)
        except (TypeError, ValueError):
            raise ValidationError('maxDistance must be a number')
        if not math.isfinite(max_distance) or max_distance <= 0:
            raise ValidationError('maxDistance must be a positive number of kilometers')
        return max_distance

    def allowed_genders(self):
        """Genders a candidate may have under this preference"""
        preference = self.gender_preference or GenderPreference.BOTH
        if preference == GenderPreference.BOTH:
            return list(Gender)
        return [Gender(preference.value)]

    def to_dict(self):
        return {
            'minAge': self.min_age,
            'maxAge': self.max_age,
            'genderPreference': self.gender_preference.value if self.gender_preference else None,
            'maxDistance': self.max_distance
        }
