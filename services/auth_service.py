from models.user import User
from models.profile import UserProfile, UserPreferences
from utils.errors import APIError, AuthenticationError, ValidationError
from utils.security import sanitize_input, sanitize_list
from utils.validators import validate_email, validate_password, parse_location
from auth.jwt_handler import generate_token


class AuthService:
    def __init__(self, db, bcrypt, logger):
        self.db = db
        self.bcrypt = bcrypt
        self.logger = logger

    def register(self, data):
        """Register new user with profile and default preferences.

        Returns (user, token).
        """
        email = (data.get('email') or '').lower().strip()
        password = data.get('password') or ''
        name = data.get('name')
        name = sanitize_input(name.strip()) if isinstance(name, str) else None

        if not validate_email(email):
            raise ValidationError('Invalid email address')

        valid, message = validate_password(password)
        if not valid:
            raise ValidationError(message)

        if not name:
            raise ValidationError('Name is required')

        if data.get('age') is None or data.get('gender') is None:
            raise ValidationError('Age and gender are required')

        # Check if user exists
        if User.query.filter_by(email=email).first():
            raise APIError('Email already registered', 409)

        try:
            user = User(
                email=email,
                password_hash=self.bcrypt.generate_password_hash(password).decode('utf-8')
            )
            self.db.session.add(user)
            self.db.session.flush()

            profile = UserProfile(
                user_id=user.id,
                name=name,
                age=data.get('age'),
                gender=data.get('gender'),
                bio=sanitize_input(data.get('bio')),
                photos=data.get('photos') or [],
                interests=sanitize_list(data.get('interests') or [])
            )
            try:
                latitude, longitude = parse_location(data.get('location'))
            except ValueError as e:
                raise ValidationError(str(e))
            profile.set_location(latitude, longitude)
            self.db.session.add(profile)

            self.db.session.add(UserPreferences(user_id=user.id))
            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise

        self.logger.info(f"Registered user {user.id}")
        return user, generate_token(user.id)

    def login(self, data):
        """Returns (user, token) for valid credentials"""
        email = (data.get('email') or '').lower().strip()
        password = data.get('password') or ''

        if not email or not password:
            raise ValidationError('Email and password required')

        user = User.query.filter_by(email=email).first()

        if not user or not self.bcrypt.check_password_hash(user.password_hash, password):
            raise AuthenticationError('Invalid credentials')

        if not user.is_active:
            raise APIError('Account deactivated', 403)

        user.touch()
        self.db.session.commit()

        return user, generate_token(user.id)
