"""Database initialization utilities"""
import os

DEMO_USERS = [
    {'email': 'maya@example.com', 'name': 'Maya', 'age': 27, 'gender': 'female',
     'bio': 'Coffee, climbing and long walks by the sea.', 'interests': ['climbing', 'coffee'],
     'location': (32.0853, 34.7818), 'preferences': {'gender_preference': 'male', 'max_distance': 30}},
    {'email': 'daniel@example.com', 'name': 'Daniel', 'age': 29, 'gender': 'male',
     'bio': 'Amateur chef looking for someone to taste-test.', 'interests': ['cooking', 'travel'],
     'location': (32.0795, 34.7806), 'preferences': {'gender_preference': 'female', 'max_distance': 25}},
    {'email': 'noa@example.com', 'name': 'Noa', 'age': 31, 'gender': 'female',
     'bio': 'Bookshops and jazz bars.', 'interests': ['books', 'jazz'],
     'location': (31.7683, 35.2137), 'preferences': {'gender_preference': 'both', 'max_distance': 80}},
    {'email': 'alex@example.com', 'name': 'Alex', 'age': 26, 'gender': 'other',
     'bio': 'Cyclist and board game collector.', 'interests': ['cycling', 'board games'],
     'location': (32.1093, 34.8555), 'preferences': {'gender_preference': 'both', 'max_distance': 50}},
]


def create_demo_users(db, bcrypt, logger):
    """Create demo users for development; existing emails are skipped"""
    # Import here to avoid circular imports
    from models.user import User
    from models.profile import UserProfile, UserPreferences

    password = os.environ.get('DEMO_PASSWORD', 'Password123')
    created = 0

    for demo in DEMO_USERS:
        if User.query.filter_by(email=demo['email']).first():
            continue

        user = User(
            email=demo['email'],
            password_hash=bcrypt.generate_password_hash(password).decode('utf-8')
        )
        db.session.add(user)
        db.session.flush()

        profile = UserProfile(
            user_id=user.id,
            name=demo['name'],
            age=demo['age'],
            gender=demo['gender'],
            bio=demo['bio'],
            photos=[],
            interests=demo['interests']
        )
        profile.set_location(*demo['location'])
        db.session.add(profile)
        db.session.add(UserPreferences(user_id=user.id, **demo['preferences']))
        created += 1

    db.session.commit()
    logger.info(f"Created {created} demo users")
    return created
