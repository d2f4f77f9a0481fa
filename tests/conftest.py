"""Shared fixtures: an app on in-memory SQLite and user factories."""

import itertools
import logging

import pytest

from auth.jwt_handler import generate_token
from config import TestingConfig
from dating_backend import create_app
from extensions import db as _db
from models import User, UserProfile, UserPreferences


# ============================================================================
# App Fixtures
# ============================================================================

@pytest.fixture
def app():
    """Fresh app and schema per test."""
    app = create_app(TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logger():
    return logging.getLogger('dating_app.tests')


@pytest.fixture
def registry(app):
    return app.extensions['connection_registry']


@pytest.fixture
def socketio(app):
    return app.extensions['websocket_service'].socketio


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def make_user(db):
    """Factory creating a user with profile and preferences.

    Location defaults to none; preferences default to 18-100, both, 50 km.
    """
    counter = itertools.count(1)

    def _make_user(name=None, age=25, gender='female', latitude=None, longitude=None,
                   min_age=18, max_age=100, gender_preference='both', max_distance=50,
                   is_active=True, photos=None):
        n = next(counter)
        user = User(email=f'user{n}@example.com', password_hash='not-a-real-hash', is_active=is_active)
        db.session.add(user)
        db.session.flush()

        profile = UserProfile(
            user_id=user.id,
            name=name or f'User {n}',
            age=age,
            gender=gender,
            photos=photos if photos is not None else [f'https://img.example.com/{n}.jpg'],
            interests=[]
        )
        profile.set_location(latitude, longitude)
        db.session.add(profile)
        db.session.add(UserPreferences(
            user_id=user.id,
            min_age=min_age,
            max_age=max_age,
            gender_preference=gender_preference,
            max_distance=max_distance
        ))
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers(app):
    """Build a bearer header for a user."""
    def _headers(user):
        return {'Authorization': f'Bearer {generate_token(user.id)}'}
    return _headers
