from datetime import datetime
from extensions import db


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_active = db.Column(db.DateTime, default=datetime.utcnow)

    # Use string names to avoid circular imports
    profile = db.relationship('UserProfile', backref='user', uselist=False, cascade='all, delete-orphan')
    preferences = db.relationship('UserPreferences', backref='user', uselist=False, cascade='all, delete-orphan')
    swipes_made = db.relationship('Swipe', foreign_keys='Swipe.swiper_id', backref='swiper', lazy='dynamic')
    swipes_received = db.relationship('Swipe', foreign_keys='Swipe.swipee_id', backref='swipee', lazy='dynamic')

    def touch(self):
        """Mark the user as active now"""
        self.last_active = datetime.utcnow()

    def __repr__(self):
        return f'<User {self.email}>'

    def to_dict(self):
        """Convert to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'email': self.email,
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'lastActive': self.last_active.isoformat() if self.last_active else None
        }
