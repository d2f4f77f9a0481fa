from datetime import datetime
from extensions import db


class Match(db.Model):
    __tablename__ = 'matches'

    id = db.Column(db.Integer, primary_key=True)
    # Stored in canonical order: user1_id < user2_id
    user1_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    user2_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user1 = db.relationship('User', foreign_keys=[user1_id])
    user2 = db.relationship('User', foreign_keys=[user2_id])

    # One match per unordered pair
    __table_args__ = (
        db.UniqueConstraint('user1_id', 'user2_id', name='uq_match_pair'),
        db.CheckConstraint('user1_id < user2_id', name='check_match_user_order'),
    )

    @staticmethod
    def ordered_pair(user_a_id, user_b_id):
        """Return the pair in the order it is stored"""
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)

    @classmethod
    def for_pair(cls, user_a_id, user_b_id):
        user1_id, user2_id = cls.ordered_pair(user_a_id, user_b_id)
        return cls(user1_id=user1_id, user2_id=user2_id)

    @property
    def user_ids(self):
        return [self.user1_id, self.user2_id]

    def other_user_id(self, user_id):
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def __repr__(self):
        return f'<Match {self.user1_id}<->{self.user2_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'users': self.user_ids,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }
