from datetime import datetime
from enum import Enum
from extensions import db


class SwipeDirection(Enum):
    LIKE = 'like'
    DISLIKE = 'dislike'
    SUPERLIKE = 'superlike'

    @property
    def is_positive(self):
        return self in POSITIVE_DIRECTIONS


POSITIVE_DIRECTIONS = (SwipeDirection.LIKE, SwipeDirection.SUPERLIKE)


class Swipe(db.Model):
    """One user's decision about another. Written once, never updated."""
    __tablename__ = 'swipes'

    id = db.Column(db.Integer, primary_key=True)
    swiper_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    swipee_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    direction = db.Column(
        db.Enum(SwipeDirection, values_callable=lambda e: [m.value for m in e], name='swipe_direction'),
        nullable=False
    )
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # The unique pair is what rejects concurrent duplicate swipes
    __table_args__ = (
        db.UniqueConstraint('swiper_id', 'swipee_id', name='uq_swipe_pair'),
        db.CheckConstraint('swiper_id != swipee_id', name='check_no_self_swipe'),
        db.Index('idx_swipe_direction_timestamp', 'direction', 'timestamp'),
    )

    def __repr__(self):
        return f'<Swipe {self.swiper_id}->{self.swipee_id} {self.direction.value}>'

    def to_dict(self):
        return {
            'id': self.id,
            'swiperId': self.swiper_id,
            'swipeeId': self.swipee_id,
            'direction': self.direction.value if self.direction else None,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None
        }
