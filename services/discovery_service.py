"""
Candidate discovery and swipe recording
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models.match import Match
from models.profile import UserProfile
from models.swipe import Swipe, SwipeDirection, POSITIVE_DIRECTIONS
from models.user import User
from services.matching_service import MatchingService
from utils.errors import DuplicateSwipeError, InvalidSwipeError, UserNotFoundError
from utils.geo import bounding_box, haversine_km, round_distance
from utils.logging_config import log_audit

DEFAULT_RESULT_LIMIT = 20


@dataclass
class CandidateView:
    """A candidate's public profile plus the distance to the requester, if known"""
    profile: UserProfile
    distance: Optional[float] = None

    @property
    def user_id(self):
        return self.profile.user_id

    def to_dict(self):
        data = self.profile.to_dict()
        if self.distance is not None:
            data['distance'] = self.distance
        return data


@dataclass
class SwipeResult:
    swipe: Swipe
    match: Optional[Match] = None
    # True only for the call that inserted the match
    match_created: bool = False

    @property
    def is_match(self):
        return self.match is not None

    def to_dict(self):
        data = {
            'swipe': self.swipe.to_dict(),
            'isMatch': self.is_match
        }
        if self.match is not None:
            data['match'] = self.match.to_dict()
        return data


class DiscoveryService:
    def __init__(self, db, logger, result_limit=DEFAULT_RESULT_LIMIT, matching_service=None):
        self.db = db
        self.logger = logger
        self.result_limit = result_limit
        self.matching_service = matching_service or MatchingService(db, logger)

    def _get_active_user(self, user_id):
        user = self.db.session.get(User, user_id)
        if not user or not user.is_active or not user.profile:
            raise UserNotFoundError('User not found')
        return user

    def get_candidates(self, user_id):
        """Up to result_limit users the requester may swipe on"""
        user = self._get_active_user(user_id)
        profile = user.profile
        prefs = user.preferences
        if prefs is None:
            raise UserNotFoundError('User preferences not found')

        already_swiped = select(Swipe.swipee_id).where(Swipe.swiper_id == user.id)

        query = UserProfile.query.join(User, User.id == UserProfile.user_id).filter(
            User.id != user.id,
            User.id.not_in(already_swiped),
            User.is_active.is_(True),
            UserProfile.age >= prefs.min_age,
            UserProfile.age <= prefs.max_age,
            UserProfile.gender.in_(prefs.allowed_genders())
        )

        if not profile.has_location:
            candidates = query.order_by(User.id).limit(self.result_limit).all()
            return [CandidateView(candidate) for candidate in candidates]

        box = bounding_box(profile.latitude, profile.longitude, prefs.max_distance)
        query = query.filter(
            UserProfile.latitude.isnot(None),
            UserProfile.longitude.isnot(None),
            UserProfile.latitude.between(box.min_lat, box.max_lat)
        )
        if box.min_lon is not None:
            query = query.filter(UserProfile.longitude.between(box.min_lon, box.max_lon))

        nearby = []
        for candidate in query.all():
            distance = haversine_km(profile.latitude, profile.longitude,
                                    candidate.latitude, candidate.longitude)
            if distance <= prefs.max_distance:
                nearby.append((distance, candidate.user_id, candidate))

        nearby.sort(key=lambda item: (item[0], item[1]))
        self.logger.debug(f"Discovery for user {user.id}: {len(nearby)} candidates within "
                          f"{prefs.max_distance} km")

        return [
            CandidateView(candidate, round_distance(distance))
            for distance, _, candidate in nearby[:self.result_limit]
        ]

    def _parse_direction(self, direction):
        if isinstance(direction, SwipeDirection):
            return direction
        try:
            return SwipeDirection(direction)
        except ValueError:
            allowed = ', '.join(d.value for d in SwipeDirection)
            raise InvalidSwipeError(f"direction must be one of: {allowed}")

    def _parse_user_id(self, value):
        if isinstance(value, bool):
            raise InvalidSwipeError('swipeeId must be a user id')
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvalidSwipeError('swipeeId must be a user id')

    def record_swipe(self, swiper_id, swipee_id, direction):
        """Record a swipe and create the match if the like is mutual.

        The swipe and the match are committed together.
        """
        direction = self._parse_direction(direction)
        swipee_id = self._parse_user_id(swipee_id)

        if swiper_id == swipee_id:
            raise InvalidSwipeError('Cannot swipe on yourself')

        self._get_active_user(swiper_id)
        if self.db.session.get(User, swipee_id) is None:
            raise UserNotFoundError('User not found')

        existing = Swipe.query.filter_by(swiper_id=swiper_id, swipee_id=swipee_id).first()
        if existing:
            raise DuplicateSwipeError()

        swipe = Swipe(swiper_id=swiper_id, swipee_id=swipee_id, direction=direction)
        try:
            self.db.session.add(swipe)
            self.db.session.flush()
        except IntegrityError:
            # Concurrent request inserted the same pair first
            self.db.session.rollback()
            raise DuplicateSwipeError()

        result = SwipeResult(swipe)
        try:
            if direction.is_positive:
                reciprocal = Swipe.query.filter(
                    Swipe.swiper_id == swipee_id,
                    Swipe.swipee_id == swiper_id,
                    Swipe.direction.in_(POSITIVE_DIRECTIONS)
                ).first()

                if reciprocal:
                    result.match, result.match_created = self.matching_service.create_match(swiper_id, swipee_id)

            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise

        log_audit(self.logger, swiper_id, 'swipe', {
            'swipee_id': swipee_id,
            'direction': direction.value,
            'is_match': result.is_match
        })
        return result
