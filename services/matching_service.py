from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from models.match import Match
from models.user import User
from utils.logging_config import log_audit


class MatchingService:
    """Creates and lists matches.

    The unique (user1_id, user2_id) constraint is the guarantee that a pair
    is matched once; the lookup before the insert only avoids a failed
    insert in the common case.
    """

    def __init__(self, db, logger):
        self.db = db
        self.logger = logger

    def find_match(self, user_a_id, user_b_id):
        user1_id, user2_id = Match.ordered_pair(user_a_id, user_b_id)
        return Match.query.filter_by(user1_id=user1_id, user2_id=user2_id).first()

    def create_match(self, user_a_id, user_b_id):
        """Create the match for a mutually liking pair.

        Returns (match, created). Runs inside the caller's transaction and
        does not commit.
        """
        existing = self.find_match(user_a_id, user_b_id)
        if existing:
            self.logger.info(f"Match already exists for users {user_a_id} and {user_b_id}")
            return existing, False

        match = Match.for_pair(user_a_id, user_b_id)
        try:
            with self.db.session.begin_nested():
                self.db.session.add(match)
        except IntegrityError:
            # Lost the race against the other user's reciprocal swipe
            self.logger.info(f"Concurrent match creation for users {user_a_id} and {user_b_id}")
            existing = self.find_match(user_a_id, user_b_id)
            if existing is None:
                raise
            return existing, False

        log_audit(self.logger, user_a_id, 'match_created', {'match_id': match.id, 'with_user': user_b_id})
        return match, True

    def get_user_matches(self, user_id):
        """Matches involving user_id, newest first, with the other party's summary"""
        matches = Match.query.filter(
            or_(Match.user1_id == user_id, Match.user2_id == user_id)
        ).order_by(Match.created_at.desc(), Match.id.desc()).all()

        result = []
        for match in matches:
            other_user = self.db.session.get(User, match.other_user_id(user_id))
            if not other_user or not other_user.profile:
                self.logger.warning(f"Match {match.id} references a user without a profile")
                continue

            data = match.to_dict()
            data['user'] = dict(other_user.profile.summary(), id=other_user.id)
            result.append(data)

        return result
