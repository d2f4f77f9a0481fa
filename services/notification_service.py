from extensions import db
from models.user import User


class MatchNotifier:
    """Best-effort, at-most-once match notifications.

    A participant without a registered connection simply misses the event;
    nothing is queued or retried.
    """

    EVENT = 'new_match'

    def __init__(self, socketio, registry, logger):
        self.socketio = socketio
        self.registry = registry
        self.logger = logger

    def notify_match(self, match, user_a_id, user_b_id):
        """Emit new_match to both participants; returns how many were reached"""
        delivered = 0
        for recipient_id, other_id in ((user_a_id, user_b_id), (user_b_id, user_a_id)):
            if self._notify(match, recipient_id, other_id):
                delivered += 1
        return delivered

    def _notify(self, match, recipient_id, other_id):
        sid = self.registry.lookup(recipient_id)
        if not sid:
            self.logger.debug(f"No live connection for user {recipient_id}, dropping {self.EVENT}")
            return False

        other_user = db.session.get(User, other_id)
        if other_user is None or other_user.profile is None:
            self.logger.warning(f"Cannot build {self.EVENT} payload, user {other_id} has no profile")
            return False

        payload = {
            'matchId': match.id,
            'user': other_user.profile.summary()
        }
        try:
            self.socketio.emit(self.EVENT, payload, to=sid)
        except Exception as e:
            self.logger.error(f"Failed to send match notification to user {recipient_id}: {e}")
            return False

        self.logger.info(f"Sent {self.EVENT} for match {match.id} to user {recipient_id}")
        return True
