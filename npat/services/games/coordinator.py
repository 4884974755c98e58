import logging
from typing import Callable, List, Optional, Sequence, Tuple

from npat.models import (
    AWAITING_READY,
    AWAITING_SCORES,
    ENDED,
    ROUND_ACTIVE,
    GameSession,
    Player,
)
from .errors import GameInProgress, InvalidRequest, InvalidScore, NoSuchCode


def score_partners(users: Sequence[Player]) -> List[Tuple[Player, Player]]:
    """Pair every player with the next one in roster order, wrapping around."""
    n = len(users)
    return [(users[i], users[(i + 1) % n]) for i in range(n)]


def _parse_round(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest('Invalid round')


def _parse_score(value, ceiling: int) -> int:
    if isinstance(value, bool):
        raise InvalidScore()
    if isinstance(value, float) and not value.is_integer():
        raise InvalidScore()
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise InvalidScore()
    if score < 0 or score > ceiling:
        raise InvalidScore()
    return score


class RoundCoordinator:
    """Drives a session through its rounds.

    Phases: lobby -> round_active -> awaiting_scores -> awaiting_ready, then
    either back to round_active for the next round or, after the last round,
    ended (immediately reset to a fresh lobby).

    Submissions are recorded per round and the barrier for the current phase
    is re-checked against the roster as it is at that moment. A barrier moves
    the phase forward, so it fires once per round no matter how often players
    resubmit.
    """

    def __init__(self, registry, timer, broadcast: Callable, points_per_category: int = 10, logger=None):
        self.registry = registry
        self.timer = timer
        self.broadcast = broadcast
        self.points_per_category = points_per_category
        self.logger = logger or logging.getLogger(__name__)

    # ---- Roster ----

    def create(self, player_id, code, name, rounds, categories, scoring_type=None) -> GameSession:
        return self.registry.create(code, name, rounds, categories, scoring_type, player_id)

    def join(self, player_id, code, name) -> GameSession:
        return self.registry.join(code, name, player_id)

    def leave(self, player_id) -> Optional[Player]:
        """Remove a player (explicit leave or disconnect) and tell the room."""
        player = self.registry.remove(player_id)
        if player is None:
            return None
        session = self.registry.find(player.code)
        if session is None:
            self.broadcast(player.code, 'gameData', {'users': []})
            return player
        with session.lock:
            if session.closed:
                return player
            self.broadcast(session.code, 'gameData', {'users': self._users(session)})
            # The leaver may have been the last one holding up a barrier
            self._evaluate(session)
        return player

    def player_code(self, player_id) -> Optional[str]:
        player = self.registry.find_player(player_id)
        return player.code if player else None

    def users(self, code) -> List[dict]:
        session = self.registry.find(code)
        if session is None:
            return []
        with session.lock:
            return self._users(session)

    def snapshot(self, code) -> dict:
        session = self._session(code)
        with session.lock:
            return session.to_dict()

    # ---- Rounds ----

    def start_game(self, code) -> dict:
        session = self._session(code)
        with session.lock:
            self._ensure_open(session)
            if session.started:
                raise GameInProgress()
            session.started = True
            session.current_round = 1
            session.phase = ROUND_ACTIVE
            session.draw_letter()
            self.timer.start_session(session)
            state = session.to_dict()
            self.broadcast(code, 'gameStarted', {'gameState': state})
        self.logger.info(f"[start] code={code} letter={state['currentAlphabet']} players={len(state['users'])}")
        return state

    def restart_game(self, code) -> None:
        session = self._session(code)
        with session.lock:
            self._ensure_open(session)
            self.broadcast(session.code, 'restartGame')

    def submit_response(self, player_id, code, round, response) -> dict:
        round_no = _parse_round(round)
        session = self._session(code)
        with session.lock:
            self._ensure_open(session)
            player = session.get_player(player_id)
            if player is not None:
                player.responses[round_no] = response
                self._evaluate(session)
            return session.to_dict()

    def submit_score(self, player_id, code, round, score) -> dict:
        """Record ``score`` for ``player_id``, the player whose response was marked."""
        round_no = _parse_round(round)
        session = self._session(code)
        with session.lock:
            self._ensure_open(session)
            value = _parse_score(score, self.points_per_category * len(session.categories))
            player = session.get_player(player_id)
            if player is not None:
                player.scores[round_no] = value
                self._evaluate(session)
            return session.to_dict()

    def set_ready(self, player_id, code, round) -> dict:
        round_no = _parse_round(round)
        session = self._session(code)
        with session.lock:
            self._ensure_open(session)
            player = session.get_player(player_id)
            if player is not None:
                player.ready[round_no] = True
                self._evaluate(session)
            return session.to_dict()

    def stop_timer(self, code) -> bool:
        return self.timer.stop(code)

    # ---- Internals (session lock held) ----

    def _session(self, code) -> GameSession:
        return self.registry.get(code)

    def _ensure_open(self, session: GameSession) -> None:
        if session.closed:
            raise NoSuchCode()

    def _users(self, session: GameSession) -> List[dict]:
        return [u.to_dict() for u in session.users]

    def _evaluate(self, session: GameSession) -> None:
        users = session.users
        # An empty roster never completes a round
        if not users or not session.started:
            return
        rnd = session.current_round

        if session.phase == ROUND_ACTIVE and all(u.responses.get(rnd) for u in users):
            session.phase = AWAITING_SCORES
            partners = [[a.to_dict(), b.to_dict()] for a, b in score_partners(users)]
            self.broadcast(session.code, 'allSubmitted', {
                'gameState': session.to_dict(),
                'scorePartners': partners,
            })
            self.logger.info(f"[all-submitted] code={session.code} round={rnd}")

        if session.phase == AWAITING_SCORES and all(rnd in u.scores for u in users):
            session.phase = AWAITING_READY
            self.broadcast(session.code, 'allScoresSubmitted', {'gameState': session.to_dict()})
            self.logger.info(f"[all-scored] code={session.code} round={rnd}")

        if session.phase == AWAITING_READY and all(u.ready.get(rnd) for u in users):
            if rnd >= session.max_rounds:
                self._end_game(session)
            else:
                self._next_round(session)

    def _next_round(self, session: GameSession) -> None:
        prev_round = session.current_round
        session.current_round += 1
        session.phase = ROUND_ACTIVE
        session.draw_letter()
        self.timer.start_session(session)
        self.broadcast(session.code, 'allPlayersReady', {'gameState': session.to_dict()})
        self.logger.info(
            f"[round-advance] code={session.code} round {prev_round} -> {session.current_round} letter={session.current_alphabet}"
        )

    def _end_game(self, session: GameSession) -> None:
        scores = [
            {'name': u.name, 'score': u.total_score(), 'avatarId': u.avatar_index}
            for u in session.users
        ]
        session.phase = ENDED
        self.timer.cancel(session)
        self.logger.info(f"[game-end] code={session.code} rounds={session.current_round}")
        session.reset_to_lobby()
        self.broadcast(session.code, 'gameEnded', {'scores': scores, 'gameState': session.to_dict()})
