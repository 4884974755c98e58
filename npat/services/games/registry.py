import logging
import threading
from typing import Dict, List, Optional

from npat.models import GameSession, Player
from .errors import (
    CodeInUse,
    GameInProgress,
    InvalidRequest,
    NameTaken,
    NoSuchCode,
    PoolExhausted,
    RoomFull,
)


def _parse_rounds(rounds) -> int:
    try:
        value = int(rounds)
    except (TypeError, ValueError):
        raise InvalidRequest('Invalid number of rounds')
    if value < 1:
        raise InvalidRequest('Invalid number of rounds')
    return value


def _parse_categories(categories) -> List[str]:
    if not isinstance(categories, (list, tuple)) or not categories:
        raise InvalidRequest('At least one category is required')
    return [str(c) for c in categories]


def _require(value, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest(f'{what} is required')
    return value


class SessionRegistry:
    """Room code -> GameSession map owned by one application instance.

    The registry lock only guards the map itself. Anything touching a
    session's roster or round data takes that session's lock, always after
    the registry lock when both are needed.
    """

    def __init__(self, max_players: int = 10, avatar_count: int = 10,
                 discard_empty: bool = True, logger=None, rng=None):
        self.max_players = max_players
        self.avatar_count = avatar_count
        self.discard_empty = discard_empty
        self.logger = logger or logging.getLogger(__name__)
        self._rng = rng
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def find(self, code) -> Optional[GameSession]:
        if not isinstance(code, str):
            return None
        with self._lock:
            return self._sessions.get(code)

    def get(self, code) -> GameSession:
        session = self.find(_require(code, 'Game code'))
        if session is None:
            raise NoSuchCode()
        return session

    def find_player(self, player_id) -> Optional[Player]:
        with self._lock:
            sessions = list(self._sessions.values())
        for session in sessions:
            with session.lock:
                player = session.get_player(player_id)
            if player:
                return player
        return None

    def create(self, code, name, rounds, categories, scoring_type, player_id) -> GameSession:
        code = _require(code, 'Game code')
        name = _require(name, 'Name')
        max_rounds = _parse_rounds(rounds)
        categories = _parse_categories(categories)

        with self._lock:
            if code in self._sessions:
                raise CodeInUse()
            if self._is_member(player_id):
                raise InvalidRequest('Already in a game')
            session = GameSession(
                code, max_rounds, categories, scoring_type,
                avatar_count=self.avatar_count, rng=self._rng,
            )
            with session.lock:
                self._add_player(session, player_id, name)
            self._sessions[code] = session

        self.logger.info(f"[create] code={code} player={player_id} rounds={max_rounds} categories={len(categories)}")
        return session

    def join(self, code, name, player_id) -> GameSession:
        session = self.find(_require(code, 'Game code'))
        if session is None:
            raise NoSuchCode('Invalid Game Code')
        name = _require(name, 'Name')
        if self.find_player(player_id):
            raise InvalidRequest('Already in a game')

        with session.lock:
            # Lost a race with the last player leaving
            if session.closed:
                raise NoSuchCode('Invalid Game Code')
            if session.has_name(name):
                raise NameTaken()
            if session.started:
                raise GameInProgress()
            if len(session.users) >= self.max_players:
                raise RoomFull()
            self._add_player(session, player_id, name)

        self.logger.info(f"[join] code={code} player={player_id} players={len(session.users)}")
        return session

    def remove(self, player_id) -> Optional[Player]:
        """Detach a player from whichever session holds it. Absent ids are a no-op."""
        with self._lock:
            for code, session in list(self._sessions.items()):
                with session.lock:
                    player = session.get_player(player_id)
                    if player is None:
                        continue
                    session.users.remove(player)
                    session.avatar_pool.release(player.avatar_index)
                    player.clear_rounds()
                    if not session.users and self.discard_empty:
                        self._discard_locked(code)
                self.logger.info(f"[leave] code={code} player={player_id} players={len(session.users)}")
                return player
        return None

    def discard(self, code) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return None
            with session.lock:
                self._discard_locked(code)
            return session

    def _discard_locked(self, code) -> None:
        session = self._sessions.pop(code)
        session.closed = True
        # Any running countdown sees the cleared handle and stops
        session.timer_handle = None
        session.current_timer_value = 0
        self.logger.info(f"[discard] code={code}")

    def _is_member(self, player_id) -> bool:
        return any(s.get_player(player_id) for s in self._sessions.values())

    def _add_player(self, session: GameSession, player_id, name) -> Player:
        try:
            avatar = session.avatar_pool.draw_random()
        except PoolExhausted:
            # Capacity is checked first, so this means the pool went out of sync
            self.logger.error(f"[avatar-exhausted] code={session.code} players={len(session.users)}")
            raise
        player = Player(player_id, name, session.code, avatar)
        session.users.append(player)
        return player
