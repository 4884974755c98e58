import threading
from typing import Any, Dict, List, Optional

from npat.services.games.pool import ALPHABET, ResourcePool, avatar_tokens

# Session phases
LOBBY = 'lobby'
ROUND_ACTIVE = 'round_active'
AWAITING_SCORES = 'awaiting_scores'
AWAITING_READY = 'awaiting_ready'
ENDED = 'ended'


def normalize_name(name: str) -> str:
    return (name or '').strip().lower()


class Player:
    def __init__(self, id: str, name: str, code: str, avatar_index: Optional[int] = None):
        self.id = id
        self.name = name
        self.code = code
        self.avatar_index = avatar_index
        # Keyed by round number
        self.responses: Dict[int, Any] = {}
        self.scores: Dict[int, int] = {}
        self.ready: Dict[int, bool] = {}

    def clear_rounds(self) -> None:
        self.responses = {}
        self.scores = {}
        self.ready = {}

    def total_score(self) -> int:
        return sum(int(s) for s in self.scores.values())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'avatarIndex': self.avatar_index,
            'responses': dict(self.responses),
            'scores': dict(self.scores),
            'ready': dict(self.ready),
        }


class GameSession:
    """One room's state.

    All reads and writes that must be consistent with each other happen while
    holding ``lock``; it is re-entrant so the coordinator can call into the
    timer without releasing it.
    """

    def __init__(self, code: str, max_rounds: int, categories: List[str], scoring_type=None,
                 avatar_count: int = 10, rng=None):
        self.code = code
        self.lock = threading.RLock()
        self.users: List[Player] = []
        self.started = False
        self.phase = LOBBY
        self.current_round = 0
        self.max_rounds = max_rounds
        self.categories = list(categories)
        self.scoring_type = scoring_type
        self.avatar_pool = ResourcePool(avatar_tokens(avatar_count), rng=rng)
        self.letter_pool = ResourcePool(ALPHABET, rng=rng)
        self.current_alphabet = ''
        self.current_timer_value = 0
        self.timer_handle: Optional[int] = None
        # Set once the registry drops the session
        self.closed = False

    def get_player(self, player_id: str) -> Optional[Player]:
        for user in self.users:
            if user.id == player_id:
                return user
        return None

    def has_name(self, name: str) -> bool:
        wanted = normalize_name(name)
        return any(normalize_name(u.name) == wanted for u in self.users)

    def draw_letter(self) -> str:
        # Every round draws from the full alphabet
        self.letter_pool.reset(ALPHABET)
        self.current_alphabet = self.letter_pool.draw_random()
        return self.current_alphabet

    def reset_to_lobby(self) -> None:
        """Return to a lobby-shaped record, keeping settings, roster and avatars."""
        self.started = False
        self.phase = LOBBY
        self.current_round = 0
        self.letter_pool.reset(ALPHABET)
        self.current_alphabet = ''
        self.current_timer_value = 0
        self.timer_handle = None
        for user in self.users:
            user.clear_rounds()

    def to_dict(self):
        return {
            'code': self.code,
            'users': [u.to_dict() for u in self.users],
            'started': self.started,
            'phase': self.phase,
            'currentRound': self.current_round,
            'maxRounds': self.max_rounds,
            'categories': list(self.categories),
            'scoringType': self.scoring_type,
            'currentAlphabet': self.current_alphabet,
            'currentTimerValue': self.current_timer_value,
        }
