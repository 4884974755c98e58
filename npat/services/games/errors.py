"""Errors raised by the game services.

Every ``GameError`` carries the caller-facing ``message`` that the Socket.IO
handlers send back as ``{'error': message}``. ``PoolExhausted`` sits outside
that hierarchy so the handlers never catch it.
"""


class GameError(Exception):
    message = 'Something went wrong'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class CodeInUse(GameError):
    message = 'Generate New Game Code'


class NoSuchCode(GameError):
    message = 'Game not found'


class NameTaken(GameError):
    message = 'Username is taken'


class GameInProgress(GameError):
    message = 'The Game is in progress'


class RoomFull(GameError):
    message = 'Uh.. oh.. too many players in the game'


class InvalidScore(GameError):
    message = 'Invalid Score Value'


class InvalidRequest(GameError):
    message = 'Invalid request'


class PoolExhausted(RuntimeError):
    """A pool was drawn from while empty.

    Not a player error: capacity checks should make it unreachable, so it is
    raised to the caller instead of being turned into an error reply.
    """
