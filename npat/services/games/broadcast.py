class Broadcaster:
    """Room-wide emitter used by the services.

    Wraps ``socketio.emit`` so it works both inside a handler and from a
    background task where no request context exists.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def __call__(self, code, event, payload=None):
        # Without a room socketio.emit goes to every connected client
        if not code:
            raise ValueError(f'{event} needs a room code')
        if payload is None:
            self.socketio.emit(event, to=code, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=code, namespace=self.namespace)
