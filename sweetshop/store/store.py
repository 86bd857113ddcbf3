"""State container with a pure reducer."""

from typing import Any, Callable, Generic, List, NamedTuple, TypeVar

from sweetshop.store.events import SignalBus

S = TypeVar("S")


class Action(NamedTuple):
    type: str
    payload: Any = None


Reducer = Callable[[S, Action], S]


class Store(Generic[S]):
    """Holds one slice of state. State only changes through ``dispatch``.

    Reducers must return the same object when an action does not apply,
    which lets listeners skip no-op dispatches.
    """

    def __init__(self, name: str, reducer: Reducer, initial_state: S):
        self.name = name
        self._reducer = reducer
        self._state = initial_state
        self._listeners: List[Callable[[S], None]] = []

    @property
    def state(self) -> S:
        return self._state

    def dispatch(self, action: Action) -> S:
        new_state = self._reducer(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def connect(self, bus: SignalBus, *signals: str) -> List[Callable[[], None]]:
        """Dispatch each published signal into this store as an action of the same type."""
        return [
            bus.subscribe(signal, lambda payload, signal=signal: self.dispatch(Action(signal, payload)))
            for signal in signals
        ]
