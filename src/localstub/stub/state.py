"""
LocalStub State Store

Per-route state machine that decides which of several canned responses is
served for a call, so that repeated requests to one endpoint can walk through
a sequence of responses.

Candidates registered for one route are tried in three tiers:
1. responses whose required state equals the stored state
2. responses that require the initial (nothing stored yet) state
3. wildcard responses with no state requirement
Within a tier the earliest registration wins. Serving a response with a next
state stores that state under the route's state key, which several routes
may share.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .response import StateTransition, StubResponse

logger = logging.getLogger("localstub.state")


def sequence_transitions(responses: Iterable[StubResponse]) -> List[StubResponse]:
    """
    Chain responses into a strictly linear sequence.

    Step 1 requires the initial state; step k (k > 1) requires state
    str(k - 1). Every step k moves the store to str(k), so after the last
    step no candidate is eligible and further calls fall through to the
    server's default response.

    Args:
        responses: Responses in the order they should be served

    Returns:
        Copies of the responses with their transitions replaced
    """
    chained = []
    for index, response in enumerate(responses, start=1):
        if index == 1:
            transition = StateTransition(initial=True, next_state="1")
        else:
            transition = StateTransition(required_state=str(index - 1), next_state=str(index))
        chained.append(replace(response, transition=transition))
    return chained


class StateStore:
    """
    Stored state and stateful candidates, keyed by logical route.

    State lives for the lifetime of the store and is never cleared
    implicitly; tests reset it explicitly for isolation.

    Example:
        store = StateStore()
        store.add('GET /users', StubResponse().with_body('A').will_set_state_to('1'))
        store.add('GET /users', StubResponse().with_body('B').when_state_is('1'))

        store.select('GET /users').body  # b'A'
        store.select('GET /users').body  # b'B'
    """

    def __init__(self):
        self._states: Dict[str, str] = {}
        # Candidates per route, and the state key each route reads
        self._responses: Dict[str, List[StubResponse]] = {}
        self._state_keys: Dict[str, str] = {}

    def __contains__(self, route: str) -> bool:
        return route in self._responses

    def keys(self) -> List[str]:
        """Return every state key that has candidates."""
        return list(dict.fromkeys(self._state_keys.values()))

    def current(self, key: str) -> Optional[str]:
        """Return the stored state for a key, or None if nothing is stored."""
        return self._states.get(key)

    def set_state(self, key: str, state: Optional[str]):
        """Store a state for a key; None returns the key to its initial state."""
        if state is None:
            self._states.pop(key, None)
        else:
            self._states[key] = str(state)
        logger.debug(f"State for {key!r} set to {state!r}")

    def reset(self, key: Optional[str] = None):
        """Forget stored state for one key, or for every key."""
        if key is None:
            self._states.clear()
        else:
            self._states.pop(key, None)

    def clear(self):
        """Forget stored state and every registered candidate."""
        self._states.clear()
        self._responses.clear()
        self._state_keys.clear()

    def add(self, key: str, response: StubResponse, route: Optional[str] = None) -> bool:
        """
        Register a candidate response.

        Args:
            key: State key the candidate reads and advances
            response: Candidate response
            route: Route the candidate answers for; defaults to the key.
                Several routes may share one state key.

        Returns:
            True if this is the first candidate for the route
        """
        route = route or key
        self._state_keys[route] = key
        candidates = self._responses.setdefault(route, [])
        candidates.append(response)
        return len(candidates) == 1

    def state_key(self, route: str) -> str:
        """Return the state key a route reads."""
        return self._state_keys.get(route, route)

    def responses(self, route: str) -> List[StubResponse]:
        return list(self._responses.get(route, []))

    def eligible(self, route: str) -> Optional[StubResponse]:
        """Return the response that would be served now, without advancing."""
        return self._pick(self._responses.get(route, []), self.current(self.state_key(route)))

    def select(self, route: str) -> Optional[StubResponse]:
        """
        Pick the response to serve for a route and apply its transition.

        Returns:
            The chosen response, or None if no candidate accepts the stored state
        """
        key = self.state_key(route)
        current = self.current(key)
        chosen = self._pick(self._responses.get(route, []), current)

        if chosen is None:
            logger.debug(f"No stateful response for {route!r} in state {current!r}")
            return None

        if chosen.next_state is not None:
            self._states[key] = chosen.next_state
            logger.debug(f"State for {key!r}: {current!r} -> {chosen.next_state!r}")

        return chosen

    def snapshot(self) -> Dict[str, Dict]:
        """Describe every route for admin output."""
        return {
            route: {
                'key': self.state_key(route),
                'state': self._states.get(self.state_key(route)),
                'responses': [r.to_dict() for r in candidates],
                'eligible': self._describe(self.eligible(route))
            }
            for route, candidates in self._responses.items()
        }

    @staticmethod
    def _describe(response: Optional[StubResponse]) -> Optional[Dict]:
        return response.to_dict() if response is not None else None

    @staticmethod
    def _pick(candidates: List[StubResponse], current: Optional[str]) -> Optional[StubResponse]:
        exact = initial = wildcard = None

        for response in candidates:
            transition = response.transition
            if transition is not None and not transition.accepts(current):
                continue
            if transition is None or transition.is_wildcard:
                wildcard = wildcard or response
            elif transition.initial:
                initial = initial or response
            else:
                exact = response
                break

        return exact or initial or wildcard
