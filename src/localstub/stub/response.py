"""
LocalStub Responses

Immutable stub responses and the state transitions that make them part of a
stateful sequence.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union, TYPE_CHECKING

from ..common.utils import guess_content_type, read_fixture
from .methods import HTTPMethod
from .transport import get_active_server

if TYPE_CHECKING:
    from .server import StubServer


@dataclass(frozen=True)
class StateTransition:
    """
    State condition and effect attached to a stateful response.

    Attributes:
        required_state: State the store must hold for the response to be
            eligible. None is a wildcard that matches any state.
        next_state: State stored after the response is served. None leaves
            the stored state untouched.
        initial: Only eligible while no state has been stored for the key.
    """

    required_state: Optional[str] = None
    next_state: Optional[str] = None
    initial: bool = False

    @property
    def is_wildcard(self) -> bool:
        return self.required_state is None and not self.initial

    def accepts(self, current: Optional[str]) -> bool:
        """Check whether this transition is eligible in the given state."""
        if self.initial:
            return current is None
        if self.required_state is None:
            return True
        return current == self.required_state


@dataclass(frozen=True)
class StubResponse:
    """
    Canned HTTP response served by the stub engine.

    Builder methods return modified copies; instances are never mutated.

    Example:
        response = (StubResponse()
                    .with_status_code(201)
                    .with_json({'id': 42})
                    .when_state_is('1')
                    .will_set_state_to('2'))
    """

    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    transition: Optional[StateTransition] = None

    def with_status_code(self, status_code: int) -> StubResponse:
        return replace(self, status_code=int(status_code))

    def with_headers(self, headers: Dict[str, str]) -> StubResponse:
        """Return a copy with the given headers merged over the current ones."""
        return replace(self, headers={**self.headers, **headers})

    def with_body(self, body: Union[str, bytes]) -> StubResponse:
        if isinstance(body, str):
            body = body.encode('utf-8')
        return replace(self, body=bytes(body))

    def with_json(self, payload: Any) -> StubResponse:
        """Return a copy with a JSON body and a JSON Content-Type."""
        return (self.with_body(json.dumps(payload))
                .with_headers({'Content-Type': 'application/json'}))

    def when_state_is(self, state: str) -> StubResponse:
        """Return a copy that is only served while the route is in `state`."""
        current = self.transition or StateTransition()
        return replace(self, transition=replace(current, required_state=str(state), initial=False))

    def when_state_is_initial(self) -> StubResponse:
        """Return a copy that is only served before any state is stored."""
        current = self.transition or StateTransition()
        return replace(self, transition=replace(current, required_state=None, initial=True))

    def will_set_state_to(self, state: str) -> StubResponse:
        """Return a copy that moves the route to `state` once served."""
        current = self.transition or StateTransition()
        return replace(self, transition=replace(current, next_state=str(state)))

    @property
    def required_state(self) -> Optional[str]:
        return self.transition.required_state if self.transition else None

    @property
    def next_state(self) -> Optional[str]:
        return self.transition.next_state if self.transition else None

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the response for admin output."""
        return {
            'status': self.status_code,
            'headers': dict(self.headers),
            'body_size': len(self.body),
            'required_state': self.required_state,
            'next_state': self.next_state,
            'initial': bool(self.transition and self.transition.initial),
        }

    @classmethod
    def from_file(
        cls,
        file_path: Union[str, Path],
        content_type: Optional[str] = None,
        status_code: int = 200
    ) -> StubResponse:
        """
        Build a response whose body is read from a fixture file.

        Args:
            file_path: Fixture path
            content_type: Content-Type header; guessed from the extension if omitted
            status_code: HTTP status

        Raises:
            FileNotFoundError: If the fixture doesn't exist
        """
        return cls(
            status_code=status_code,
            headers={'Content-Type': content_type or guess_content_type(file_path)},
            body=read_fixture(file_path)
        )

    def send_to(
        self,
        pattern: str,
        methods: Iterable[Union[str, HTTPMethod]] = (HTTPMethod.GET,),
        server: Optional[StubServer] = None,
        scenario: Optional[str] = None
    ) -> StubResponse:
        """
        Register this response for `pattern` on a server.

        Args:
            pattern: Literal substring or regex matched against request URLs
            methods: Methods to register under (GET by default)
            server: Target server; the active server when omitted
            scenario: Explicit state key shared by every method

        Returns:
            self, so calls can be chained in fixtures

        Raises:
            RuntimeError: If no server is given and none is active
        """
        target = server or get_active_server()
        if target is None:
            raise RuntimeError("No active stub server; call activate(server) first")
        target.stub(methods, pattern, self, scenario=scenario)
        return self
