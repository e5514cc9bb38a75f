"""
Tests for LocalStub Router

Tests per-method routing including:
- Literal substring and regex pattern matching
- First-match-wins ordering
- Parameter merging passed to handlers
- Invalid regex handling and strict mode
- Missing URL precondition
"""

import pytest
from unittest.mock import Mock

from localstub.errors import MissingURLError, PatternError
from localstub.stub.methods import HTTPMethod
from localstub.stub.request import StubRequest
from localstub.stub.response import StubResponse
from localstub.stub.router import Router, RoutePattern, NO_MATCH


@pytest.fixture
def router():
    """Empty GET router."""
    return Router(HTTPMethod.GET)


def responder(body):
    """Handler returning a fixed body."""
    return lambda request, params: StubResponse().with_body(body)


class TestRoutePattern:
    """Test RoutePattern matching."""

    def test_literal_substring(self):
        """Test literal containment anywhere in the URL."""
        route = RoutePattern('randomuser.me/api/', Mock())

        assert route.matches('https://randomuser.me/api/?results=1')
        assert not route.matches('https://example.com/api/')

    def test_regex(self):
        """Test regex search against the URL."""
        route = RoutePattern(r'/users/\d+$', Mock())

        assert route.matches('https://api.example.com/users/123')
        assert not route.matches('https://api.example.com/users/abc')

    def test_literal_with_regex_metacharacters(self):
        """Test a pattern that only matches literally still matches."""
        route = RoutePattern('/search?q=a+b', Mock())

        assert route.matches('https://example.com/search?q=a+b')

    def test_invalid_regex_treated_as_non_matching(self):
        """Test an invalid regex does not raise by default."""
        route = RoutePattern('/users/[', Mock())

        assert not route.matches('https://example.com/orders')

    def test_invalid_regex_still_matches_literally(self):
        """Test an invalid regex can still match as a literal."""
        route = RoutePattern('/users/[', Mock())

        assert route.matches('https://example.com/users/[')

    def test_invalid_regex_strict(self):
        """Test strict mode surfaces invalid regexes."""
        route = RoutePattern('/users/[', Mock())

        with pytest.raises(PatternError) as exc_info:
            route.matches('https://example.com/orders', strict=True)

        assert exc_info.value.pattern == '/users/['


class TestRouter:
    """Test Router dispatch."""

    def test_add_route_appends(self, router):
        """Test routes are appended without validation."""
        router.add_route('/a', Mock())
        router.add_route('(', Mock())

        assert len(router) == 2
        assert [r.pattern for r in router.patterns] == ['/a', '(']

    def test_route_invokes_handler(self, router):
        """Test matched handler receives request and merged params."""
        handler = Mock(return_value=StubResponse(status_code=200))
        router.add_route('/users', handler)
        request = StubRequest('GET', 'https://api.example.com/users?a=1#a=2&b=3')

        result = router.route(request)

        assert result.status_code == 200
        handler.assert_called_once_with(request, {'a': '1', 'b': '3'})

    def test_no_match(self, router):
        """Test NO_MATCH when nothing matches."""
        router.add_route('/users', Mock())

        result = router.route(StubRequest('GET', 'https://api.example.com/orders'))

        assert result is NO_MATCH
        assert not result

    def test_first_match_wins(self, router):
        """Test earlier registration wins over a more specific later pattern."""
        router.add_route('example.com', responder('first'))
        router.add_route('/users/123', responder('second'))

        result = router.route(StubRequest('GET', 'https://example.com/users/123'))

        assert result.body == b'first'

    def test_short_circuits_after_match(self, router):
        """Test later handlers are not invoked after a match."""
        first = Mock(return_value=StubResponse())
        second = Mock(return_value=StubResponse())
        router.add_route('/users', first)
        router.add_route('/users', second)

        router.route(StubRequest('GET', 'https://example.com/users'))

        first.assert_called_once()
        second.assert_not_called()

    def test_handler_declining_returns_none(self, router):
        """Test a handler returning None is passed through, not skipped."""
        router.add_route('/users', Mock(return_value=None))
        router.add_route('/users', responder('later'))

        assert router.route(StubRequest('GET', 'https://example.com/users')) is None

    def test_invalid_regex_skipped(self, router):
        """Test an invalid regex pattern falls through to later patterns."""
        router.add_route('*bad', responder('bad'))
        router.add_route('/users', responder('good'))

        result = router.route(StubRequest('GET', 'https://example.com/users'))

        assert result.body == b'good'

    def test_strict_router_raises_on_invalid_regex(self):
        """Test strict routers surface invalid patterns."""
        router = Router(HTTPMethod.GET, strict=True)
        router.add_route('*bad', responder('bad'))

        with pytest.raises(PatternError):
            router.route(StubRequest('GET', 'https://example.com/users'))

    def test_missing_url(self, router):
        """Test a request without URL is a fatal precondition violation."""
        router.add_route('/users', Mock())

        with pytest.raises(MissingURLError):
            router.route(Mock(spec=['method'], method='GET'))

    def test_empty_url(self, router):
        """Test an empty URL is treated as missing."""
        with pytest.raises(MissingURLError):
            router.route(StubRequest('GET', ''))

    def test_undecodable_params_still_route(self, router):
        """Test malformed parameters degrade to an empty mapping."""
        handler = Mock(return_value=StubResponse())
        router.add_route('/users', handler)
        request = StubRequest('GET', 'https://example.com/users?bad=%zz')

        router.route(request)

        handler.assert_called_once_with(request, {})
