"""
Tests for LocalStub Stub Definitions

Tests YAML stub definitions including:
- YAML and JSON loading
- Single, stateful and sequenced responses
- Fixture files relative to the definitions file
- Validation errors
"""

import json
import pytest
from textwrap import dedent

from localstub.common.utils import StubFileLoader
from localstub.scenario.definitions import (
    StubDefinitions,
    RouteDefinition,
    ResponseDefinition
)
from localstub.stub.methods import HTTPMethod
from localstub.stub.request import StubRequest


@pytest.fixture
def definitions_file(tmp_path):
    """Definitions file with fixtures next to it."""
    fixtures = tmp_path / 'fixtures'
    fixtures.mkdir()
    (fixtures / 'user_male.json').write_text(json.dumps({'gender': 'male'}), encoding='utf-8')
    (fixtures / 'user_female.json').write_text(json.dumps({'gender': 'female'}), encoding='utf-8')

    path = tmp_path / 'stubs.yaml'
    path.write_text(dedent("""
        default:
          status: 404
          body: '{"error": "not stubbed"}'
          headers:
            Content-Type: application/json

        routes:
          - pattern: randomuser.me/api/
            sequence:
              - file: fixtures/user_male.json
              - file: fixtures/user_female.json

          - pattern: /orders
            methods: [POST, PUT]
            status: 201
            json: {id: 7}

          - pattern: /cart
            when_state: 1
            set_state: 2
            body: second
            scenario: checkout

          - pattern: /cart
            body: first
            set_state: 1
            scenario: checkout
    """), encoding='utf-8')
    return path


def get(server, url):
    return server.dispatch(StubRequest('GET', url))


class TestResponseDefinition:
    """Test ResponseDefinition parsing and building."""

    def test_defaults(self):
        """Test an empty mapping is a bare 200."""
        response = ResponseDefinition.from_dict({}).build()

        assert response.status_code == 200
        assert response.body == b''
        assert response.transition is None

    def test_states_coerced_to_strings(self):
        """Test numeric YAML states become strings."""
        definition = ResponseDefinition.from_dict({'when_state': 1, 'set_state': 2})

        assert definition.when_state == '1'
        assert definition.set_state == '2'

    def test_several_body_sources(self):
        """Test body sources are mutually exclusive."""
        with pytest.raises(ValueError):
            ResponseDefinition.from_dict({'body': 'a', 'json': {'b': 1}})

    def test_structured_body_serialized(self):
        """Test a non-string body is JSON-encoded."""
        response = ResponseDefinition(body={'a': 1}).build()

        assert json.loads(response.body) == {'a': 1}

    def test_explicit_headers_override_guess(self, tmp_path):
        """Test configured headers win over the guessed content type."""
        (tmp_path / 'photo.jpg').write_bytes(b'jpg')
        definition = ResponseDefinition(file='photo.jpg', headers={'Content-Type': 'image'})

        response = definition.build(base_dir=tmp_path)

        assert response.headers['Content-Type'] == 'image'
        assert response.body == b'jpg'

    def test_missing_fixture(self, tmp_path):
        """Test a missing fixture raises at build time."""
        with pytest.raises(FileNotFoundError):
            ResponseDefinition(file='missing.json').build(base_dir=tmp_path)


class TestRouteDefinition:
    """Test RouteDefinition parsing."""

    def test_default_method(self):
        """Test routes default to GET."""
        route = RouteDefinition.from_dict({'pattern': '/users'})

        assert route.methods == [HTTPMethod.GET]
        assert route.response is not None
        assert route.sequence == []

    def test_single_method_string(self):
        """Test a single 'method' string."""
        route = RouteDefinition.from_dict({'pattern': '/users', 'method': 'delete'})

        assert route.methods == [HTTPMethod.DELETE]

    def test_missing_pattern(self):
        """Test the pattern is required."""
        with pytest.raises(ValueError, match='pattern'):
            RouteDefinition.from_dict({'body': 'x'})

    def test_unknown_method(self):
        """Test unknown methods are rejected."""
        with pytest.raises(ValueError):
            RouteDefinition.from_dict({'pattern': '/x', 'methods': ['FETCH']})

    def test_sequence_and_response_conflict(self):
        """Test a route cannot mix a sequence with a single response."""
        with pytest.raises(ValueError, match='sequence'):
            RouteDefinition.from_dict({'pattern': '/x', 'body': 'a', 'sequence': [{'body': 'b'}]})

    def test_empty_sequence(self):
        """Test an empty sequence is rejected."""
        with pytest.raises(ValueError):
            RouteDefinition.from_dict({'pattern': '/x', 'sequence': []})


class TestStubDefinitions:
    """Test whole documents."""

    def test_from_yaml(self, definitions_file):
        """Test loading a YAML document."""
        definitions = StubDefinitions.from_yaml(definitions_file)

        assert len(definitions.routes) == 4
        assert definitions.default_status == 404
        assert definitions.base_dir == definitions_file.parent

    def test_build_server_default(self, definitions_file):
        """Test the document's default response is used."""
        server = StubDefinitions.from_yaml(definitions_file).build_server()

        response = get(server, 'https://example.com/unknown')

        assert response.status_code == 404
        assert response.headers == {'Content-Type': 'application/json'}
        assert json.loads(response.body) == {'error': 'not stubbed'}

    def test_sequence_route(self, definitions_file):
        """Test a sequence walks its fixtures then falls through."""
        server = StubDefinitions.from_yaml(definitions_file).build_server()

        first = get(server, 'https://randomuser.me/api/')
        second = get(server, 'https://randomuser.me/api/')
        third = get(server, 'https://randomuser.me/api/')

        assert json.loads(first.body) == {'gender': 'male'}
        assert json.loads(second.body) == {'gender': 'female'}
        assert third.status_code == 404

    def test_multi_method_route(self, definitions_file):
        """Test a route registered under several methods."""
        server = StubDefinitions.from_yaml(definitions_file).build_server()

        for method in ('POST', 'PUT'):
            response = server.dispatch(StubRequest(method, 'https://shop.example.com/orders'))
            assert response.status_code == 201
            assert json.loads(response.body) == {'id': 7}

    def test_stateful_routes(self, definitions_file):
        """Test hand-written state requirements in a scenario."""
        server = StubDefinitions.from_yaml(definitions_file).build_server()

        bodies = [get(server, 'https://shop.example.com/cart').body for _ in range(3)]

        assert bodies == [b'first', b'second', b'first']
        assert server.state.current('checkout') == '1'

    def test_config_overrides(self, definitions_file):
        """Test config overrides are applied."""
        server = StubDefinitions.from_yaml(definitions_file).build_server(strict=True, port=9000)

        assert server.config.strict is True
        assert server.config.port == 9000

    def test_invalid_route_named(self):
        """Test errors name the offending route."""
        with pytest.raises(ValueError, match='#2'):
            StubDefinitions.from_dict({'routes': [{'pattern': '/ok'}, {'body': 'no pattern'}]})

    def test_scalar_default_rejected(self):
        """Test a default section that is not a mapping is a ValueError."""
        with pytest.raises(ValueError, match='default'):
            StubDefinitions.from_dict({'default': 404, 'routes': []})

    def test_default_headers_must_be_mapping(self):
        """Test list-valued default headers are a ValueError."""
        with pytest.raises(ValueError, match='headers must be a mapping'):
            StubDefinitions.from_dict({'default': {'headers': ['x']}})

    def test_route_headers_must_be_mapping(self):
        """Test list-valued route headers name the route."""
        with pytest.raises(ValueError, match='#1.*headers must be a mapping'):
            StubDefinitions.from_dict({'routes': [{'pattern': '/a', 'headers': ['x']}]})

    def test_routes_must_be_list(self):
        """Test a routes section that is not a list is a ValueError."""
        with pytest.raises(ValueError, match='routes'):
            StubDefinitions.from_dict({'routes': {'pattern': '/a'}})

    def test_empty_document(self):
        """Test an empty document has no routes and a 404 default."""
        definitions = StubDefinitions.from_dict({})

        assert definitions.routes == []
        assert definitions.default_status == 404

    def test_from_json(self, tmp_path):
        """Test JSON documents load too."""
        path = tmp_path / 'stubs.json'
        path.write_text(json.dumps({'routes': [{'pattern': '/ping', 'status': 204}]}), encoding='utf-8')

        server = StubDefinitions.from_yaml(path).build_server()

        assert get(server, 'https://example.com/ping').status_code == 204


class TestStubFileLoader:
    """Test StubFileLoader."""

    def test_file_not_found(self, tmp_path):
        """Test a missing file raises."""
        with pytest.raises(FileNotFoundError):
            StubFileLoader(tmp_path / 'missing.yaml').load()

    def test_not_a_mapping(self, tmp_path):
        """Test a top-level list is rejected."""
        path = tmp_path / 'stubs.yaml'
        path.write_text('- pattern: /a\n', encoding='utf-8')

        with pytest.raises(ValueError, match='mapping'):
            StubFileLoader(path).load()

    def test_malformed_yaml(self, tmp_path):
        """Test unparsable YAML is a ValueError."""
        path = tmp_path / 'stubs.yaml'
        path.write_text('routes: [unclosed\n', encoding='utf-8')

        with pytest.raises(ValueError):
            StubFileLoader(path).load()

    def test_empty_file(self, tmp_path):
        """Test an empty file loads as an empty mapping."""
        path = tmp_path / 'stubs.yaml'
        path.write_text('', encoding='utf-8')

        assert StubFileLoader.load_from_file(path) == {}
