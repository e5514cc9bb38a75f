"""
LocalStub CLI

Command-line interface for serving and checking stub definitions.

Commands:
    serve       - Start the local stub HTTP server
    check       - Dispatch a request in-process and print the response

Examples:
    # Serve stubs on port 8080
    localstub serve stubs.yaml --port 8080

    # Walk a stateful sequence three times
    localstub check stubs.yaml GET https://randomuser.me/api/ --repeat 3
"""

import argparse
import logging
import sys

from .common.utils import safe_json_parse
from .scenario import StubDefinitions
from .stub.request import StubRequest


def _load_definitions(path: str) -> StubDefinitions:
    try:
        return StubDefinitions.from_yaml(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Failed to load stub definitions: {e}")
        sys.exit(1)


def cmd_serve(args):
    """
    Start the local stub HTTP server.

    Args:
        args: Parsed command-line arguments
    """
    from .stub.app import run

    print(f"🎭 LocalStub Server")
    print(f"   Definitions: {args.definitions}")

    definitions = _load_definitions(args.definitions)

    if args.strict:
        print(f"🔒 Strict mode enabled (invalid patterns and parameters raise)")
    if args.verbose:
        print(f"📋 Verbose mode enabled (every dispatch is printed)")

    try:
        server = definitions.build_server(
            host=args.host,
            port=args.port,
            log_level=args.log_level,
            admin_enabled=not args.no_admin,
            strict=args.strict,
            verbose_mode=args.verbose
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Failed to create stub server: {e}")
        sys.exit(1)

    try:
        run(server)
    except KeyboardInterrupt:
        print("\n\n👋 Stub server stopped")


def cmd_check(args):
    """
    Dispatch one request in-process and print each response.

    Args:
        args: Parsed command-line arguments
    """
    definitions = _load_definitions(args.definitions)

    try:
        server = definitions.build_server(log_level=args.log_level, strict=args.strict)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Failed to create stub server: {e}")
        sys.exit(1)

    for call in range(1, args.repeat + 1):
        response = server.dispatch(StubRequest(method=args.method.upper(), url=args.url))
        parsed = safe_json_parse(response.body)
        body = response.text if parsed is None else parsed

        print(f"[{call}] {args.method.upper()} {args.url} -> {response.status_code}")
        for key, value in response.headers.items():
            print(f"    {key}: {value}")
        if body:
            print(f"    {body}")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='localstub',
        description="LocalStub - In-process HTTP stubs for reproducible tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve stubs on port 8080
  %(prog)s serve stubs.yaml --port 8080

  # Check what a request gets, three calls in a row
  %(prog)s check stubs.yaml GET https://randomuser.me/api/ --repeat 3
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start the local stub HTTP server')
    serve_parser.add_argument('definitions', help='Stub definitions file (YAML or JSON)')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, default=8080, help='Port to bind (default: 8080)')
    serve_parser.add_argument('--no-admin', action='store_true', help='Disable admin API')
    serve_parser.add_argument('--strict', action='store_true', help='Raise on invalid patterns and undecodable parameters')
    serve_parser.add_argument('--log-level', default='info', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')
    serve_parser.add_argument('--verbose', action='store_true', help='Print every dispatch')

    # --- CHECK command ---
    check_parser = subparsers.add_parser('check', help='Dispatch a request in-process')
    check_parser.add_argument('definitions', help='Stub definitions file (YAML or JSON)')
    check_parser.add_argument('method', help='HTTP method (e.g., GET)')
    check_parser.add_argument('url', help='Absolute request URL')
    check_parser.add_argument('-n', '--repeat', type=int, default=1, help='Number of calls (default: 1)')
    check_parser.add_argument('--strict', action='store_true', help='Raise on invalid patterns and undecodable parameters')
    check_parser.add_argument('--log-level', default='error', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: error)')

    args = parser.parse_args(argv)

    if args.command:
        logging.basicConfig(level=getattr(logging, args.log_level.upper()), format='%(levelname)s %(name)s: %(message)s')

    # Dispatch to command handler
    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'check':
        cmd_check(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
