"""
LocalStub Scenario Module

YAML stub definitions for the stub engine.
"""

from .definitions import StubDefinitions, RouteDefinition, ResponseDefinition

__all__ = ['StubDefinitions', 'RouteDefinition', 'ResponseDefinition']
