"""
Rule module: registry of pluggable checks, the built-in rule set and the engine.
"""

from .registry import DEFAULT_REGISTRY, Issue, Rule, RuleRegistry, register
from . import builtin  # registers the built-in rules
from .engine import CONFIGURATION_RULE_ID, RuleEngine

__all__ = [
    'DEFAULT_REGISTRY',
    'Issue',
    'Rule',
    'RuleRegistry',
    'register',
    'RuleEngine',
    'CONFIGURATION_RULE_ID'
]
