"""
Ember runtime - tree-walking evaluation.

This module provides:
- Interpreter: Evaluates a Program against an Environment
- EvaluationResult: Value, syntax errors or runtime error of one evaluation
- Environment: Chained scopes with closure capture
- Integer, Boolean, Function: Runtime objects
"""

from .values import (
    Object,
    ObjectType,
    Integer,
    Boolean,
    Function,
    TRUE,
    FALSE,
    native_bool,
    is_truthy,
    type_name,
    inspect,
)

from .environment import (
    Binding,
    Environment,
    create_global_environment,
)

from .interpreter import (
    Interpreter,
    EvaluationResult,
    evaluate,
    evaluate_program,
    truncating_divide,
)

__all__ = [
    # Values
    'Object',
    'ObjectType',
    'Integer',
    'Boolean',
    'Function',
    'TRUE',
    'FALSE',
    'native_bool',
    'is_truthy',
    'type_name',
    'inspect',

    # Environment
    'Binding',
    'Environment',
    'create_global_environment',

    # Interpreter
    'Interpreter',
    'EvaluationResult',
    'evaluate',
    'evaluate_program',
    'truncating_divide',
]
