"""
toypl Abstract Syntax Tree
Immutable node types produced by the parser and consumed by the interpreter
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Node:
    """Base class of every AST node"""


@dataclass(frozen=True)
class NumericLiteral(Node):
    value: float


@dataclass(frozen=True)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True)
class BooleanLiteral(Node):
    value: bool


@dataclass(frozen=True)
class NullLiteral(Node):
    pass


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class Program(Node):
    body: Tuple[Node, ...]


@dataclass(frozen=True)
class BlockExpression(Node):
    body: Tuple[Node, ...]


@dataclass(frozen=True)
class DefinitionExpression(Node):
    """def [mut] <target> <initializer>"""
    target: Node
    initializer: Node
    mutable: bool = False


@dataclass(frozen=True)
class SetExpression(Node):
    """set <target> <value>"""
    target: Node
    value: Node


@dataclass(frozen=True)
class IfExpression(Node):
    test: Node
    consequent: Node
    alternate: Node


@dataclass(frozen=True)
class WhileExpression(Node):
    test: Node
    body: Node


@dataclass(frozen=True)
class DoWhileExpression(Node):
    body: Node
    test: Node


@dataclass(frozen=True)
class FunctionExpression(Node):
    params: Tuple[str, ...]
    body: Node


@dataclass(frozen=True)
class CallExpression(Node):
    callee: Node
    arguments: Tuple[Node, ...]


@dataclass(frozen=True)
class CallMemberExpression(Node):
    """receiver.message, or receiver[message] when computed"""
    receiver: Node
    message: Node
    computed: bool = False


@dataclass(frozen=True)
class MethodDefinition(Node):
    """A named method inside a class literal: name(params) body"""
    name: Identifier
    params: Tuple[str, ...]
    body: Node


@dataclass(frozen=True)
class ClassExpression(Node):
    body: Tuple[MethodDefinition, ...]


@dataclass(frozen=True)
class NewExpression(Node):
    callee: Identifier
    arguments: Tuple[Node, ...]


# Utility functions for working with the AST
def ast_to_dict(node: Any) -> Any:
    """Convert an AST to a JSON-compatible dictionary representation"""
    if isinstance(node, Node):
        result: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            result[f.name] = ast_to_dict(getattr(node, f.name))
        return result
    if isinstance(node, tuple):
        return [ast_to_dict(child) for child in node]
    return node


def pretty_print_ast(node: Node, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    result = "  " * indent + type(node).__name__
    children = []
    attributes = []
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            children.append(value)
        elif isinstance(value, tuple) and value and isinstance(value[0], Node):
            children.extend(value)
        else:
            attributes.append(f"{f.name}={value!r}")
    if attributes:
        result += f"({', '.join(attributes)})"
    result += "\n"

    for child in children:
        result += pretty_print_ast(child, indent + 1)

    return result
