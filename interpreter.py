"""
toypl Interpreter
Tree-walking evaluator over the AST; every construct evaluates to a runtime value
"""

import sys
from typing import List, Optional, Sequence, Tuple

from environment import Binding, Environment
from error_handling import ToyplRuntimeError
from parsing import create_parser
from stdlib import (
  BOOL, FUNCTION, NATIVE_FUNCTION, NULL, NUM, OBJECT, STRING, UNDEFINED,
  Closure, Value, create_global_env, make_value,
)
from syntax import (
  BlockExpression, BooleanLiteral, CallExpression, CallMemberExpression,
  ClassExpression, DefinitionExpression, DoWhileExpression, FunctionExpression,
  Identifier, IfExpression, MethodDefinition, NewExpression, Node, NullLiteral,
  NumericLiteral, Program, SetExpression, StringLiteral, WhileExpression,
)
from utilities import is_truthy


# Host stack depth; one toypl call nests several Python frames
RECURSION_LIMIT = 20000


class Interpreter:
  """Evaluates AST nodes against a chain of environments"""

  def __init__(self, global_env: Optional[Environment] = None,
               version: Optional[str] = None, debug: bool = False):
    self.global_env = global_env if global_env is not None else create_global_env(version)
    self.debug = debug
    if sys.getrecursionlimit() < RECURSION_LIMIT:
      sys.setrecursionlimit(RECURSION_LIMIT)

  def run(self, program: Node) -> Value:
    """Evaluate a top-level program; exhausting the host stack is a runtime error"""
    try:
      return self.evaluate(program)
    except RecursionError:
      raise ToyplRuntimeError("Maximum recursion depth exceeded") from None

  def evaluate(self, node: Node, env: Optional[Environment] = None) -> Value:
    """Evaluate node in env (the global environment by default)"""
    if env is None:
      env = self.global_env

    if self.debug:
      print(f"Evaluating: {type(node).__name__}")

    if isinstance(node, NumericLiteral):
      return make_value(node.value, NUM)
    elif isinstance(node, StringLiteral):
      return make_value(node.value, STRING)
    elif isinstance(node, BooleanLiteral):
      return make_value(node.value, BOOL)
    elif isinstance(node, NullLiteral):
      return NULL
    elif isinstance(node, Identifier):
      return env.lookup(node.name)
    elif isinstance(node, Program):
      return self.eval_sequence(node.body, env)
    elif isinstance(node, BlockExpression):
      return self.eval_sequence(node.body, Environment({}, env))
    elif isinstance(node, DefinitionExpression):
      return self.eval_definition(node, env)
    elif isinstance(node, SetExpression):
      return self.eval_set(node, env)
    elif isinstance(node, IfExpression):
      return self.eval_if(node, env)
    elif isinstance(node, WhileExpression):
      return self.eval_while(node, env)
    elif isinstance(node, DoWhileExpression):
      return self.eval_do_while(node, env)
    elif isinstance(node, FunctionExpression):
      return make_value(Closure(node.params, node.body, env), FUNCTION)
    elif isinstance(node, CallExpression):
      return self.eval_call(node, env)
    elif isinstance(node, CallMemberExpression):
      return self.eval_call_member(node, env)
    elif isinstance(node, ClassExpression):
      return self.eval_class(node, env)
    elif isinstance(node, NewExpression):
      return self.eval_new(node, env)

    raise ToyplRuntimeError(f"Unsupported AST type: {type(node).__name__}")

  # ============================================================================
  # SEQUENCES AND CONTROL FLOW
  # ============================================================================

  def eval_sequence(self, body: Sequence[Node], env: Environment) -> Value:
    """Value of the last expression, undefined for an empty body"""
    result = UNDEFINED
    for expression in body:
      result = self.evaluate(expression, env)
    return result

  def eval_if(self, node: IfExpression, env: Environment) -> Value:
    if is_truthy(self.evaluate(node.test, env)):
      return self.evaluate(node.consequent, env)
    return self.evaluate(node.alternate, env)

  def eval_while(self, node: WhileExpression, env: Environment) -> Value:
    result = UNDEFINED
    while is_truthy(self.evaluate(node.test, env)):
      result = self.evaluate(node.body, env)
    return result

  def eval_do_while(self, node: DoWhileExpression, env: Environment) -> Value:
    result = self.evaluate(node.body, env)
    while is_truthy(self.evaluate(node.test, env)):
      result = self.evaluate(node.body, env)
    return result

  # ============================================================================
  # DEFINITION AND ASSIGNMENT
  # ============================================================================

  def eval_definition(self, node: DefinitionExpression, env: Environment) -> Value:
    name, owner = self.resolve_target(node.target, env)
    value = self.evaluate(node.initializer, env)
    return owner.define(name, value, node.mutable)

  def eval_set(self, node: SetExpression, env: Environment) -> Value:
    name, owner = self.resolve_target(node.target, env)
    value = self.evaluate(node.value, env)
    return owner.assign(name, value)

  def resolve_target(self, target: Node, env: Environment) -> Tuple[str, Environment]:
    """
    Name and owning environment of a def/set target.

    A bare identifier belongs to env; for a member path the receiver is evaluated
    in env and the rest of the path is resolved against the receiver, so
    `def this.x x` creates the field on the instance.
    """
    if isinstance(target, Identifier):
      return target.name, env
    if isinstance(target, CallMemberExpression):
      receiver = self.as_object(self.evaluate(target.receiver, env), target.receiver)
      message = target.message
      if target.computed:
        return self.computed_key(message, env), receiver
      if isinstance(message, Identifier):
        return message.name, receiver
      return self.resolve_target(message, receiver)

    raise ToyplRuntimeError(f"def and set on {type(target).__name__} not implemented.")

  def computed_key(self, message: Node, env: Environment) -> str:
    key = self.evaluate(message, env)
    if key.type != STRING:
      raise ToyplRuntimeError(f"Computed member name must be a String, got {key.type}")
    return key.value

  # ============================================================================
  # FUNCTIONS
  # ============================================================================

  def eval_call(self, node: CallExpression, env: Environment) -> Value:
    fn = self.evaluate(node.callee, env)
    args = [self.evaluate(argument, env) for argument in node.arguments]

    if fn.type == NATIVE_FUNCTION:
      return fn.value(*args)
    if fn.type != FUNCTION:
      raise ToyplRuntimeError(f"{describe(node.callee)} is not a function, got {fn.type}")

    closure = fn.value
    activation_record = create_activation_record(closure.params, args)
    # Methods resolve free names from the call site (the instance), closures statically
    parent = env if closure.is_method else closure.env
    return self.evaluate(closure.body, Environment(activation_record, parent))

  def eval_call_member(self, node: CallMemberExpression, env: Environment) -> Value:
    """
    Evaluate the message inside the receiver's environment.

    A computed key is evaluated at the access site, like a computed def/set target,
    and then looked up in the receiver.
    """
    instance_env = self.as_object(self.evaluate(node.receiver, env), node.receiver)
    if node.computed:
      return instance_env.lookup(self.computed_key(node.message, env))
    return self.evaluate(node.message, instance_env)

  # ============================================================================
  # CLASSES AND INSTANCES
  # ============================================================================

  def eval_class(self, node: ClassExpression, env: Environment) -> Value:
    class_env = Environment({}, env)
    for method in node.body:
      self.eval_method_definition(method, class_env)
    return make_value(class_env, OBJECT)

  def eval_method_definition(self, node: MethodDefinition, class_env: Environment) -> Value:
    method = make_value(Closure(node.params, node.body, class_env, is_method=True), FUNCTION)
    return class_env.define(node.name.name, method, False)

  def eval_new(self, node: NewExpression, env: Environment) -> Value:
    class_env = self.as_object(self.evaluate(node.callee, env), node.callee)
    instance_env = Environment(class_env.copy_record(), env)
    args = [self.evaluate(argument, env) for argument in node.arguments]

    instance = make_value(instance_env, OBJECT)
    instance_env.define("this", instance, False)

    init = instance_env.record.get("init")
    if init is not None:
      if init.value.type != FUNCTION:
        raise ToyplRuntimeError(f"init of {node.callee.name} is not a function")
      fn = init.value.value
      activation_env = Environment(create_activation_record(fn.params, args), instance_env)
      self.evaluate(fn.body, activation_env)

    return instance

  def as_object(self, value: Value, node: Node) -> Environment:
    if value.type != OBJECT:
      raise ToyplRuntimeError(f"{describe(node)} is not an object, got {value.type}")
    return value.value


# ============================================================================
# HELPERS
# ============================================================================

def create_activation_record(params: Sequence[str], args: List[Value]) -> dict:
  """Bind parameters in order; missing arguments are undefined, extras ignored"""
  return {
    param: Binding(args[index] if index < len(args) else UNDEFINED, False)
    for index, param in enumerate(params)
  }


def describe(node: Node) -> str:
  if isinstance(node, Identifier):
    return f'"{node.name}"'
  return type(node).__name__


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, version: Optional[str] = None) -> Interpreter:
  """Factory function returning an interpreter with a fresh global environment"""
  return Interpreter(version=version, debug=debug)


def create_debug_interpreter() -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)


def evaluate(text: str, version: Optional[str] = None) -> Value:
  """Parse and evaluate toypl source code in a fresh global environment"""
  program = create_parser().parse(text)
  return create_interpreter(version=version).run(program)
