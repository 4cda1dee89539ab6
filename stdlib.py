"""
toypl Standard Library
Runtime value model and the built-in bindings of the global environment
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple
import math
import operator

from environment import Environment
from error_handling import ToyplRuntimeError
from utilities import arity_error, format_number, get_git_tag_version, operation_error


# ============================================================================
# DATA STRUCTURES
# ============================================================================

NUM = "Num"
STRING = "String"
BOOL = "Bool"
NULL_TYPE = "Null"
UNDEFINED_TYPE = "Undefined"
NATIVE_FUNCTION = "NativeFunction"
FUNCTION = "Function"
OBJECT = "Object"


@dataclass(frozen=True)
class Value:
  """A runtime value tagged with its type"""
  type: str
  value: Any

  def __str__(self) -> str:
    return format_value(self)


@dataclass(frozen=True)
class NativeFunction:
  """Host-implemented callable; max_arity None means variadic"""
  name: str
  impl: Callable[..., Value]
  min_arity: int = 0
  max_arity: Optional[int] = None

  def __call__(self, *args: Value) -> Value:
    count = len(args)
    if count < self.min_arity or (self.max_arity is not None and count > self.max_arity):
      raise arity_error(self.name, self._arity_text(), count)
    return self.impl(*args)

  def _arity_text(self) -> str:
    if self.max_arity is None:
      return f"at least {self.min_arity}"
    if self.min_arity == self.max_arity:
      return str(self.min_arity)
    return f"{self.min_arity} to {self.max_arity}"


@dataclass(frozen=True, eq=False)
class Closure:
  """User function: parameters, body and the environment it was created in"""
  params: Tuple[str, ...]
  body: Any
  env: Environment
  is_method: bool = False


def make_value(value: Any, type_name: str) -> Value:
  """Create an immutable runtime value"""
  return Value(type_name, value)


def make_number(number: float) -> Value:
  return Value(NUM, float(number))


def make_bool(flag: bool) -> Value:
  return Value(BOOL, bool(flag))


NULL = Value(NULL_TYPE, None)
UNDEFINED = Value(UNDEFINED_TYPE, None)


# ============================================================================
# DISPLAY
# ============================================================================

def format_value(value: Value) -> str:
  """Convert value to its display form"""
  if value.type == NUM:
    return format_number(value.value)
  elif value.type == STRING:
    return value.value
  elif value.type == BOOL:
    return "true" if value.value else "false"
  elif value.type == NULL_TYPE:
    return "null"
  elif value.type == UNDEFINED_TYPE:
    return "undefined"
  elif value.type == NATIVE_FUNCTION:
    return f"<native {value.value.name}>"
  elif value.type == FUNCTION:
    kind = "method" if value.value.is_method else "function"
    return f"<{kind} ({' '.join(value.value.params)})>"
  elif value.type == OBJECT:
    names = [name for name in value.value.record if name != "this"]
    return f"<object {{{', '.join(names)}}}>"
  return f"<{value.type}>"


# ============================================================================
# PRINT FUNCTIONS
# ============================================================================

def toypl_print(*values: Value) -> Value:
  """Print values separated by spaces"""
  print(" ".join(format_value(value) for value in values))
  return UNDEFINED


# ============================================================================
# ARITHMETIC AND COMPARISON
# ============================================================================

def binary_arithmetic_op(op: Callable[[float, float], float], op_name: str) -> Callable[[Value, Value], Value]:
  """
  Factory for binary arithmetic operations over numbers

  Examples:
    toypl_add = binary_arithmetic_op(operator.add, "add")
    toypl_add(make_number(1), make_number(2)) -> Value("Num", 3.0)
  """
  def arithmetic(x: Value, y: Value) -> Value:
    if x.type != NUM or y.type != NUM:
      raise operation_error(op_name, x.type, y.type)
    return make_number(op(x.value, y.value))

  return arithmetic


def binary_comparison_op(op: Callable[[Any, Any], bool], op_name: str,
                         allowed_types: Optional[List[str]] = None) -> Callable[[Value, Value], Value]:
  """Factory for binary comparison operations"""
  if allowed_types is None:
    allowed_types = [NUM, STRING]

  def comparison(x: Value, y: Value) -> Value:
    if x.type != y.type or x.type not in allowed_types:
      raise operation_error(op_name, x.type, y.type)
    return make_bool(op(x.value, y.value))

  return comparison


def ieee_divide(x: float, y: float) -> float:
  """Division where a zero divisor yields infinity, or NaN for 0/0"""
  if y == 0:
    if x == 0 or math.isnan(x):
      return math.nan
    return math.copysign(math.inf, x) * math.copysign(1.0, y)
  return x / y


toypl_add = binary_arithmetic_op(operator.add, "add")
toypl_mul = binary_arithmetic_op(operator.mul, "multiply")
toypl_div = binary_arithmetic_op(ieee_divide, "divide")
toypl_sub = binary_arithmetic_op(operator.sub, "subtract")

toypl_gt = binary_comparison_op(operator.gt, "compare")
toypl_lt = binary_comparison_op(operator.lt, "compare")
toypl_ge = binary_comparison_op(operator.ge, "compare")
toypl_le = binary_comparison_op(operator.le, "compare")


def toypl_minus(x: Value, y: Optional[Value] = None) -> Value:
  """Negate with one argument, subtract with two"""
  if y is None:
    if x.type != NUM:
      raise ToyplRuntimeError(f"Cannot negate {x.type}")
    return make_number(-x.value)
  return toypl_sub(x, y)


def toypl_eq(x: Value, y: Value) -> Value:
  """Same type and equal payload; objects and functions compare by identity"""
  if x.type != y.type:
    return make_bool(False)
  if x.type in (OBJECT, FUNCTION):
    return make_bool(x.value is y.value)
  return make_bool(x.value == y.value)


# ============================================================================
# GLOBAL ENVIRONMENT
# ============================================================================

BUILTIN_FUNCTIONS = [
  NativeFunction("print", toypl_print),
  NativeFunction("+", toypl_add, 2, 2),
  NativeFunction("*", toypl_mul, 2, 2),
  NativeFunction("/", toypl_div, 2, 2),
  NativeFunction("-", toypl_minus, 1, 2),
  NativeFunction(">", toypl_gt, 2, 2),
  NativeFunction("<", toypl_lt, 2, 2),
  NativeFunction(">=", toypl_ge, 2, 2),
  NativeFunction("<=", toypl_le, 2, 2),
  NativeFunction("=", toypl_eq, 2, 2),
]


def create_global_env(version: Optional[str] = None) -> Environment:
  """Create the root environment with the immutable built-in bindings"""
  env = Environment()
  env.define("VERSION", make_value(version or get_git_tag_version(), STRING), False)
  for native in BUILTIN_FUNCTIONS:
    env.define(native.name, make_value(native, NATIVE_FUNCTION), False)
  return env
