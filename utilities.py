"""
Utilities module for the toypl interpreter
Contains common helper functions shared by the built-ins, the interpreter and the CLI
"""

import subprocess
from pathlib import Path
from typing import Any, Dict

from environment import Environment
from error_handling import ToyplRuntimeError


DEFAULT_VERSION = "v0.1.0"


# ==================== ERROR FACTORIES ====================

def arity_error(func_name: str, expected: str, got: int) -> ToyplRuntimeError:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name
    expected: Description of the accepted argument count
    got: Actual number of arguments

  Returns:
    ToyplRuntimeError with formatted message
  """
  return ToyplRuntimeError(
    f"{func_name} requires {expected} arguments, got {got}"
  )


def operation_error(op: str, left_type: str, right_type: str) -> ToyplRuntimeError:
  """
  Generate operation error

  Args:
    op: Operation name
    left_type: Left operand type
    right_type: Right operand type

  Returns:
    ToyplRuntimeError with formatted message
  """
  return ToyplRuntimeError(
    f"Cannot {op} {left_type} and {right_type}"
  )


# ==================== VALUE UTILITIES ====================

def is_truthy(value: Any) -> bool:
  """
  Truthiness used by if, while and do-while

  false, null, undefined, 0 and the empty string are falsy; every other value,
  functions and objects included, is truthy.
  """
  if value.type in ("Function", "NativeFunction", "Object"):
    return True
  return bool(value.value)


def unwrap_value(value: Any) -> Any:
  """
  Convert a runtime value to plain Python data

  Examples:
    unwrap_value(Value("Num", 3.0)) -> 3
    unwrap_value(Value("Object", env)) -> {"x": 1, ...}
  """
  if value.type == "Num":
    number = value.value
    return int(number) if number.is_integer() else number
  if value.type == "Object":
    return unwrap_environment(value.value)
  return value.value


def unwrap_environment(env: Environment) -> Dict[str, Any]:
  """Own bindings of an object, without the self reference"""
  return {
    name: unwrap_value(bound)
    for name, bound in env.bindings().items()
    if name != "this"
  }


def format_number(number: float) -> str:
  if number != number:
    return "NaN"
  if number in (float("inf"), float("-inf")):
    return "Infinity" if number > 0 else "-Infinity"
  if number.is_integer():
    return str(int(number))
  return repr(number)


# ==================== SOURCE AND VERSION ====================

def load_source(path: str) -> str:
  """Read a source file; raises FileNotFoundError when the path does not exist"""
  source_path = Path(path)
  if not source_path.is_file():
    raise FileNotFoundError(f"File not found: {path}")
  return source_path.read_text(encoding="utf-8")


def get_git_tag_version() -> str:
  """Last tag listed by `git tag`, or the package default outside a tagged checkout"""
  try:
    result = subprocess.run(
      ["git", "tag"], capture_output=True, text=True, check=True
    )
  except (OSError, subprocess.CalledProcessError):
    return DEFAULT_VERSION

  tags = result.stdout.strip().split("\n")
  return tags[-1] or DEFAULT_VERSION
