"""
toypl Environment
A scope maps names to bindings and delegates unresolved names to its parent
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from error_handling import ToyplRuntimeError


@dataclass(frozen=True)
class Binding:
  """A name's value and whether it may be reassigned"""
  value: Any
  mutable: bool = False


class Environment:
  """Binding record plus an optional parent scope"""

  def __init__(self, record: Optional[Dict[str, Binding]] = None,
               parent: Optional['Environment'] = None):
    self.record = record if record is not None else {}
    self.parent = parent

  def define(self, name: str, value: Any, mutable: bool = False) -> Any:
    """Create or overwrite a binding in this scope"""
    self.record[name] = Binding(value, mutable)
    return value

  def assign(self, name: str, value: Any) -> Any:
    """Overwrite the nearest binding of name; it must be mutable"""
    env = self.resolve(name)
    if not env.record[name].mutable:
      raise ToyplRuntimeError(f'Cannot mutate the defined value "{name}".')
    # Replace rather than mutate: instances share Binding objects with their class
    env.record[name] = Binding(value, True)
    return value

  def lookup(self, name: str) -> Any:
    return self.resolve(name).record[name].value

  def resolve(self, name: str) -> 'Environment':
    """Return the nearest scope, self included, whose own record defines name"""
    env = self
    while env is not None:
      if name in env.record:
        return env
      env = env.parent
    raise ToyplRuntimeError(f'Variable "{name}" is not defined.')

  def copy_record(self) -> Dict[str, Binding]:
    """Shallow copy of the own bindings"""
    return dict(self.record)

  def bindings(self) -> Dict[str, Any]:
    """Own name -> value view"""
    return {name: binding.value for name, binding in self.record.items()}

  def __repr__(self) -> str:
    return f"Environment({', '.join(self.record)})"
