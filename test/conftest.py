"""
Test configuration for toypl tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from parsing import create_parser


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def interpreter():
  """Provide an interpreter with a fixed VERSION so no git call is made"""
  return create_interpreter(version="v1.2.3")


@pytest.fixture
def run(parser, interpreter):
  """Evaluate source against the shared interpreter and return the result value"""
  def _run(source):
    return interpreter.evaluate(parser.parse(source))
  return _run
