"""
Test configuration for AQA pseudocode tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from interpreter import create_interpreter
from stdlib import collect_output


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def outputs():
  """List collecting the display text of every Output emission"""
  return []


@pytest.fixture
def interpreter(outputs):
  """Interpreter whose Output emissions land in the outputs fixture"""
  return create_interpreter(output=collect_output(outputs))


@pytest.fixture
def run(parser, interpreter):
  """Parse and run a program, returning (value, env)"""
  def run_source(source):
    return interpreter.run(parser.parse_string(source))

  return run_source
