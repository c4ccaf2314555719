"""
Test configuration for NL tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import scan_and_parse
from interpreter import create_interpreter


@pytest.fixture
def run_code():
  """Run NL source and return the printed lines"""
  def runner(code):
    lines = []
    interpreter = create_interpreter(output=lines.append)
    interpreter.interpret(scan_and_parse(code))
    return lines
  return runner


@pytest.fixture
def examples_dir():
  """Get the examples directory path"""
  return project_root / "examples"
