"""
NL Programming Language - Main Entry Point
Reads a script, runs scan -> parse -> evaluate and reports faults
"""

import sys
import argparse
from typing import List, Optional

from termcolor import colored

from syntax import format_source, pretty_print_ast
from tokenizer import format_tokens
from parsing import create_parser
from interpreter import create_interpreter
from error_handling import NLError, NLLiteralError, NLParseError, NLRuntimeError, get_context_lines


VERSION = "NL v0.1.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='nl',
      description='NL - a small imperative scripting language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.nl              # Run an NL script
  %(prog)s -c 'print 1 + 2;'      # Run inline code
  %(prog)s --tokens script.nl     # Show tokens, then run
  %(prog)s --ast script.nl        # Show the syntax tree, then run
  %(prog)s --format script.nl     # Print normalised source, do not run
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='NL script file to execute'
  )

  parser.add_argument(
      '-c', '--code',
      help='Program passed in as a string'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Print the token sequence to stderr before running'
  )

  parser.add_argument(
      '--ast',
      action='store_true',
      help='Print the syntax tree to stderr before running'
  )

  parser.add_argument(
      '--format',
      action='store_true',
      help='Print the re-serialised program and exit without running'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug tracing on stderr'
  )

  parser.add_argument(
      '--no-color',
      action='store_true',
      help='Disable coloured diagnostics'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def paint(text: str, color: str, enabled: bool) -> str:
  """Colour and embolden text when colours are enabled"""
  if not enabled:
    return text
  return colored(text, color, attrs=["bold"])


def report_error(heading: str, error: NLError, source: str, use_color: bool) -> None:
  """Print a fault with source context to stderr"""
  print(paint(f"{heading}:", "red", use_color), file=sys.stderr)

  if isinstance(error, NLParseError):
    print(str(error).rstrip(), file=sys.stderr)
    return

  print(f"  {error.message}", file=sys.stderr)
  if error.span:
    print(f"\nLocation: {error.span}", file=sys.stderr)
    print(get_context_lines(source, error.span.line, error.span.column), file=sys.stderr)


def run_source(source: str, filename: str, args: argparse.Namespace) -> int:
  """Run NL source text; returns the process exit status"""
  use_color = not args.no_color
  parser = create_parser(debug=args.debug, color=use_color)
  interpreter = create_interpreter(debug=args.debug, color=use_color)

  try:
    if args.tokens:
      print(format_tokens(parser.tokenize(source, filename)), file=sys.stderr)

    program = parser.parse_string(source, filename)

    if args.ast:
      print(pretty_print_ast(program).rstrip(), file=sys.stderr)

    if args.format:
      print(format_source(program))
      return 0

    interpreter.interpret(program)

  except NLLiteralError as e:
    report_error(f"Scan error in '{filename}'", e, source, use_color)
    return 1
  except NLParseError as e:
    report_error(f"Parse error in '{filename}'", e, source, use_color)
    return 1
  except NLRuntimeError as e:
    report_error(f"Runtime error in '{filename}'", e, source, use_color)
    return 1
  except RecursionError:
    error = NLError("program is nested too deeply to process")
    report_error(f"Error in '{filename}'", error, source, use_color)
    return 1

  return 0


def read_script(script_path: str, use_color: bool) -> Optional[str]:
  """Read a script file, reporting unreadable files"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    message = f"Error: Script file '{script_path}' not found"
  except PermissionError:
    message = f"Error: Permission denied reading '{script_path}'"
  except IsADirectoryError:
    message = f"Error: '{script_path}' is a directory"
  except UnicodeDecodeError as e:
    message = f"Error: Cannot decode file '{script_path}': {e}"

  print(paint(message, "red", use_color), file=sys.stderr)
  return None


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for NL"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.code is not None and args.script:
    arg_parser.error("give either a script or -c CODE, not both")

  if args.code is not None:
    return run_source(args.code, "<string>", args)

  if not args.script:
    arg_parser.print_help()
    return 2

  source = read_script(args.script, not args.no_color)
  if source is None:
    return 1
  return run_source(source, args.script, args)


if __name__ == "__main__":
  sys.exit(main())
