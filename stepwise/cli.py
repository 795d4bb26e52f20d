#!/usr/bin/env python3
"""
Stepwise Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    stepwise                        # Start REPL
    stepwise homework.txt           # Run script
    stepwise -e "2x+3=7"            # Solve one equation
    stepwise -t -e "2x+3x"          # Show the derivation too
    echo "2x+3=7" | stepwise        # Filter mode

Script Format (one expression per line):
    # comments start with #
    :trace on
    2x+3=7
    sqrt(x^2)

REPL Commands:
    :help              Show help
    :trace on|off      Toggle tracing
    :format NAME       Output format (infix, latex, graph)
    :passes N          Set the iteration cap
    :rules [CATEGORY]  List rewrite rules
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from . import config
from .engine import Simplifier
from .errors import StepwiseError
from .printer import to_graph, to_infix, to_latex
from .rules import RULES, rules_in
from .tree import Tree

try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

FORMATS: Dict[str, Callable[[Tree], str]] = {
    "infix": to_infix,
    "latex": to_latex,
    "graph": to_graph,
}


class StepwiseCompleter:
    """Tab completer for the stepwise REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":trace", ":format", ":passes", ":rules",
    ]

    TRACE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'StepwiseREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        """Get list of matches for the current input."""
        line = line.lstrip()

        if line.startswith(":format "):
            return [f for f in FORMATS if f.startswith(text)]

        if line.startswith(":trace "):
            return [t for t in self.TRACE_OPTIONS if t.startswith(text)]

        if line.startswith(":rules "):
            categories = sorted({meta.category for meta in RULES.values()})
            return [c for c in categories if c.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def count_parens(text: str) -> int:
    """Count unbalanced parentheses. Returns >0 if more open than close."""
    depth = 0
    for c in text:
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
    return depth


class StepwiseREPL:
    """Interactive REPL for stepwise."""

    ALIASES = {"exit": "quit", "q": "quit"}

    def __init__(self, max_passes: Optional[int] = None):
        self.simplifier = Simplifier(max_passes)
        self.trace = False
        self.format = "infix"
        self.running = True
        self.multi_line_buffer = ""

        if HAS_READLINE:
            self.history_file = config.HISTORY_FILE
            try:
                readline.read_history_file(self.history_file)
            except OSError:
                pass  # no history yet
            readline.set_history_length(1000)

            self.completer = StepwiseCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                print(f"Could not save history to {self.history_file}: {e}", file=sys.stderr)

    @property
    def render(self) -> Callable[[Tree], str]:
        return FORMATS[self.format]

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        ``:name arg`` is dispatched to ``_command_name(arg)``.
        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""
        handler = getattr(self, f"_command_{self.ALIASES.get(cmd, cmd)}", None)
        if handler is None:
            return f"Unknown command: {cmd}. Type :help for help."
        return handler(arg)

    def _command_help(self, arg: str) -> str:
        return self.help_text()

    def _command_quit(self, arg: str) -> None:
        self.running = False

    def _command_trace(self, arg: str) -> str:
        choice = arg.lower()
        if choice in ("on", "true", "1"):
            self.trace = True
        elif choice in ("off", "false", "0"):
            self.trace = False
        else:
            self.trace = not self.trace
        return f"Tracing {'enabled' if self.trace else 'disabled'}"

    def _command_format(self, arg: str) -> str:
        if arg.lower() not in FORMATS:
            return f"Unknown format. Options: {', '.join(FORMATS)}"
        self.format = arg.lower()
        return f"Format set to: {self.format}"

    def _command_passes(self, arg: str) -> str:
        if not arg:
            return f"Iteration cap: {self.simplifier.max_passes}"
        try:
            self.simplifier = Simplifier(int(arg))
        except ValueError:
            return f"Error: expected a positive integer, got {arg!r}"
        return f"Iteration cap set to: {self.simplifier.max_passes}"

    def _command_rules(self, arg: str) -> str:
        rules = rules_in(arg) if arg else RULES
        if not rules:
            return f"No rules in category: {arg}"
        return "\n".join(repr(meta) for meta in rules.values())

    def help_text(self) -> str:
        """Return help text."""
        return """Stepwise REPL Commands:
  :help              Show this help
  :trace on|off      Toggle tracing (explain every step)
  :format NAME       Output format (infix, latex, graph)
  :passes [N]        Show or set the iteration cap
  :rules [CATEGORY]  List rewrite rules, optionally of one category
  :quit              Exit

Syntax:
  2x+3=7             Solve an equation for x
  2x+3x              Simplify an expression
  sqrt(x^2)          Functions: sin cos tan arcsin arccos arctan
                     sqrt abs deg rad ceil floor round
  pi, e, i           Constants and the imaginary unit
"""

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        if not line or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        try:
            result, derivation = self.simplifier(line, trace=True)
        except StepwiseError as e:
            return f"Error: {e}"

        output = self.render(result)
        if self.trace and derivation:
            # Graphs do not fit on a step line
            render = to_infix if self.format == "graph" else self.render
            return f"{output}\n{derivation.format('verbose', render)}"
        return output

    def run(self):
        """Run the REPL loop."""
        print("Stepwise - step-by-step algebra")
        print("Type :help for help, :quit to exit")
        print("Multi-line input: expressions with unbalanced parens continue on next line")
        print()

        while self.running:
            prompt = "...... " if self.multi_line_buffer else "stepwise> "
            try:
                text = self.feed(input(prompt))
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

            if text is not None:
                result = self.process_line(text)
                if result:
                    print(result)

        self.save_history()

    def feed(self, line: str) -> Optional[str]:
        """
        Buffer a line of input until its parentheses are closed.

        Returns the complete input, or None while an opening parenthesis
        is still unmatched. Extra closing parentheses are left to the parser.
        """
        if self.multi_line_buffer:
            line = f"{self.multi_line_buffer} {line}"
        if count_parens(line) > 0:
            self.multi_line_buffer = line
            return None
        self.multi_line_buffer = ""
        return line


class ScriptRunner:
    """Runs stepwise scripts."""

    def __init__(self, max_passes: Optional[int] = None):
        self.repl = StepwiseREPL(max_passes)

    def run_script(self, path: Path, quiet: bool = False) -> int:
        """
        Run a script file.

        Args:
            path: Path to the script
            quiet: If True, don't print expression results

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1
        return self._run_lines(lines, source=str(path), quiet=quiet)

    def _run_lines(self, lines: Iterable[str], source: Optional[str] = None,
                   quiet: bool = False) -> int:
        """
        Run expressions and commands line by line, stopping at the first error.

        Errors go to stderr as ``source:lineno: message`` when a source is
        given, otherwise to stdout like any other result. Command replies
        are not printed.
        """
        for lineno, line in enumerate(lines, 1):
            result = self.repl.process_line(line)
            if not self.repl.running:
                break
            if not result:
                continue
            if result.startswith(("Error", "Unknown")):
                if source is None:
                    print(result)
                else:
                    print(f"{source}:{lineno}: {result}", file=sys.stderr)
                return 1
            if not quiet and not line.lstrip().startswith(":"):
                print(result)
        return 0

    def run_expression(self, expr_str: str) -> int:
        """
        Evaluate a single expression.

        Returns:
            Exit code (0 for success)
        """
        result = self.repl.process_line(expr_str)
        if result:
            print(result)
            if result.startswith("Error"):
                return 1
        return 0

    def run_stdin(self) -> int:
        """
        Read expressions from stdin and evaluate them.

        Returns:
            Exit code (0 for success)
        """
        return self._run_lines(sys.stdin)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="stepwise",
        description="Stepwise - simplify expressions and solve equations step by step",
        epilog="Examples:\n"
               "  stepwise                       Start REPL\n"
               "  stepwise homework.txt          Run script\n"
               "  stepwise -e '2x+3=7'           Solve one equation\n"
               "  stepwise -t -f latex -e 'x/2=3'  Explained, as LaTeX\n"
               "  echo '2x+3=7' | stepwise       Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run, one expression per line"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Simplify or solve a single expression"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Print the explained derivation after the result"
    )

    parser.add_argument(
        "-f", "--format",
        default="infix",
        choices=list(FORMATS),
        help="Output format"
    )

    parser.add_argument(
        "--max-passes",
        type=int,
        default=config.MAX_PASSES,
        help=f"Iteration cap of the rewriter (default: {config.MAX_PASSES})"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (suppress non-essential output)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every rewrite step"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {config.VERSION}"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.max_passes < 1:
        print(f"--max-passes must be at least 1, got {args.max_passes}", file=sys.stderr)
        sys.exit(1)

    runner = ScriptRunner(args.max_passes)
    runner.repl.trace = args.trace
    runner.repl.format = args.format

    if args.script:
        sys.exit(runner.run_script(Path(args.script), quiet=args.quiet))

    elif args.expr:
        sys.exit(runner.run_expression(args.expr))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
