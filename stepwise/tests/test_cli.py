"""Tests for CLI module."""

import subprocess
import sys

import pytest

from stepwise.cli import ScriptRunner, StepwiseCompleter, StepwiseREPL, count_parens, main


class TestREPLCommands:
    """Tests for REPL command handling."""

    def test_help_command(self):
        """Help command returns help text."""
        repl = StepwiseREPL()
        result = repl.handle_command(":help")
        assert "help" in result.lower()
        assert ":trace" in result

    def test_trace_command(self):
        """Trace command toggles tracing."""
        repl = StepwiseREPL()
        assert repl.trace is False

        result = repl.handle_command(":trace on")
        assert repl.trace is True
        assert "enabled" in result.lower()

        result = repl.handle_command(":trace off")
        assert repl.trace is False
        assert "disabled" in result.lower()

    def test_trace_toggle(self):
        """Trace command without arg toggles."""
        repl = StepwiseREPL()
        repl.handle_command(":trace")
        assert repl.trace is True
        repl.handle_command(":trace")
        assert repl.trace is False

    def test_format_command(self):
        """Format command picks the printer."""
        repl = StepwiseREPL()
        result = repl.handle_command(":format latex")
        assert repl.format == "latex"
        assert "latex" in result

    def test_unknown_format(self):
        """Unknown format returns error."""
        repl = StepwiseREPL()
        result = repl.handle_command(":format svg")
        assert "Unknown" in result
        assert repl.format == "infix"

    def test_passes_command(self):
        """Passes command sets the iteration cap."""
        repl = StepwiseREPL()
        result = repl.handle_command(":passes 10")
        assert repl.simplifier.max_passes == 10
        assert "10" in result
        assert "10" in repl.handle_command(":passes")

    def test_invalid_passes(self):
        """The cap must be a positive integer."""
        repl = StepwiseREPL()
        assert repl.handle_command(":passes 0").startswith("Error")
        assert repl.handle_command(":passes many").startswith("Error")

    def test_rules_command(self):
        """Rules command lists rules, optionally by category."""
        repl = StepwiseREPL()
        assert "plus-zero" in repl.handle_command(":rules")
        solve_rules = repl.handle_command(":rules solve")
        assert "swap-sides" in solve_rules
        assert "plus-zero" not in solve_rules
        assert "No rules" in repl.handle_command(":rules nonsense")

    def test_quit_command(self):
        """Quit command sets running to False."""
        repl = StepwiseREPL()
        assert repl.running is True
        repl.handle_command(":quit")
        assert repl.running is False

    def test_quit_aliases(self):
        """:exit and :q also quit."""
        for alias in (":exit", ":q"):
            repl = StepwiseREPL()
            repl.handle_command(alias)
            assert repl.running is False

    def test_unknown_command(self):
        """Unknown commands are reported."""
        repl = StepwiseREPL()
        assert "Unknown command" in repl.handle_command(":frobnicate")


class TestREPLProcessLine:
    """Tests for REPL line processing."""

    def test_empty_line(self):
        """Empty line returns None."""
        repl = StepwiseREPL()
        assert repl.process_line("") is None
        assert repl.process_line("   ") is None

    def test_comment_line(self):
        """Comment line returns None."""
        repl = StepwiseREPL()
        assert repl.process_line("# comment") is None

    def test_solve(self):
        """Equations are solved."""
        repl = StepwiseREPL()
        assert repl.process_line("2x+3=7") == "x=2"

    def test_simplify(self):
        """Expressions are simplified."""
        repl = StepwiseREPL()
        assert repl.process_line("2x+3x") == "5*x"

    def test_trace(self):
        """Tracing appends the explained derivation."""
        repl = StepwiseREPL()
        repl.handle_command(":trace on")
        result = repl.process_line("2x+3=7")
        lines = result.splitlines()
        assert lines[0] == "x=2"
        assert "Initial: 2*x+3=7" in lines
        assert "  1. Subtract 3 from both sides: 2*x=7-3" in lines

    def test_latex_output(self):
        """Results are rendered with the chosen printer."""
        repl = StepwiseREPL()
        repl.handle_command(":format latex")
        assert repl.process_line("x/(x+1)") == r"\frac{x}{x + 1}"

    def test_graph_trace_uses_infix_steps(self):
        """Graph output keeps one-line steps."""
        repl = StepwiseREPL()
        repl.handle_command(":format graph")
        repl.handle_command(":trace on")
        result = repl.process_line("x+0")
        assert result.startswith("Graph of abstract syntax tree\nx\n")
        assert "Initial: x+0" in result

    def test_errors(self):
        """Errors are reported, not raised."""
        repl = StepwiseREPL()
        assert repl.process_line("5/0") == "Error: Tried to divide by zero"
        assert repl.process_line("x=x=2").startswith("Error: Cannot have more than one")
        assert repl.process_line("2+").startswith("Error: Missing operand")


class TestScriptRunner:
    """Tests for script execution."""

    def test_run_expression(self):
        """Run single expression."""
        runner = ScriptRunner()
        assert runner.run_expression("2x+3=7") == 0

    def test_run_expression_error(self):
        """Errors give exit code 1."""
        runner = ScriptRunner()
        assert runner.run_expression("5/0") == 1

    def test_run_script(self, tmp_path, capsys):
        """Scripts print one result per expression."""
        script = tmp_path / "homework.txt"
        script.write_text("# warm up\nx+0\n\n:format infix\n2x+3=7\n")
        runner = ScriptRunner()
        assert runner.run_script(script) == 0
        assert capsys.readouterr().out == "x\nx=2\n"

    def test_script_error_stops(self, tmp_path, capsys):
        """The first error stops the script."""
        script = tmp_path / "broken.txt"
        script.write_text("x+0\n5/0\nx*1\n")
        runner = ScriptRunner()
        assert runner.run_script(script) == 1
        captured = capsys.readouterr()
        assert captured.out == "x\n"
        assert f"{script}:2: Error" in captured.err

    def test_quit_stops_script(self, tmp_path, capsys):
        """:quit ends the script early."""
        script = tmp_path / "short.txt"
        script.write_text("x+0\n:quit\nx*1\n")
        runner = ScriptRunner()
        assert runner.run_script(script) == 0
        assert capsys.readouterr().out == "x\n"

    def test_missing_script(self, tmp_path, capsys):
        """Unreadable scripts fail."""
        runner = ScriptRunner()
        assert runner.run_script(tmp_path / "missing.txt") == 1
        assert "Error reading" in capsys.readouterr().err


class TestMain:
    """Tests for the argparse entry point."""

    def test_expression(self, capsys):
        """-e evaluates one expression."""
        with pytest.raises(SystemExit) as info:
            main(["-e", "x/2=3"])
        assert info.value.code == 0
        assert capsys.readouterr().out == "x=6\n"

    def test_expression_latex(self, capsys):
        """-f picks the printer."""
        with pytest.raises(SystemExit):
            main(["-f", "latex", "-e", "x/2"])
        assert capsys.readouterr().out == "\\frac{x}{2}\n"

    def test_invalid_max_passes(self, capsys):
        """--max-passes must be positive."""
        with pytest.raises(SystemExit) as info:
            main(["--max-passes", "0", "-e", "x"])
        assert info.value.code == 1


class TestCLIIntegration:
    """Integration tests using subprocess."""

    def test_help_flag(self):
        """--help flag works."""
        result = subprocess.run(
            [sys.executable, "-m", "stepwise.cli", "--help"],
            capture_output=True, text=True
        )
        assert result.returncode == 0
        assert "Stepwise" in result.stdout

    def test_version_flag(self):
        """--version flag works."""
        result = subprocess.run(
            [sys.executable, "-m", "stepwise.cli", "--version"],
            capture_output=True, text=True
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_trace_flag(self):
        """-t prints the derivation."""
        result = subprocess.run(
            [sys.executable, "-m", "stepwise.cli", "-t", "-e", "2x+3=7"],
            capture_output=True, text=True
        )
        assert result.returncode == 0
        assert "Divide both sides by 2" in result.stdout

    def test_error_exit_code(self):
        """Errors exit with status 1."""
        result = subprocess.run(
            [sys.executable, "-m", "stepwise.cli", "-e", "5/0"],
            capture_output=True, text=True
        )
        assert result.returncode == 1
        assert "Error:" in result.stdout

    def test_pipe_mode(self):
        """Pipe mode processes stdin."""
        result = subprocess.run(
            [sys.executable, "-m", "stepwise.cli", "-q"],
            input="x+0\n2x+3=7\n",
            capture_output=True, text=True
        )
        assert result.returncode == 0
        assert result.stdout.splitlines() == ["x", "x=2"]


class TestMultiLineInput:
    """Tests for multi-line input parsing."""

    def test_count_parens_balanced(self):
        """Balanced parens return 0."""
        assert count_parens("(x+1)*2") == 0
        assert count_parens("x") == 0

    def test_count_parens_unbalanced_open(self):
        """More open parens return positive count."""
        assert count_parens("(x+(1") == 2

    def test_count_parens_unbalanced_close(self):
        """More close parens return negative count."""
        assert count_parens("x+1)") == -1

    def test_feed_waits_for_closing_paren(self):
        """Input is buffered until parentheses balance."""
        repl = StepwiseREPL()
        assert repl.feed("(x+1") is None
        assert repl.multi_line_buffer == "(x+1"
        assert repl.feed("*2)") == "(x+1 *2)"
        assert repl.multi_line_buffer == ""

    def test_feed_passes_extra_closing_paren(self):
        """Too many closing parentheses are reported by the parser."""
        repl = StepwiseREPL()
        text = repl.feed("x+1)")
        assert text == "x+1)"
        assert repl.process_line(text).startswith("Error")

    def test_repl_multi_line_buffer(self):
        """REPL has multi-line buffer initialized."""
        repl = StepwiseREPL()
        assert repl.multi_line_buffer == ""


class TestTabCompletion:
    """Tests for tab completion."""

    def test_completer_commands(self):
        """Completer suggests commands."""
        completer = StepwiseCompleter(StepwiseREPL())
        matches = completer._get_matches(":", ":")
        assert ":help" in matches
        assert ":quit" in matches
        assert ":format" in matches

    def test_completer_partial_command(self):
        """Completer handles partial command."""
        completer = StepwiseCompleter(StepwiseREPL())
        matches = completer._get_matches(":t", ":t")
        assert matches == [":trace"]

    def test_completer_formats(self):
        """Completer suggests formats after :format."""
        completer = StepwiseCompleter(StepwiseREPL())
        assert completer._get_matches("", ":format ") == ["infix", "latex", "graph"]

    def test_completer_categories(self):
        """Completer suggests categories after :rules."""
        completer = StepwiseCompleter(StepwiseREPL())
        assert "solve" in completer._get_matches("so", ":rules so")

    def test_completer_trace_options(self):
        """Completer suggests on/off after :trace."""
        completer = StepwiseCompleter(StepwiseREPL())
        matches = completer._get_matches("", ":trace ")
        assert "on" in matches
        assert "off" in matches
