# Command-line front end for the expression evaluator: one-shot evaluation of an
# argument, a file or piped stdin, and an interactive prompt with history and help.
#
# Every line is evaluated on its own; the prompt keeps no values between lines.
# Errors from the evaluator are printed with a caret under the offending column.

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from pydantic import ValidationError

from eval_expr.config import Settings, configure_logging, load_settings
from eval_expr.errors import EvalError
from eval_expr.evaluator import evaluate
from eval_expr.output import EvaluationOutcome, describe_error, format_number

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EVAL_ERROR = 1
EXIT_USAGE = 2

# --------------------------
# Help
# --------------------------

_HELP_TOPICS = {
    'general': (
        "Expression evaluator help:\n"
        "Type an arithmetic expression and press Enter.\n"
        "Examples:\n"
        "  2 + 3 * 4      -> 14\n"
        "  (2 + 3) * 4    -> 20\n"
        "  2 ^ 3 ^ 2      -> 512\n"
        "  -2 ^ 2         -> -4\n"
        "  7 / 2          -> 3.5\n"
        "Commands:\n"
        "  :help, help [topic]    show help (topics: operators, errors)\n"
        "  :history               show recent history\n"
        "  :exit, :quit           exit\n"
    ),
    'operators': (
        "Operators and precedence (high -> low):\n"
        "  ^      power (right-assoc): 2^3^2 == 2^(3^2)\n"
        "  -      unary minus: -2^2 == -(2^2), 3*-2 == -6\n"
        "  * /    multiply, divide (left-assoc)\n"
        "  + -    add, subtract (left-assoc): 1-2-3 == (1-2)-3\n"
        "Notes:\n"
        "  - Numbers are decimal literals such as 12, 1.5 or 3.\n"
        "  - All arithmetic is 64-bit floating point; 7/2 == 3.5.\n"
        "  - x^0 == 1 for every x.\n"
    ),
    'errors': (
        "Errors:\n"
        "  lex_error          character that is not a digit, '.', operator or parenthesis\n"
        "  unexpected_token   operator or ')' where a number was expected\n"
        "  unmatched_paren    '(' never closed, or ')' never opened\n"
        "  empty_expression   nothing but whitespace\n"
        "  division_by_zero   x/0, or 0 raised to a negative power\n"
        "  numeric_overflow   result too large for a float\n"
        "  domain_error       negative number raised to a fractional power\n"
        "  nesting_too_deep   more nested parentheses/signs/powers than allowed\n"
    ),
}


def show_help(topic: Optional[str] = None) -> str:
    """Return help text for topic or general if None."""
    if not topic:
        return _HELP_TOPICS['general']
    key = topic.lower()
    return _HELP_TOPICS.get(key, f"No help available for topic '{topic}'")


# --------------------------
# REPL
# --------------------------

class REPL:
    """Read-Eval-Print Loop over the evaluator."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.history_file = settings.history_file
        self.session: Optional[PromptSession] = None

    def _process_command(self, line: str) -> Optional[str]:
        """Process lines starting with ':' or 'help'. Returns response string if a command, else None."""
        s = line.strip()
        if not s:
            return None
        if s.startswith(':'):
            body = s[1:].lstrip()
            if body == '':
                return "No command specified. Use :help for available commands."
            parts = body.split(None, 1)
            cmd = parts[0]
            args = parts[1].split() if len(parts) > 1 else []
            return self._run_command(cmd, args)
        parts = s.split(None, 1)
        if parts[0].lower() == 'help':
            if len(parts) == 1:
                return show_help(None)
            return show_help(parts[1].strip())
        return None

    def _run_command(self, cmd: str, args: List[str]) -> str:
        """Execute a colon command. Raises EOFError for exit/quit so the loop can shut down."""
        cmd_lower = cmd.lower()
        if cmd_lower in {'exit', 'quit'}:
            raise EOFError()
        if cmd_lower == 'help':
            topic = args[0] if args else None
            return show_help(topic)
        if cmd_lower == 'history':
            return self._read_history()
        return f"Unknown command: {cmd}"

    def _read_history(self, limit: int = 50) -> str:
        try:
            with open(self.history_file, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        except OSError as e:
            return f"Could not read history: {e}"
        # FileHistory stores each entry as "+"-prefixed lines after a "#" timestamp
        entries = [ln[1:] for ln in lines if ln.startswith('+')]
        if not entries:
            return "(history is empty)"
        return "\n".join(entries[-limit:])

    def evaluate_line(self, line: str) -> Tuple[bool, str]:
        """Evaluate a single line (either command or expression). Returns (ok, output)."""
        cmd_out = self._process_command(line)
        if cmd_out is not None:
            return True, cmd_out
        try:
            value = evaluate(line, self.settings.max_depth)
        except EvalError as e:
            logger.debug(f"Line {line!r} failed with {e.code}")
            return False, describe_error(line, e)
        return True, format_number(value)

    def repl_loop(self) -> None:
        """Interactive loop on prompt_toolkit, with history persisted to the history file."""
        print("Expression evaluator. Type :help for help. Ctrl-D or :exit to quit.")
        if self.session is None:
            self.session = PromptSession(history=FileHistory(self.history_file))
        while True:
            try:
                line = self.session.prompt('> ')
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print("Exiting.")
                break
            if not line.strip():
                continue
            try:
                _, out = self.evaluate_line(line)
            except EOFError:
                print("Exiting.")
                break
            print(out)


# --------------------------
# Entry point
# --------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eval-expr",
        description="Evaluate an arithmetic expression with + - * / ^ and parentheses.",
        epilog="Put '--' before an expression that starts with '-', e.g. eval-expr -- -2^2",
    )
    parser.add_argument(
        "expression",
        nargs="*",
        help="Expression to evaluate; several arguments are joined with spaces.",
    )
    parser.add_argument(
        "-f", "--file",
        type=str,
        help="Read the expression from a file instead.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the outcome as a JSON object.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Maximum nesting of parentheses, signs and powers (default: EVAL_EXPR_MAX_DEPTH or 100).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: EVAL_EXPR_LOG_LEVEL or WARNING).",
    )
    return parser


def _read_file(path: str) -> str:
    logger.info(f"Reading expression from {path}")
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return text.rstrip('\r\n')


def run_once(expression: str, settings: Settings, as_json: bool = False) -> int:
    """Evaluate one expression, print the outcome and return the exit status."""
    try:
        value = evaluate(expression, settings.max_depth)
    except EvalError as e:
        if as_json:
            print(EvaluationOutcome.failure(expression, e).model_dump_json())
        else:
            print(describe_error(expression, e), file=sys.stderr)
        return EXIT_EVAL_ERROR
    if as_json:
        print(EvaluationOutcome.success(expression, value).model_dump_json())
    else:
        print(format_number(value))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.expression and args.file:
        parser.error("give either an expression or --file, not both")

    try:
        settings = load_settings()
        overrides = {}
        if args.log_level is not None:
            overrides['log_level'] = args.log_level
        if args.max_depth is not None:
            overrides['max_depth'] = args.max_depth
        if overrides:
            settings = Settings.model_validate({**settings.model_dump(), **overrides})
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)
    logger.debug(f"Using settings {settings!r}")

    if args.file:
        try:
            expression = _read_file(args.file)
        except OSError as e:
            print(f"Could not read {args.file}: {e}", file=sys.stderr)
            return EXIT_USAGE
        return run_once(expression, settings, args.json)
    if args.expression:
        return run_once(" ".join(args.expression), settings, args.json)
    if sys.stdin is None:
        # pythonw and detached processes have no stdin at all
        print("No expression given and no input to read from", file=sys.stderr)
        return EXIT_USAGE
    if not sys.stdin.isatty():
        logger.info("Reading expression from stdin")
        return run_once(sys.stdin.read().rstrip('\r\n'), settings, args.json)

    repl = REPL(settings)
    repl.repl_loop()
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
