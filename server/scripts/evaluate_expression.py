from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, List, Sequence, TextIO

from qalc.core.context import request_scope
from qalc.models.calculator import EvaluationResult
from qalc.services.calculator import CalculatorService, format_result

logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")
logger = logging.getLogger("evaluate_expression")

QUIT_COMMANDS = {"q", "quit", "exit"}


def render(outcome: EvaluationResult, *, as_json: bool = False) -> str:
    if as_json:
        return json.dumps(outcome.model_dump(mode="json"))
    if outcome.success:
        return format_result(outcome.result)
    return f"error: {outcome.message}"


def evaluate_all(
    service: CalculatorService,
    expressions: Iterable[str],
    *,
    output: TextIO,
    as_json: bool = False,
) -> int:
    failures = 0
    for expression in expressions:
        with request_scope():
            outcome = service.evaluate(expression)
        if not outcome.success:
            failures += 1
            logger.info("Expression %r failed: %s", expression, outcome.error.value)
        print(render(outcome, as_json=as_json), file=output)
    return failures


def read_interactive(stream: TextIO) -> Iterable[str]:
    for line in stream:
        text = line.rstrip("\n")
        if text.strip().lower() in QUIT_COMMANDS:
            return
        if not text.strip():
            continue
        yield text


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate arithmetic expressions with the launcher calculator.")
    parser.add_argument(
        "expressions",
        nargs="*",
        help="Expressions to evaluate. Reads one per line from stdin when omitted ('q' to quit).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result envelope as JSON instead of the display value.",
    )
    parser.add_argument(
        "--max-length",
        type=int,
        default=CalculatorService.MAX_EXPRESSION_LENGTH,
        help="Maximum accepted expression length after trimming.",
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None, *, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    args = parse_args(argv)
    service = CalculatorService(max_expression_length=args.max_length)
    output = stdout or sys.stdout

    if args.expressions:
        expressions: Iterable[str] = args.expressions
    else:
        expressions = read_interactive(stdin or sys.stdin)

    failures = evaluate_all(service, expressions, output=output, as_json=args.json)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
