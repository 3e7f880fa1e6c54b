import argparse
import json
import logging
import sys
from typing import List

from ..config.loader import load_config
from ..errors import SymbolicError
from ..planning.pddl import Pddl

logger = logging.getLogger(__name__)


def read_plan(path: str) -> List[str]:
    """
    Read a plan file: one action call per line, optionally wrapped in
    parentheses. ';' starts a comment.
    """
    action_calls = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            comment_pos = line.find(";")
            if comment_pos >= 0:
                line = line[:comment_pos]
            line = line.strip()
            if line.startswith("(") and line.endswith(")"):
                line = line[1:-1].strip()
            if line:
                action_calls.append(line)
    return action_calls


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="PDDL grounded semantics: validation, plan checking, action listing")
    parser.add_argument("--config", default=None, help="Config file path (YAML)")
    parser.add_argument("--domain", default=None, help="Domain PDDL file (overrides config)")
    parser.add_argument("--problem", default=None, help="Problem PDDL file (overrides config)")
    parser.add_argument("--validate", action="store_true", help="Type-check domain and problem")
    parser.add_argument("--verbose", action="store_true", help="Include warnings in the validation report")
    parser.add_argument("--plan", default=None, help="Plan file to check against the problem")
    parser.add_argument("--list-actions", action="store_true", help="List valid actions in the initial state")
    parser.add_argument("--output", default=None, help="Output JSON file path")
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except SymbolicError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=getattr(logging, cfg.logging.level, logging.INFO))

    domain_file = args.domain or cfg.pddl.domain_file
    problem_file = args.problem or cfg.pddl.problem_file
    if domain_file is None or problem_file is None:
        parser.error("a domain and a problem file are required (--domain/--problem or config)")

    logger.info("Loading domain: %s", domain_file)
    logger.info("Loading problem: %s", problem_file)
    try:
        pddl = Pddl.from_files(domain_file, problem_file)
    except SymbolicError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logger.info("Parsed domain '%s' with %d actions", pddl.name, len(pddl.actions))
    logger.info("Parsed problem '%s' with %d objects", pddl.problem.name, len(pddl.objects))

    exit_code = 0
    result = {
        "domain": pddl.name,
        "problem": pddl.problem.name,
        "initial_state": pddl.initial_state.sorted_strings(),
    }

    if args.validate:
        verbose = args.verbose or cfg.validation.verbose
        ok, diagnostics = pddl.validate(verbose=verbose)
        result["validation"] = {
            "ok": ok,
            "diagnostics": [str(d) for d in diagnostics],
        }
        if not ok and cfg.validation.fail_on_error:
            exit_code = 1

    try:
        if args.plan is not None:
            plan = read_plan(args.plan)
            is_valid = pddl.is_valid_plan(plan)
            result["plan"] = {"steps": plan, "valid": is_valid}
            if not is_valid:
                exit_code = 1

        if args.list_actions:
            result["valid_actions"] = pddl.list_valid_actions(pddl.initial_state)
    except (SymbolicError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    output_json = json.dumps(result, indent=2, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output_json)
        logger.info("Results saved to %s", args.output)
    else:
        print(output_json)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
