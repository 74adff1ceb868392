#!/usr/bin/env python3
"""
GitHub Owners Interceptor Command Line Interface

Usage:
    github-owners evaluate --body <file> --event <type> [--params <file>]
    github-owners match --file <file>
    github-owners owners --file <file>
    github-owners serve [--host <addr>] [--port <port>] [--log-level <level>]
"""

import argparse
import json
import os
import sys


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_evaluate(args):
    """Run the decision engine for a saved webhook body against live GitHub."""
    from github_owners import (
        AuthorizationParams,
        DecisionEngine,
        Deadline,
        GitHubOwnersError,
        GitHubRepositoryHost,
    )

    body = read_text(args.body)
    try:
        params = AuthorizationParams.from_dict(load_json(args.params) if args.params else {})
    except GitHubOwnersError as e:
        print(f"Invalid params: {e.message}", file=sys.stderr)
        return 2

    token = os.environ.get(args.token_env, "")
    with GitHubRepositoryHost.for_request(
        token=token or None,
        enterprise_host=args.enterprise_host,
        timeout=args.timeout,
        deadline=Deadline(args.deadline),
    ) as host:
        verdict = DecisionEngine(host).decide(args.event, body, params)

    print(json.dumps(verdict.to_dict() if args.verbose else verdict.to_response(), indent=2))

    if verdict.allowed():
        print("\n✓ ALLOW", file=sys.stderr)
        return 0
    if verdict.denied():
        print("\n✗ DENY", file=sys.stderr)
        return 1
    print(f"\n! {verdict.code.name}: {verdict.message}", file=sys.stderr)
    return 2


def cmd_match(args):
    """Check whether a comment body is a trust comment."""
    from github_owners import is_trust_comment

    body = sys.stdin.read() if args.file == "-" else read_text(args.file)
    if is_trust_comment(body):
        print("trust comment")
        return 0
    print("not a trust comment")
    return 1


def cmd_owners(args):
    """Parse an OWNERS file and print its entries."""
    from github_owners import PolicyMalformedError, parse_owners

    try:
        policy = parse_owners(read_text(args.file))
    except PolicyMalformedError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 1

    print(json.dumps({
        "approvers": sorted(policy.approvers),
        "reviewers": sorted(policy.reviewers),
    }, indent=2))
    if args.login:
        found = policy.includes(args.login)
        print(f"\n{args.login}: {'listed' if found else 'not listed'}", file=sys.stderr)
        return 0 if found else 1
    return 0


def cmd_serve(args):
    """Run the interceptor web service."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="GitHub Owners Interceptor CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  github-owners evaluate -b event.json -e pull_request -p params.json
  github-owners match -f comment.txt
  github-owners owners -f OWNERS -l alice
  github-owners serve --port 8082
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # evaluate
    eval_parser = subparsers.add_parser("evaluate", help="Evaluate a webhook body")
    eval_parser.add_argument("-b", "--body", required=True, help="Webhook body JSON file")
    eval_parser.add_argument("-e", "--event", required=True, help="X-GitHub-Event value")
    eval_parser.add_argument("-p", "--params", help="Interceptor params JSON file")
    eval_parser.add_argument("--token-env", default="GITHUB_TOKEN", help="Environment variable holding the token")
    eval_parser.add_argument("--enterprise-host", help="GitHub Enterprise host name")
    eval_parser.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    eval_parser.add_argument("--deadline", type=float, default=None, help="Overall deadline in seconds")
    eval_parser.add_argument("-v", "--verbose", action="store_true", help="Print the full decision record")

    # match
    match_parser = subparsers.add_parser("match", help="Test a comment body for /ok-to-test")
    match_parser.add_argument("-f", "--file", required=True, help="Comment body file, or - for stdin")

    # owners
    owners_parser = subparsers.add_parser("owners", help="Parse an OWNERS file")
    owners_parser.add_argument("-f", "--file", required=True, help="OWNERS file")
    owners_parser.add_argument("-l", "--login", help="Check whether this login is listed")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the web service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8082")), help="Port (default from PORT)")
    serve_parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Log level (default from LOG_LEVEL)")

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "evaluate":
        sys.exit(cmd_evaluate(args))
    elif args.command == "match":
        sys.exit(cmd_match(args))
    elif args.command == "owners":
        sys.exit(cmd_owners(args))
    elif args.command == "serve":
        sys.exit(cmd_serve(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
