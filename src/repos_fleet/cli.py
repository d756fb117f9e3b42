# Command line interface
#
# Main functions:
#   - build_parser(): argparse parser with clone/run/pr/rm/ls/init/auth
#   - main(): parse, load the config, dispatch, map errors to exit codes
#
# Every subcommand except init and auth loads the config file first and
# selects repositories from positional names plus tag filters.

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .application import (
    clone_repositories,
    create_pull_requests,
    init_config,
    list_repositories,
    remove_repositories,
    resolve_run_target,
    run_in_repositories,
)
from .constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PR_BODY,
    DEFAULT_PR_TITLE,
)
from .core.repo_config import load_config
from .domain.models import PrWorkflowOptions, SelectionCriteria
from .domain.validators import format_validation_errors, validate_tag_filter
from .errors import ConfigError, FleetError, TokenRequiredError
from .infra.auth import clear_token, resolve_token, save_token
from .infra.logger import log_error, log_info, log_success


def _filter_arguments() -> argparse.ArgumentParser:
    """Options shared by every subcommand that works on the fleet."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        'repos',
        nargs='*',
        metavar='REPO',
        help='repository names (default: all repositories)'
    )
    parent.add_argument(
        '-c', '--config',
        default=DEFAULT_CONFIG_FILE,
        metavar='FILE',
        help=f'config file (default: {DEFAULT_CONFIG_FILE})'
    )
    parent.add_argument(
        '-t', '--tag',
        action='append',
        default=[],
        metavar='TAG',
        help='only repositories with this tag (repeatable, all must match)'
    )
    parent.add_argument(
        '-e', '--exclude-tag',
        action='append',
        default=[],
        metavar='TAG',
        help='skip repositories with this tag (repeatable)'
    )
    parent.add_argument(
        '--any-tag',
        action='store_true',
        help='match repositories having any of the --tag values instead of all'
    )
    return parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='repos-fleet',
        description='Clone, run commands in and open pull requests across many repositories',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s clone -t backend -p
  %(prog)s run "git status --short" -e archived
  %(prog)s run --recipe bump api web
  %(prog)s pr --title "Bump deps" --create-only
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True
    filters = _filter_arguments()

    parallel = argparse.ArgumentParser(add_help=False)
    parallel.add_argument(
        '-p', '--parallel',
        action='store_true',
        help='one worker per selected repository'
    )

    subparsers.add_parser('clone', parents=[filters, parallel], help='clone repositories')

    run_parser = subparsers.add_parser(
        'run', parents=[filters, parallel], help='run a command or recipe in each repository'
    )
    run_parser.add_argument('--cmd', dest='run_command', metavar='COMMAND',
                            help='shell command to run (alternative to the first positional)')
    run_parser.add_argument('--recipe', metavar='NAME', help='recipe from the config file')
    run_parser.add_argument('--no-save', action='store_true', help='do not write run logs')
    run_parser.add_argument(
        '--output-dir',
        default=DEFAULT_OUTPUT_DIR,
        metavar='DIR',
        help=f'run log directory (default: {DEFAULT_OUTPUT_DIR})'
    )

    pr_parser = subparsers.add_parser(
        'pr', parents=[filters, parallel], help='open pull requests for local changes'
    )
    pr_parser.add_argument('--title', default=DEFAULT_PR_TITLE)
    pr_parser.add_argument('--body', default=DEFAULT_PR_BODY)
    pr_parser.add_argument('--branch', metavar='NAME', help='branch name (default: generated)')
    pr_parser.add_argument('--base', metavar='BRANCH', help='base branch (default: repository default)')
    pr_parser.add_argument('--message', metavar='MSG', help='commit message (default: title)')
    pr_parser.add_argument('--draft', action='store_true')
    pr_parser.add_argument('--create-only', action='store_true',
                           help='commit on a new branch but do not push or open a pull request')
    pr_parser.add_argument('--token', help='GitHub token (default: GITHUB_TOKEN or stored token)')

    subparsers.add_parser('rm', parents=[filters, parallel], help='delete local checkouts')

    ls_parser = subparsers.add_parser('ls', parents=[filters], help='list repositories')
    ls_parser.add_argument('--json', action='store_true', help='print JSON')

    init_parser = subparsers.add_parser('init', help='create a config from local checkouts')
    init_parser.add_argument('root', nargs='?', default='.', help='directory to scan (default: .)')
    init_parser.add_argument('-o', '--output', default=DEFAULT_CONFIG_FILE, metavar='FILE')
    init_parser.add_argument('--overwrite', action='store_true')

    auth_parser = subparsers.add_parser('auth', help='store or remove the GitHub token')
    auth_group = auth_parser.add_mutually_exclusive_group(required=True)
    auth_group.add_argument('--token', help='token to store')
    auth_group.add_argument('--clear', action='store_true', help='remove the stored token')

    return parser


def _criteria(args: argparse.Namespace, repos: Optional[List[str]] = None) -> SelectionCriteria:
    errors = []
    for tag in list(args.tag) + list(args.exclude_tag):
        errors.extend(validate_tag_filter(tag))
    if errors:
        raise ConfigError(format_validation_errors(errors), errors)

    names = args.repos if repos is None else repos
    return SelectionCriteria(
        include_tags=tuple(args.tag),
        exclude_tags=tuple(args.exclude_tag),
        names=tuple(names) if names else None,
        match_any=args.any_tag,
    )


def _run(args: argparse.Namespace) -> None:
    config = load_config(args.config)

    # without --cmd/--recipe the first positional is the command line
    repos = list(args.repos)
    command = args.run_command
    if command is None and args.recipe is None and repos:
        command = repos.pop(0)

    target = resolve_run_target(config, command=command, recipe_name=args.recipe)
    run_in_repositories(
        config,
        _criteria(args, repos),
        target,
        parallel=args.parallel,
        no_save=args.no_save,
        output_dir=args.output_dir,
    )


def _pr(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    token = resolve_token(args.token)
    if not token and not args.create_only:
        raise TokenRequiredError(
            "GitHub token is required: pass --token, set GITHUB_TOKEN or run 'repos-fleet auth --token'"
        )

    options = PrWorkflowOptions(
        title=args.title,
        body=args.body,
        branch_name=args.branch,
        base_branch=args.base,
        commit_msg=args.message,
        draft=args.draft,
        create_only=args.create_only,
        token=token,
    )
    create_pull_requests(config, _criteria(args), options, parallel=args.parallel)


def _auth(args: argparse.Namespace) -> None:
    if args.clear:
        clear_token()
        log_success("Stored token removed")
        return
    storage = save_token(args.token.strip())
    log_success(f"Token stored ({storage})")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'clone':
            clone_repositories(load_config(args.config), _criteria(args), parallel=args.parallel)
        elif args.command == 'run':
            _run(args)
        elif args.command == 'pr':
            _pr(args)
        elif args.command == 'rm':
            remove_repositories(load_config(args.config), _criteria(args), parallel=args.parallel)
        elif args.command == 'ls':
            list_repositories(load_config(args.config), _criteria(args), as_json=args.json)
        elif args.command == 'init':
            init_config(Path(args.root), Path(args.output), overwrite=args.overwrite)
        elif args.command == 'auth':
            _auth(args)
    except FleetError as exc:
        log_error(str(exc))
        return 1
    except KeyboardInterrupt:
        log_info("Interrupted")
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())
