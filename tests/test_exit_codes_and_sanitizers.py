import pytest

from repos_fleet.domain.exit_codes import describe_exit_code
from repos_fleet.domain.sanitizers import sanitize_for_filename, sanitize_script_name


@pytest.mark.parametrize(
    "code, description",
    [
        (0, "success"),
        (1, "general error"),
        (2, "shell builtin misuse"),
        (126, "command invoked cannot execute"),
        (127, "command not found"),
        (128, "invalid argument to exit"),
        (130, "script terminated by Control-C"),
        (131, "terminated by signal"),
        (255, "terminated by signal"),
        (3, "error"),
        (-1, "error"),
    ],
)
def test_describe_exit_code(code, description):
    assert describe_exit_code(code) == description


def test_sanitize_for_filename_replaces_and_truncates():
    assert sanitize_for_filename("npm run build:prod") == "npm_run_build_prod"
    assert sanitize_for_filename("a/b\\c") == "a_b_c"
    assert len(sanitize_for_filename("x" * 80)) == 50


def test_sanitize_script_name_lowercases():
    assert sanitize_script_name("Bump Deps!") == "bump_deps_"
    assert sanitize_script_name("release-2_x") == "release-2_x"
