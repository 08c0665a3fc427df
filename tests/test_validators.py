import pytest

from git_context.core.validators import (
    validate_args,
    validate_branch_name,
    validate_commit_hash,
    validate_file_path,
    validate_remote_url,
    validate_short_commit_hash,
)
from git_context.utils.errors import ValidationError


@pytest.mark.parametrize("name", ["main", "feature/login-form", "release_2024", "a"])
def test_validate_branch_name_accepts_valid_names(name):
    assert validate_branch_name(name) == name


@pytest.mark.parametrize(
    "name, rule",
    [
        ("", "branch_name_empty"),
        ("a" * 256, "branch_name_too_long"),
        ("--upload-pack=evil", "branch_name_flag_injection"),
        ("main; rm -rf /", "branch_name_charset"),
        ("main..other", "branch_name_charset"),
        ("feature branch", "branch_name_charset"),
    ],
)
def test_validate_branch_name_rejects_invalid_names(name, rule):
    with pytest.raises(ValidationError) as exc_info:
        validate_branch_name(name)
    assert exc_info.value.rule == rule
    assert exc_info.value.kind == "validation"


def test_validate_commit_hash():
    full = "a" * 40
    assert validate_commit_hash(full) == full

    for bad in ["a" * 39, "A" * 40, "g" * 40, "HEAD", "abc1234"]:
        with pytest.raises(ValidationError) as exc_info:
            validate_commit_hash(bad)
        assert exc_info.value.rule == "commit_hash_format"


def test_validate_short_commit_hash():
    assert validate_short_commit_hash("abc1234") == "abc1234"
    assert validate_short_commit_hash("0" * 40) == "0" * 40
    with pytest.raises(ValidationError):
        validate_short_commit_hash("abc123")
    with pytest.raises(ValidationError):
        validate_short_commit_hash("0" * 41)


@pytest.mark.parametrize("path", ["src/app.py", "README.md", "docs/a b.txt", "./src/x.py", "dir/..hidden"])
def test_validate_file_path_accepts_relative_paths(path):
    assert validate_file_path(path) == path


@pytest.mark.parametrize(
    "path, rule",
    [
        ("", "file_path_empty"),
        ("src/\0evil", "file_path_null_byte"),
        ("--upload-pack=evil", "file_path_flag_injection"),
        ("-n", "file_path_flag_injection"),
        ("/etc/passwd", "file_path_absolute"),
        ("C:\\Windows\\system32", "file_path_absolute"),
        ("\\\\server\\share", "file_path_absolute"),
        ("../secret", "file_path_traversal"),
        ("src/../../secret", "file_path_traversal"),
        ("src/../app.py", "file_path_traversal"),
        ("src\\..\\..\\secret", "file_path_traversal"),
    ],
)
def test_validate_file_path_rejects_unsafe_paths(path, rule):
    with pytest.raises(ValidationError) as exc_info:
        validate_file_path(path)
    assert exc_info.value.rule == rule


def test_validate_remote_url():
    for url in [
        "https://github.com/org/repo.git",
        "http://example.com/repo.git",
        "ssh://git@example.com/repo.git",
        "git@github.com:org/repo.git",
        "file:///srv/repo.git",
    ]:
        assert validate_remote_url(url) == url

    with pytest.raises(ValidationError) as exc_info:
        validate_remote_url("ext::sh -c touch% /tmp/pwned")
    assert exc_info.value.rule == "remote_url_protocol"

    with pytest.raises(ValidationError) as exc_info:
        validate_remote_url("")
    assert exc_info.value.rule == "remote_url_empty"


def test_validate_args_accepts_safe_arguments():
    args = ["status", "--porcelain=v2", "-z", "--untracked-files=no"]
    validated = validate_args(args)
    assert validated == args
    assert validated is not args


@pytest.mark.parametrize(
    "arg, rule",
    [
        ("HEAD; rm -rf /", "arg_shell_metacharacter"),
        ("$(whoami)", "arg_shell_metacharacter"),
        ("`id`", "arg_shell_metacharacter"),
        ("a|b", "arg_shell_metacharacter"),
        ("a>b", "arg_shell_metacharacter"),
        ("line\nbreak", "arg_control_character"),
        ("nul\0byte", "arg_control_character"),
        ("--upload-pack=evil", "arg_unknown_flag"),
        ("--output=/tmp/x", "arg_unknown_flag"),
        ("--", "arg_unknown_flag"),
    ],
)
def test_validate_args_rejects_unsafe_arguments(arg, rule):
    with pytest.raises(ValidationError) as exc_info:
        validate_args(["log", arg])
    assert exc_info.value.rule == rule


def test_validate_args_rejects_non_strings_and_empty_vectors():
    with pytest.raises(ValidationError) as exc_info:
        validate_args(["log", 42])
    assert exc_info.value.rule == "arg_type"

    with pytest.raises(ValidationError) as exc_info:
        validate_args([])
    assert exc_info.value.rule == "args_empty"


def test_validation_error_payload():
    with pytest.raises(ValidationError) as exc_info:
        validate_file_path("../x")
    payload = exc_info.value.to_payload()
    assert payload["kind"] == "validation"
    assert payload["rule"] == "file_path_traversal"
    assert payload["offending_value"] == "'../x'"
