"""End-to-end tests for the po command line (process replacement is faked)."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import ExecCalled
from po import __version__
from po.cli._dispatcher import main

DOC = {
    "aliases": {"hi": "greet", "st": "group:subtask"},
    "commands": {
        "greet": {
            "short": "Say hello",
            "args": [{"var": "name", "desc": "who to greet"}],
            "script": 'echo "Hello $name"',
            "example": "po greet Alice",
        },
        "bye": {
            "short": "Say bye",
            "flags": {"name": {"short": "n", "default": "World", "desc": "who"}},
            "script": 'echo "Bye $name"',
        },
        "flagger": {
            "script": "echo $FLAGS",
            "flags": {
                "bar": {"type": "int", "flags_prefix": "--bar="},
                "verbose": {"type": "bool", "short": "v"},
            },
        },
        "copy": {
            "args": [{"var": "src", "amount": {"at_least": 1}}, {"var": "dst"}],
            "flags": {"force": {"type": "bool", "short": "f"}},
            "script": "cp $src $dst",
        },
        "subtask": {"short": "top-level subtask", "script": "echo top"},
        "group": {
            "short": "Grouped commands",
            "commands": {
                "subtask": {"short": "nested subtask", "script": "echo nested"},
                "inner": {"short": "inner group", "commands": {"leaf": {"script": "echo leaf"}}},
            },
        },
    },
}


@pytest.fixture
def project_doc(isolated_po_env, write_yaml) -> Path:
    return write_yaml(isolated_po_env["project"] / "po.yml", DOC)


def exec_of(argv):
    with pytest.raises(ExecCalled) as excinfo:
        main(argv)
    return excinfo.value


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"po {__version__}"


def test_no_command_without_documents_prints_hint(capsys) -> None:
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "USAGE" in out
    assert "No commands found" in out


def test_list_commands_shows_root_level_only(project_doc, capsys) -> None:
    assert main(["-c"]) == 0
    lines = capsys.readouterr().out.splitlines()
    names = [line.split()[0] for line in lines]
    assert names == ["bye", "copy", "flagger", "greet", "group", "subtask"]
    assert any(line.startswith("greet") and line.endswith("Say hello") for line in lines)


def test_root_help_lists_commands(project_doc, capsys) -> None:
    assert main(["--help"]) == 0
    out = capsys.readouterr().out
    assert "COMMANDS" in out and "greet" in out
    assert "group:subtask" not in out


def test_greet_requires_exactly_one_argument(project_doc, capsys, fake_execve) -> None:
    assert main(["greet"]) == 1
    err = capsys.readouterr().err
    assert "ERROR [po greet]: requires exactly 1 arguments" in err
    assert "Run 'po greet --help' for usage." in err
    assert fake_execve == []


def test_greet_binds_argument(project_doc) -> None:
    call = exec_of(["greet", "Alice"])
    assert call.env["name"] == "Alice"
    assert call.env["ARGS"] == "Alice"
    assert Path(call.path).read_text(encoding="utf-8") == '#! /bin/sh\necho "Hello $name"'


def test_alias_invokes_target(project_doc) -> None:
    call = exec_of(["hi", "Bob"])
    assert call.env["name"] == "Bob"


def test_bye_uses_default_then_explicit_flag(project_doc) -> None:
    assert exec_of(["bye"]).env["FLAGS"] == "--name World"
    assert exec_of(["bye", "--name", "Bob"]).env["FLAGS"] == "--name Bob"
    assert exec_of(["bye", "-n", "Eve"]).env["name"] == "Eve"


def test_flagger_custom_prefix_and_bool(project_doc) -> None:
    env = exec_of(["flagger", "--bar", "5"]).env
    assert env["FLAGS"] == "--bar=5"
    env = exec_of(["flagger", "-v", "--bar=7"]).env
    assert env["FLAGS"] == "--bar=7 --verbose"
    env = exec_of(["flagger", "--verbose=false"]).env
    assert env["FLAGS"] == ""


def test_invalid_int_flag_value_is_a_usage_error(project_doc, capsys) -> None:
    assert main(["flagger", "--bar", "five"]) == 1
    assert "ERROR [po flagger]" in capsys.readouterr().err


def test_invalid_bool_assignment_is_a_usage_error(project_doc, capsys) -> None:
    assert main(["flagger", "--verbose=maybe"]) == 1
    assert 'invalid argument "maybe"' in capsys.readouterr().err


def test_unknown_flag_is_a_usage_error(project_doc, capsys) -> None:
    assert main(["greet", "Alice", "--nope"]) == 1
    assert "ERROR [po greet]" in capsys.readouterr().err


def test_flags_and_positionals_may_be_intermixed(project_doc) -> None:
    env = exec_of(["copy", "a", "-f", "b", "c"]).env
    assert env["src"] == "a b"
    assert env["dst"] == "c"
    assert env["FLAGS"] == "--force"


def test_double_dash_ends_flag_parsing(project_doc) -> None:
    env = exec_of(["copy", "--", "-f", "dest"]).env
    assert env["src"] == "-f"
    assert env["FLAGS"] == ""


def test_nested_command_is_distinct_from_top_level(project_doc) -> None:
    top = exec_of(["subtask"])
    nested = exec_of(["group:subtask"])
    assert Path(top.path).read_text(encoding="utf-8").endswith("echo top")
    assert Path(nested.path).read_text(encoding="utf-8").endswith("echo nested")
    assert exec_of(["st"]).path == nested.path


def test_group_prints_direct_children_only(project_doc, capsys, fake_execve) -> None:
    assert main(["group"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Grouped commands")
    assert "group:subtask" in out
    assert "group:inner" in out
    assert "group:inner:leaf" not in out
    assert fake_execve == []


def test_command_help(project_doc, capsys) -> None:
    assert main(["greet", "--help"]) == 0
    out = capsys.readouterr().out
    assert "po greet NAME [FLAGS]" in out
    assert "ALIASES\n  hi" in out
    assert "NAME who to greet" in out
    assert "EXAMPLE\n  po greet Alice" in out


def test_unknown_command(project_doc, capsys) -> None:
    assert main(["nope"]) == 1
    assert 'ERROR [po]: unknown command "nope"' in capsys.readouterr().err


def test_broken_document_exits_2(isolated_po_env, write_yaml, capsys) -> None:
    write_yaml(isolated_po_env["project"] / "po.yml", "commands: [broken\n")
    assert main(["-c"]) == 2
    assert capsys.readouterr().err.startswith("ERROR [po]: ")


def test_cyclic_import_exits_2(isolated_po_env, write_yaml) -> None:
    write_yaml(isolated_po_env["project"] / "po.yml", {"imports": [{"file": "po.yml"}]})
    assert main(["anything"]) == 2


def test_materialization_failure_exits_3(isolated_po_env, write_yaml, capsys) -> None:
    write_yaml(
        isolated_po_env["project"] / "po.yml",
        {"commands": {"x": {"script": "true", "flags": {"n": {"type": "int", "default": "lots"}}}}},
    )
    assert main(["x"]) == 3
    assert "invalid default 'lots'" in capsys.readouterr().err


def test_refresh_clears_caches(project_doc, isolated_po_env) -> None:
    call = exec_of(["greet", "Alice"])
    assert Path(call.path).exists()

    assert main(["--refresh"]) == 0
    assert not Path(call.path).exists()


def test_refresh_works_with_broken_document(isolated_po_env, write_yaml) -> None:
    write_yaml(isolated_po_env["project"] / "po.yml", "commands: [broken\n")
    assert main(["--refresh"]) == 0


def test_root_rejects_stray_arguments(capsys) -> None:
    assert main(["-c", "extra"]) == 1
    assert "ERROR [po]" in capsys.readouterr().err


def test_user_document_commands_are_available(isolated_po_env, write_yaml) -> None:
    write_yaml(
        isolated_po_env["config"] / "po.yml",
        {"environment": {"WHERE": "user"}, "commands": {"home": {"script": "echo $POHOME"}}},
    )
    env = exec_of(["home"]).env
    assert env["POHOME"] == str(isolated_po_env["config"])
    assert env["WHERE"] == "user"
    assert "POPATH" not in env or env["POPATH"] != str(isolated_po_env["project"])


def test_exec_hand_off_is_recorded_not_performed(project_doc, fake_execve) -> None:
    call = exec_of(["greet", "Alice"])
    assert fake_execve == [call]
    assert call.argv == [call.path]


def test_value_flags_accept_dash_prefixed_values(project_doc) -> None:
    assert exec_of(["bye", "--name", "-x"]).env["FLAGS"] == "--name -x"
    assert exec_of(["bye", "-n", "--y"]).env["name"] == "--y"
    assert exec_of(["flagger", "--bar", "-3"]).env["FLAGS"] == "--bar=-3"


def test_value_flag_without_value_is_a_usage_error(project_doc, capsys) -> None:
    assert main(["bye", "--name"]) == 1
    assert "ERROR [po bye]" in capsys.readouterr().err


def test_missing_file_import_exits_2(isolated_po_env, write_yaml, capsys) -> None:
    write_yaml(isolated_po_env["project"] / "po.yml", {"imports": [{"file": "nope.yml"}]})
    assert main(["-c"]) == 2
    assert "nope.yml" in capsys.readouterr().err


def test_unreadable_cached_import_exits_2(isolated_po_env, write_yaml, cache_store, capsys) -> None:
    url = "https://example.com/po.yml"
    write_yaml(isolated_po_env["project"] / "po.yml", {"imports": [{"url": url}]})
    cache_store.imports.path_for(url).mkdir(parents=True)

    assert main(["-c"]) == 2
    assert "cannot read cached import" in capsys.readouterr().err


def test_unopenable_log_file_exits_1(isolated_po_env, monkeypatch, capsys) -> None:
    blocker = isolated_po_env["project"] / "blocker"
    blocker.write_text("x")
    monkeypatch.setenv("PO_LOG_FILE", str(blocker / "po.log"))

    assert main(["-c"]) == 1
    assert "ERROR [po]: cannot open log file" in capsys.readouterr().err


def test_debug_logging_includes_structured_error(project_doc, monkeypatch, capsys) -> None:
    monkeypatch.setenv("PO_LOG_LEVEL", "DEBUG")
    assert main(["greet"]) == 1
    err = capsys.readouterr().err
    assert '"code": "ArityMismatchError"' in err
    assert '"kind": "exact"' in err
