import json

import pytest

from px.modules import cli as cli_mod
from px.modules import eclipse as eclipse_mod
from px.modules.cli import EXIT_CYCLE, EXIT_ERROR, EXIT_OK, EXIT_UNEXPECTED, build_argparser, main

from conftest import write_project


def _stripped(out):
    # rich expands the tab indents
    return [line.strip() for line in out.splitlines()]


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "px.conf"
    path.write_text("[logging]\nlevel = warning\ncolor_output = no\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def px(scenario, eclipse_root, conf, capsys):
    """Runs the CLI against the scenario workspace; returns (exit code, stdout, stderr)."""
    def _run(*argv):
        code = main(["--conf", conf, "--no-color", "-b", str(scenario), "-e", str(eclipse_root), *argv])
        out, err = capsys.readouterr()
        return code, out, err
    return _run


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_argparser().parse_args([])


def test_deps_names(px):
    code, out, _ = px("deps", "-a", "-n", "app")
    assert code == EXIT_OK
    assert out.splitlines() == ["core", "api", "app"]


def test_deps_skips_known_projects(px, make_known, scenario):
    make_known("core")
    code, out, _ = px("deps", "app")
    assert code == EXIT_OK
    assert out.splitlines() == [str((scenario / "api").absolute()), str((scenario / "app").absolute())]


def test_deps_eclipse_ordering(px, make_project):
    make_project("lib.x", build=["core"])
    make_project("lib-y", build=["lib.x"])
    code, out, _ = px("deps", "-a", "-n", "-e", "lib-y")
    assert code == EXIT_OK
    assert out.splitlines() == ["core", "lib.x", "lib-y"]


def test_uses(px):
    code, out, _ = px("uses", "core")
    assert code == EXIT_OK
    assert out.splitlines() == ["api", "app"]


def test_list_and_ls(px):
    assert px("list")[1].splitlines() == ["api", "app", "core"]
    assert px("ls", "a*", "!app")[1].splitlines() == ["api"]


def test_known_gaps_roots(px, make_known, scenario):
    make_known("app", "zzz")
    assert px("known")[1].splitlines() == ["app", "zzz"]
    assert px("gaps")[1].splitlines() == [str((scenario / "core").absolute()), str((scenario / "api").absolute())]
    assert px("roots")[1].splitlines() == ["app"]


def test_graph_json(px):
    code, out, _ = px("graph", "api", "--format", "json")
    assert code == EXIT_OK
    data = json.loads(out)
    assert [p["name"] for p in data["projects"]] == ["api", "core"]
    assert data["edges"] == 1


def test_graph_dot_to_file(px, tmp_path):
    target = tmp_path / "deps.dot"
    code, out, _ = px("graph", "--format", "dot", "-o", str(target))
    assert code == EXIT_OK
    assert out == ""
    assert '"app" -> "core";' in target.read_text(encoding="utf-8")


def test_graph_tree(px):
    code, out, _ = px("graph")
    assert code == EXIT_OK
    assert "app" in out
    assert "(see above)" in out


def test_unknown_project_is_an_error(px):
    code, out, err = px("deps", "nope")
    assert code == EXIT_ERROR
    assert out == ""
    assert 'ERROR: No project found with name "nope"' in err


def test_missing_workspace(tmp_path, conf, capsys):
    code = main(["--conf", conf, "-b", str(tmp_path / "nowhere"), "list"])
    assert code == EXIT_ERROR
    assert "Could not locate bnd workspace" in capsys.readouterr().err


def test_cycle_exit_code(px, scenario):
    write_project(scenario, "loop1", build=["loop2"])
    write_project(scenario, "loop2", build=["loop1"])
    code, _, err = px("deps", "-a", "loop1")
    assert code == EXIT_CYCLE
    assert "Dependency cycle detected" in err


def test_focus_workflow(px, make_known, scenario):
    code, out, _ = px("focus", "add", "api")
    assert code == EXIT_OK
    assert "1 added, 0 removed, 0 unchanged." in out

    code, out, _ = px("focus", "list")
    assert "Focus projects:" in out
    assert "api" in _stripped(out)

    make_known("core")
    assert px("focus", "deps", "-c")[1].strip() == "2"
    assert px("focus", "next")[1].strip() == str((scenario / "api").absolute())

    code, out, _ = px("focus", "kluge", "core")
    assert code == EXIT_OK
    assert "core" in _stripped(out)

    code, _, err = px("focus", "unkluge", "api")
    assert code == EXIT_ERROR
    assert "Unable to find kluge in list: api" in err

    assert px("focus", "clear")[1].strip() == "Focus list cleared"


def test_focus_next_auto(px, monkeypatch, scenario):
    calls = []
    monkeypatch.setattr(eclipse_mod.subprocess, "run", lambda cmd, **kw: calls.append(cmd))
    px("focus", "add", "app")
    code, out, _ = px("-c", "eclipse-import --new", "-f", "press-finish", "focus", "next", "--auto")
    assert code == EXIT_OK
    core = str((scenario / "core").absolute())
    assert out.strip() == core
    assert calls == [["eclipse-import", "--new", core], ["press-finish"]]


def test_focus_batch_requires_auto_for_delay(px):
    px("focus", "add", "app")
    code, _, err = px("focus", "batch", "--delay", "10")
    assert code == EXIT_ERROR
    assert "--delay and --pause can only be used with --auto" in err


def test_focus_orphans(px, make_known):
    make_known("core", "api", "old")
    px("focus", "add", "core")
    code, out, _ = px("focus", "orphans")
    assert code == EXIT_OK
    lines = out.splitlines()
    assert lines[0] == "The following projects are no longer required for the current focus:"
    assert [line.strip() for line in lines[1:-1]] == ["old"]


def test_missing_conf_file_is_an_error(scenario, tmp_path, capsys):
    code = main(["--conf", str(tmp_path / "typo.conf"), "-b", str(scenario), "ls"])
    assert code == EXIT_ERROR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "No configuration file found" in captured.err


def test_missing_conf_from_environment(scenario, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("PX_CONFIG", str(tmp_path / "gone.conf"))
    code = main(["-b", str(scenario), "ls"])
    assert code == EXIT_ERROR
    assert "gone.conf" in capsys.readouterr().err


def test_graph_tree_to_file(px, tmp_path):
    target = tmp_path / "deps.txt"
    code, out, _ = px("graph", "-o", str(target))
    assert code == EXIT_OK
    assert out == ""
    text = target.read_text(encoding="utf-8")
    assert "app" in text
    assert "(see above)" in text


def test_unexpected_error_shows_traceback(px, monkeypatch):
    def boom(cli, args):
        raise RuntimeError("boom")
    monkeypatch.setitem(cli_mod.COMMANDS, "list", boom)

    code, _, err = px("list")
    assert code == EXIT_UNEXPECTED
    assert "Unhandled error: boom" in err
    assert "Traceback (most recent call last)" in err

    code, _, err = px("--quiet", "list")
    assert code == EXIT_UNEXPECTED
    assert "Unhandled error: boom" in err
    assert "Traceback" not in err


def test_unmatched_pattern_reported_even_when_quiet(px):
    code, out, err = px("--quiet", "ls", "nothing*", "core")
    assert code == EXIT_OK
    assert out.splitlines() == ["core"]
    assert "error: no projects found matching pattern 'nothing*'" in err
