import io

import pytest

import main as cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch, clean_env):
    # Keep pytest's own log capture handlers in place
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def _run(argv, data: bytes = b""):
    out = io.BytesIO()
    code = cli.main(argv, stdin=io.BytesIO(data), stdout=out)
    return code, out.getvalue()


def test_arg_parser():
    args = cli.build_arg_parser().parse_args(["-w", "-r", "rules.yaml", "docs"])

    assert args.watch
    assert str(args.rules) == "rules.yaml"
    assert str(args.target) == "docs"


def test_stdin_to_stdout():
    code, out = _run([], b"hello, world!\n")

    assert code == 0
    assert out == b"olleh, dlrow!\n"


def test_missing_target_exits_1(tmp_path, capsys):
    code, _ = _run([str(tmp_path / "missing")])

    assert code == 1
    assert "strangify:" in capsys.readouterr().err


def test_bad_rule_set_exits_2(tmp_path, capsys):
    rules = tmp_path / "rules.yaml"
    rules.write_text("mode: sideways\n")

    code, _ = _run(["-r", str(rules)], b"hello\n")

    assert code == 2
    assert "Invalid rule set" in capsys.readouterr().err


def test_bad_environment_exits_2(monkeypatch):
    monkeypatch.setenv("STRANGIFY_LOG_LEVEL", "LOUD")
    code, out = _run([], b"hello\n")

    assert code == 2
    assert out == b""


def test_unit_failures_exit_3():
    code, out = _run([], b"\xff\nfine\n")

    assert code == 3
    assert out == b"enif\n"


def test_file_target(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("hello there")

    code, out = _run([str(target)])

    assert code == 0
    assert out == b""
    assert (tmp_path / "a_strange.txt").read_text() == "olleh ereht"


def test_rules_option(tmp_path):
    rules = tmp_path / "rot.yaml"
    rules.write_text("name: rot\nmode: rot13\n")

    code, out = _run(["-r", str(rules)], b"hello\n")

    assert code == 0
    assert out == b"uryyb\n"


def test_rules_from_environment(tmp_path, monkeypatch):
    rules = tmp_path / "rot.yaml"
    rules.write_text("mode: rot13\n")
    monkeypatch.setenv("STRANGIFY_RULES_PATH", str(rules))

    code, out = _run([], b"hello\n")

    assert code == 0
    assert out == b"uryyb\n"


def test_output_suffix_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("STRANGIFY_OUTPUT_SUFFIX", "_odd")
    (tmp_path / "a.txt").write_text("hello")

    code, _ = _run([str(tmp_path)])

    assert code == 0
    assert (tmp_path / "a_odd.txt").read_text() == "olleh"
