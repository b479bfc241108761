import json

import pytest
from click.testing import CliRunner

from sigil.cli import sigil_cli


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "sigil.toml"
    path.write_text('[global]\nlog_level = "CRITICAL"\n')
    return path


@pytest.fixture
def run(config_path):
    runner = CliRunner()

    def invoke(*args: str):
        return runner.invoke(sigil_cli, ["--config", str(config_path), *args])

    return invoke


def test_info_json(run, elf_path) -> None:
    result = run("info", str(elf_path), "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["machine"] == "x86_64"
    assert data["bits"] == 64
    assert data["interpreter"] == "/lib/ld.so"
    assert data["needed"] == ["libc.so.6"]
    assert data["soname"] == "libsigil.so.1"


def test_info_console(run, elf_path) -> None:
    result = run("info", str(elf_path))
    assert result.exit_code == 0, result.output
    assert "x86_64" in result.output
    assert "/lib/ld.so" in result.output


def test_sections_json(run, elf_path) -> None:
    result = run("sections", str(elf_path), "--json")
    assert result.exit_code == 0, result.output
    names = [section["name"] for section in json.loads(result.output)]
    assert names == ["", ".interp", ".dynsym", ".dynstr", ".dynamic",
                     ".symtab", ".strtab", ".shstrtab"]


def test_segments_json(run, elf_path) -> None:
    result = run("segments", str(elf_path), "--json")
    assert result.exit_code == 0, result.output
    assert [segment["type"] for segment in json.loads(result.output)] == ["INTERP", "LOAD"]


def test_symbols_json_defaults(run, elf_path) -> None:
    result = run("symbols", str(elf_path), "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["table"] == "dynsym"
    assert [s["name"] for s in data["symbols"]] == ["malloc", "sigil_init"]


def test_symbols_json_filters(run, elf_path) -> None:
    result = run(
        "symbols", str(elf_path), "--table", "symtab",
        "--type", "FUNC", "--bind", "LOCAL", "--bind", "GLOBAL", "--json",
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert [s["name"] for s in data["symbols"]] == ["helper", "sigil_init", "main"]


def test_symbols_all(run, elf_path) -> None:
    result = run("symbols", str(elf_path), "--all", "--json")
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["count"] == 5


def test_symbols_text_output_file(run, elf_path, tmp_path) -> None:
    target = tmp_path / "symbols.txt"
    result = run("symbols", str(elf_path), "--output", str(target))
    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8").splitlines() == [
        "malloc .dynsym",
        "sigil_init .dynsym",
    ]


def test_symbols_json_output_file(run, elf_path, tmp_path) -> None:
    target = tmp_path / "symbols.json"
    result = run("symbols", str(elf_path), "--output", str(target))
    assert result.exit_code == 0, result.output
    assert json.loads(target.read_text(encoding="utf-8"))["count"] == 2


def test_symbols_unknown_type(run, elf_path) -> None:
    result = run("symbols", str(elf_path), "--type", "SUBROUTINE")
    assert result.exit_code == 1


def test_lookup_by_name(run, elf_path) -> None:
    result = run("lookup", str(elf_path), "--name", "main", "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["value"] == 0x1200
    assert data["table"] == ".symtab"


def test_lookup_by_address(run, elf_path) -> None:
    result = run("lookup", str(elf_path), "--address", "0x1110", "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["name"] == "sigil_init"
    assert data["table"] == ".dynsym"


def test_lookup_miss(run, elf_path) -> None:
    result = run("lookup", str(elf_path), "--name", "nothing_here")
    assert result.exit_code == 1


def test_lookup_needs_exactly_one_query(run, elf_path) -> None:
    assert run("lookup", str(elf_path)).exit_code == 2
    assert run("lookup", str(elf_path), "--name", "main", "--address", "0").exit_code == 2


def test_lookup_bad_address(run, elf_path) -> None:
    assert run("lookup", str(elf_path), "--address", "zzz").exit_code == 2


def test_not_an_elf_exits_with_error(run, tmp_path) -> None:
    path = tmp_path / "plain.txt"
    path.write_text("hello\n")
    result = run("info", str(path))
    assert result.exit_code == 1
    assert "Bad magic" in result.output


def test_missing_config_file(elf_path, tmp_path) -> None:
    result = CliRunner().invoke(
        sigil_cli, ["--config", str(tmp_path / "nope.toml"), "info", str(elf_path)]
    )
    assert result.exit_code == 2


def test_version() -> None:
    result = CliRunner().invoke(sigil_cli, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output
