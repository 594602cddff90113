"""Tests for the cargolink command line."""

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from cargolink.cli import error_exit, json_print
from cargolink.main import app

runner = CliRunner()

CONFIG = """\
# config.rust, generated by configure
BUILDDIR=/build/tor
TOR_LDFLAGS_zlib=
TOR_LDFLAGS_openssl=-L/opt/openssl/lib
TOR_LDFLAGS_libevent=
TOR_ZLIB_LIBS=-lz
TOR_LIB_MATH=-lm
TOR_OPENSSL_LIBS=-lssl -lcrypto
TOR_LIBEVENT_LIBS=-levent
TOR_LIB_WS32=
TOR_LIB_GDI=
TOR_LIB_USERENV=
CURVE25519_LIBS=
TOR_LZMA_LIBS=
TOR_ZSTD_LIBS=
LIBS=-lpthread
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("OUT_DIR", "CARGO_PKG_NAME", "CARGOLINK_PROFILES"):
        monkeypatch.delenv(var, raising=False)


def _build_tree(tmp_path: Path, content: str = CONFIG) -> Path:
    """Write config.rust at tmp_path and return a nested OUT_DIR below it."""
    (tmp_path / "config.rust").write_text(content, encoding="utf-8")
    out_dir = tmp_path / "src" / "rust" / "target" / "debug" / "build" / "crypto-1234" / "out"
    out_dir.mkdir(parents=True)
    return out_dir


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class TestErrorExit:
    def test_plain_stderr_and_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke")
        assert exc_info.value.exit_code == 1
        captured = capsys.readouterr()
        assert "something broke" in captured.err
        assert captured.out == ""

    def test_markup_in_message_is_literal(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("Known packages: ['crypto'] [bold]x[/bold]")
        assert "[bold]x[/bold]" in capsys.readouterr().err

    def test_json_mode_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("bad input", json_mode=True)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"error": "bad input"}
        assert captured.err == ""


class TestJsonPrint:
    def test_list_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print([{"kind": "dependency", "value": "z"}])
        assert json.loads(capsys.readouterr().out) == [{"kind": "dependency", "value": "z"}]


# ---------------------------------------------------------------------------
# cargolink emit
# ---------------------------------------------------------------------------


class TestEmit:
    def test_from_environment(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["emit"], env={"OUT_DIR": str(out_dir), "CARGO_PKG_NAME": "crypto"})
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "cargo:rustc-link-search=native=/opt/openssl/lib"
        assert lines[1] == "cargo:rustc-link-search=native=/build/tor/src/lib"
        assert "cargo:rustc-link-lib=static=tor-log" in lines
        assert lines[-1] == "cargo:rustc-link-lib=pthread"

    def test_options(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["emit", "-p", "crypto", "--out-dir", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert all(line.startswith("cargo:") for line in result.output.splitlines())

    def test_explicit_settings(self, tmp_path: Path) -> None:
        _build_tree(tmp_path)
        result = runner.invoke(
            app, ["emit", "-p", "crypto", "--settings", str(tmp_path / "config.rust")]
        )
        assert result.exit_code == 0, result.output

    def test_json(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["emit", "-p", "crypto", "-o", str(out_dir), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["package"] == "crypto"
        assert data["directives"][0] == {"kind": "search_path", "value": "/opt/openssl/lib"}

    def test_rerun_if_changed(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(
            app, ["emit", "-p", "crypto", "-o", str(out_dir), "--rerun-if-changed"]
        )
        assert result.exit_code == 0, result.output
        last = result.output.splitlines()[-1]
        assert last.startswith("cargo:rerun-if-changed=")
        assert last.endswith("config.rust")

    def test_profiles_file(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        profiles = tmp_path / "profiles.toml"
        profiles.write_text('[packages.util]\ncomponents = ["tor-util"]\n', encoding="utf-8")
        result = runner.invoke(
            app,
            ["emit", "-o", str(out_dir)],
            env={"CARGO_PKG_NAME": "util", "CARGOLINK_PROFILES": str(profiles)},
        )
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["cargo:rustc-link-lib=static=tor-util"]

    def test_unknown_package(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["emit", "-p", "tor-util", "-o", str(out_dir)])
        assert result.exit_code == 1
        assert "No configuration for package 'tor-util'" in result.output
        assert "cargo:" not in result.output

    def test_settings_not_found(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(
            app, ["emit", "-p", "crypto", "--settings", str(empty / "config.rust")]
        )
        assert result.exit_code == 1
        assert "cargo:" not in result.output

    def test_malformed_settings(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path, "BUILDDIR=/b\nthis line is broken\n")
        result = runner.invoke(app, ["emit", "-p", "crypto", "-o", str(out_dir)])
        assert result.exit_code == 1
        assert "missing '='" in result.output

    def test_invalid_utf8_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "config.rust"
        path.write_bytes(b"BUILDDIR=/b\xff\n")
        result = runner.invoke(app, ["emit", "-p", "crypto", "--settings", str(path)])
        assert result.exit_code == 1
        assert "error:" in result.output
        assert "not valid UTF-8" in result.output
        assert "cargo:" not in result.output

    def test_invalid_utf8_settings_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.rust"
        path.write_bytes(b"BUILDDIR=/b\xff\n")
        result = runner.invoke(app, ["emit", "-p", "crypto", "--settings", str(path), "--json"])
        assert result.exit_code == 1
        assert "not valid UTF-8" in json.loads(result.output)["error"]

    def test_missing_key_emits_nothing(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path, CONFIG.replace("LIBS=-lpthread\n", ""))
        result = runner.invoke(app, ["emit", "-p", "crypto", "-o", str(out_dir)])
        assert result.exit_code == 1
        assert "Key 'LIBS' not found" in result.output
        assert "cargo:" not in result.output

    def test_missing_key_json(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path, "BUILDDIR=/b\n")
        result = runner.invoke(app, ["emit", "-p", "crypto", "-o", str(out_dir), "--json"])
        assert result.exit_code == 1
        assert "not found" in json.loads(result.output)["error"]

    def test_package_required(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["emit", "-o", str(out_dir)])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# cargolink show / packages
# ---------------------------------------------------------------------------


class TestShow:
    def test_single_key(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["show", "TOR_OPENSSL_LIBS", "-o", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert result.output == "-lssl -lcrypto\n"

    def test_all_keys_json(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["show", "-o", str(out_dir), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["BUILDDIR"] == "/build/tor"
        assert data["LIBS"] == "-lpthread"

    def test_all_keys_sorted(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["show", "-o", str(out_dir)])
        lines = result.output.splitlines()
        assert lines == sorted(lines)
        assert "BUILDDIR=/build/tor" in lines

    def test_missing_key(self, tmp_path: Path) -> None:
        out_dir = _build_tree(tmp_path)
        result = runner.invoke(app, ["show", "NOPE", "-o", str(out_dir)])
        assert result.exit_code == 1
        assert "NOPE" in result.output


class TestPackages:
    def test_lists_builtin(self) -> None:
        result = runner.invoke(app, ["packages"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("crypto:")
        assert "components=19" in result.output

    def test_json_with_profiles(self, tmp_path: Path) -> None:
        profiles = tmp_path / "profiles.toml"
        profiles.write_text('[packages.util]\ndependencies = ["m"]\n', encoding="utf-8")
        result = runner.invoke(app, ["packages", "--json", "--profiles", str(profiles)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert sorted(data) == ["crypto", "util"]
        assert data["util"]["dependencies"] == ["m"]

    def test_bad_profiles_file(self, tmp_path: Path) -> None:
        profiles = tmp_path / "profiles.toml"
        profiles.write_text("[packages.util]\nbogus = []\n", encoding="utf-8")
        result = runner.invoke(app, ["packages", "--profiles", str(profiles)])
        assert result.exit_code == 1
        assert "unknown field" in result.output
