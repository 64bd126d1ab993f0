"""
Tests for the vrml97 command line and parser options.

Run with: pytest vrml97/tests/test_cli.py -v
"""

import pytest
import yaml

from vrml97.cli import main
from vrml97.options import ParserOptions, load_options


WORLD = """#VRML V2.0 utf8
PROTO Thing [ field SFFloat size 1 ] { Sphere { radius IS size } }
DEF Root Transform {
    translation 0 1 0
    children [
        DEF Ball Shape { geometry Sphere { radius 0.5 } }
        Transform { children USE Ball }
    ]
}
DEF Timer TimeSensor { }
DEF Mover PositionInterpolator { }
ROUTE Timer.fraction_changed TO Mover.set_fraction
"""


@pytest.fixture
def world(tmp_path):
    path = tmp_path / "world.wrl"
    path.write_text(WORLD, encoding="utf-8")
    return path


@pytest.fixture
def broken(tmp_path):
    path = tmp_path / "broken.wrl"
    path.write_text("#VRML V2.0 utf8\nBox { sise 1 1 1 }\n", encoding="utf-8")
    return path


def run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestCheckCommand:
    """vrml97 check"""

    def test_valid_file(self, world, capsys):
        assert run(["check", str(world)]) == 0
        out = capsys.readouterr().out
        assert "ok (6 node(s), 1 PROTO(s), 1 ROUTE(s))" in out

    def test_invalid_file(self, broken, capsys):
        assert run(["check", str(broken)]) == 1
        out = capsys.readouterr().out
        assert "Line 2, column 7" in out
        assert "1 of 1 file(s) failed" in out

    def test_mixed_files(self, world, broken, capsys):
        assert run(["check", str(world), str(broken)]) == 1
        out = capsys.readouterr().out
        assert "1 of 2 file(s) failed" in out

    def test_missing_file(self, tmp_path, capsys):
        assert run(["check", str(tmp_path / "nope.wrl")]) == 1
        assert "cannot read file" in capsys.readouterr().out

    def test_strict_def_flag(self, tmp_path, capsys):
        path = tmp_path / "redef.wrl"
        path.write_text("#VRML V2.0 utf8\nDEF A Box { } DEF A Sphere { }\n", encoding="utf-8")
        assert run(["check", str(path)]) == 0
        assert run(["--strict-def", "check", str(path)]) == 1

    def test_max_depth_flag(self, world):
        assert run(["--max-depth", "2", "check", str(world)]) == 1

    def test_max_depth_beyond_stack(self, tmp_path, capsys):
        path = tmp_path / "deep.wrl"
        path.write_text("#VRML V2.0 utf8\n" + "Group { children [ " * 3000 + "]}" * 3000,
                        encoding="utf-8")
        assert run(["--max-depth", "5000", "check", str(path)]) == 1
        assert "too deep" in capsys.readouterr().out

    def test_require_header_flag(self, tmp_path):
        path = tmp_path / "bare.wrl"
        path.write_text("Box { }\n", encoding="utf-8")
        assert run(["check", str(path)]) == 0
        assert run(["--require-header", "check", str(path)]) == 1

    def test_no_command(self, capsys):
        assert run([]) == 1
        assert "usage" in capsys.readouterr().out


class TestDumpCommand:
    """vrml97 dump"""

    def test_dump_yaml(self, world, capsys):
        assert run(["dump", str(world)]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["header"] == "#VRML V2.0 utf8"
        assert data["defs"] == ["Ball", "Mover", "Root", "Timer"]
        root = data["nodes"][0]
        assert root["type"] == "Transform"
        assert root["def"] == "Root"
        assert root["fields"]["translation"] == [0.0, 1.0, 0.0]

    def test_dump_shared_node_as_use(self, world, capsys):
        run(["dump", str(world)])
        data = yaml.safe_load(capsys.readouterr().out)
        children = data["nodes"][0]["fields"]["children"]
        assert children[0]["def"] == "Ball"
        assert children[1]["fields"]["children"] == [{"use": "Ball"}]

    def test_dump_protos_and_routes(self, world, capsys):
        run(["dump", str(world)])
        data = yaml.safe_load(capsys.readouterr().out)
        proto = data["protos"][0]
        assert proto["name"] == "Thing"
        assert proto["interface"]["fields"][0] == {
            "name": "size", "kind": "field", "type": "SFFloat", "default": 1.0
        }
        assert proto["body"][0]["is"] == {"radius": "size"}
        assert data["routes"] == [{"from": "Timer.fraction_changed", "to": "Mover.set_fraction"}]

    def test_dump_error(self, broken, capsys):
        assert run(["dump", str(broken)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "sise" in captured.err


class TestOptions:
    """ParserOptions and loading them from YAML."""

    def test_defaults(self):
        options = ParserOptions()
        assert options.strict_def is False
        assert options.max_depth == 100
        assert options.require_header is False

    def test_load(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("strict_def: true\nmax_depth: 20\n", encoding="utf-8")
        assert load_options(path) == ParserOptions(strict_def=True, max_depth=20)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("", encoding="utf-8")
        assert load_options(path) == ParserOptions()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("strict: true\n", encoding="utf-8")
        with pytest.raises(ValueError, match="strict"):
            load_options(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("- strict_def\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_options(path)

    def test_bad_max_depth(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("max_depth: 0\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_options(path)

    def test_config_flag(self, tmp_path, world):
        path = tmp_path / "options.yaml"
        path.write_text("max_depth: 2\n", encoding="utf-8")
        assert run(["--config", str(path), "check", str(world)]) == 1
        assert run(["--config", str(path), "--max-depth", "50", "check", str(world)]) == 0

    def test_invalid_config(self, tmp_path, world, capsys):
        path = tmp_path / "options.yaml"
        path.write_text("colour: blue\n", encoding="utf-8")
        assert run(["--config", str(path), "check", str(world)]) == 2
        assert "Invalid options" in capsys.readouterr().err
