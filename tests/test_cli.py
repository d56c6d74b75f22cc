"""End-to-end tests for the command line entry point."""

import json
from pathlib import Path
import tempfile

from cli import main


def _tree(tmpdir: str) -> Path:
    root = Path(tmpdir).resolve()
    (root / "notes").mkdir()
    (root / "A.md").write_text("See [B](notes/B.md) and [[gone.md]]. #foo", encoding="utf-8")
    (root / "notes" / "B.md").write_text("![pic](pic.png) #foo #bar", encoding="utf-8")
    (root / "pic.png").write_bytes(b"\x89PNG")
    (root / ".hidden.md").write_text("#secret", encoding="utf-8")
    return root


class TestMain:
    """Tests for cli.main."""

    def test_reference_json(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)

            assert main([str(root)]) == 0
            data = json.loads(capsys.readouterr().out)

            ids = {node["id"] for node in data["nodes"]}
            assert ids == {"file:A.md", "file:notes/B.md", "file:pic.png"}
            assert {"source": "file:A.md", "target": "file:notes/B.md"} in data["edges"]
            assert {"source": "file:notes/B.md", "target": "file:pic.png"} in data["edges"]
            assert data["dangling"] == [{"source": "A.md", "target": "gone.md"}]

    def test_tag_view(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)

            assert main([str(root), "--view", "tags", "--hide-images"]) == 0
            data = json.loads(capsys.readouterr().out)

            ids = {node["id"] for node in data["nodes"]}
            assert ids == {"file:A.md", "file:notes/B.md", "tag:foo", "tag:bar"}
            assert len(data["edges"]) == 3

    def test_show_hidden(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)

            assert main([str(root), "--view", "tags", "--show-hidden"]) == 0
            data = json.loads(capsys.readouterr().out)

            assert "tag:secret" in {node["id"] for node in data["nodes"]}

    def test_layout_positions(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)

            assert main([str(root), "--ticks", "20", "--seed", "3"]) == 0
            first = json.loads(capsys.readouterr().out)
            assert main([str(root), "--ticks", "20", "--seed", "3"]) == 0
            second = json.loads(capsys.readouterr().out)

            assert all("x" in node and "y" in node for node in first["nodes"])
            assert first == second

    def test_mermaid(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)

            assert main([str(root), "-f", "mermaid", "--orientation", "TD"]) == 0
            output = capsys.readouterr().out

            assert output.startswith("flowchart TD")
            assert "A_md --> notes_B_md" in output
            assert "gone.md [MISSING]" in output

    def test_output_file(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)
            target = Path(tmpdir) / "graph.json"

            assert main([str(root), "-o", str(target), "--ignore-dangling"]) == 0

            data = json.loads(target.read_text(encoding="utf-8"))
            assert "dangling" not in data
            assert "Output written to" in capsys.readouterr().err

    def test_config_file(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)
            config = Path(tmpdir) / "settings.yaml"
            config.write_text("view:\n  kind: tags\n  tag_filter: ba\n", encoding="utf-8")

            assert main([str(root), "--config", str(config), "--hide-images"]) == 0
            data = json.loads(capsys.readouterr().out)

            assert {node["id"] for node in data["nodes"]} == {
                "file:A.md", "file:notes/B.md", "tag:bar",
            }

    def test_bad_config(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = _tree(tmpdir)
            config = Path(tmpdir) / "settings.yaml"
            config.write_text("colours: {}\n", encoding="utf-8")

            assert main([str(root), "--config", str(config)]) == 1
            assert "unknown section" in capsys.readouterr().err

    def test_not_a_directory(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "file.md"
            path.write_text("", encoding="utf-8")

            assert main([str(path)]) == 1
            assert "is not a directory" in capsys.readouterr().err
