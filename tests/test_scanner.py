"""Tests for scanner module."""

import os
import pytest
from pathlib import Path
import tempfile

from scanner.discovery import iter_files, is_image_path, is_hidden
from scanner.errors import ScanError, ScanInProgressError
from scanner.facts import FactStore, ScanFact
from scanner.parser import extract_references, extract_tags, read_text
from scanner.progress import ProgressChannel, ProgressChannelClosed
from scanner.resolver import resolve_reference, get_relative_path
from scanner.scan import Scanner, scan_file


def _write(root: Path, rel: str, content) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


class CountdownToken:
    """Cancel token that reports unset for the first `allowed` checks."""

    def __init__(self, allowed: int):
        self.allowed = allowed
        self.checks = 0

    def is_set(self) -> bool:
        self.checks += 1
        return self.checks > self.allowed


class TestReferenceExtraction:
    """Tests for reference extraction."""

    def test_markdown_link(self):
        """Test [label](target) references."""
        assert extract_references("see [the notes](notes/a.md) here") == ["notes/a.md"]

    def test_wiki_link(self):
        """Test [[target]] references."""
        assert extract_references("see [[B.md]]") == ["B.md"]

    def test_order_of_appearance(self):
        """Test that mixed forms keep their order and duplicates."""
        text = "[[one.md]] then [two](two.md) then [[one.md]]"
        assert extract_references(text) == ["one.md", "two.md", "one.md"]

    def test_no_references(self):
        """Test plain text."""
        assert extract_references("nothing to see [here] (really)") == []


class TestTagExtraction:
    """Tests for tag extraction."""

    def test_simple_tags(self):
        assert extract_tags("#foo and #bar_2") == ["foo", "bar_2"]

    def test_duplicates_preserved(self):
        assert extract_tags("#foo #foo") == ["foo", "foo"]

    def test_heading_is_not_a_tag(self):
        """A '#' followed by a space is not a tag."""
        assert extract_tags("# Title\n## Section") == []


class TestReadText:
    """Tests for text reading."""

    def test_reads_utf8(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "a.md", "héllo")
            assert read_text(path) == "héllo"

    def test_binary_file_is_skipped(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "blob.bin", b"\xff\xfe\x00\x81")
            assert read_text(path) is None

    def test_missing_file(self):
        assert read_text(Path("/nonexistent/file.md")) is None


class TestResolution:
    """Tests for reference resolution."""

    def test_relative_joined_against_root(self):
        """Relative targets resolve against the scan root, not the source directory."""
        root = Path("/vault")
        assert resolve_reference("B.md", root) == Path("/vault/B.md")
        assert resolve_reference("./sub/C.md", root) == Path("/vault/sub/C.md")

    def test_absolute_kept(self):
        assert resolve_reference("/elsewhere/x.md", Path("/vault")) == Path("/elsewhere/x.md")

    def test_lexical_normalisation(self):
        assert resolve_reference("sub/../B.md", Path("/vault")) == Path("/vault/B.md")

    def test_get_relative_path(self):
        assert get_relative_path(Path("/vault/a/b.md"), Path("/vault")) == Path("a/b.md")
        assert get_relative_path(Path("/other/b.md"), Path("/vault")) == Path("/other/b.md")


class TestDiscovery:
    """Tests for directory traversal."""

    def test_image_detection(self):
        assert is_image_path(Path("pic.PNG"))
        assert is_image_path(Path("scan.jpeg"))
        assert is_image_path(Path("legacy.ind"))
        assert not is_image_path(Path("notes.md"))

    def test_hidden_detection(self):
        assert is_hidden(Path(".secret.md"))
        assert not is_hidden(Path("public.md"))

    def test_skips_hidden_entries(self):
        """Test that hidden files and directories are skipped by default."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a.md", "")
            _write(root, ".secret.md", "")
            _write(root, ".hidden/inner.md", "")

            found = {path.name for path, _ in iter_files(root)}
            assert found == {"a.md"}

            found = {path.name for path, _ in iter_files(root, show_hidden=True)}
            assert found == {"a.md", ".secret.md", "inner.md"}

    def test_fractions_are_monotonic(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            for rel in ["a.md", "d1/b.md", "d1/c.md", "d2/e/f.md", "z.md"]:
                _write(root, rel, "")

            fractions = [fraction for _, fraction in iter_files(root)]
            assert len(fractions) == 5
            assert fractions == sorted(fractions)
            assert all(0.0 <= f <= 1.0 for f in fractions)
            assert fractions[-1] == pytest.approx(1.0)

    def test_cancel_before_start(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a.md", "")
            assert list(iter_files(root, cancel=CountdownToken(0))) == []

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="needs a user without permission override",
    )
    def test_unsearchable_directory_skipped(self):
        """A directory that can be listed but not entered is skipped, not fatal."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "A.md", "#foo")
            _write(root, "locked/x.md", "")
            locked = root / "locked"
            locked.chmod(0o644)
            try:
                found = [path for path, _ in iter_files(root)]
                report = Scanner().scan(root)
            finally:
                locked.chmod(0o755)

            assert found == [root / "A.md"]
            assert report.files == 1


class TestFactStore:
    """Tests for the shared fact store."""

    def test_replace_subtree_keeps_other_roots(self):
        store = FactStore()
        store.replace_subtree(Path("/a"), {Path("/a/x.md"): ScanFact(Path("/a/x.md"))})
        store.replace_subtree(Path("/b"), {Path("/b/y.md"): ScanFact(Path("/b/y.md"))})
        store.replace_subtree(Path("/a"), {Path("/a/z.md"): ScanFact(Path("/a/z.md"))})

        assert Path("/a/x.md") not in store
        assert Path("/a/z.md") in store
        assert Path("/b/y.md") in store
        assert len(store) == 2

    def test_snapshot_shapes(self):
        store = FactStore()
        facts = {
            Path("/r/a.md"): ScanFact(Path("/r/a.md"), ("b.md",), (Path("/r/b.md"),), ("foo",)),
            Path("/r/b.md"): ScanFact(Path("/r/b.md")),
            Path("/r/p.png"): ScanFact(Path("/r/p.png"), is_image=True),
        }
        store.replace_subtree(Path("/r"), facts)
        snapshot = store.snapshot()

        assert set(snapshot.references) == set(facts)
        assert snapshot.references[Path("/r/a.md")] == (Path("/r/b.md"),)
        assert snapshot.images == (Path("/r/p.png"),)
        assert dict(snapshot.tags) == {Path("/r/a.md"): ("foo",)}


class TestProgressChannel:
    """Tests for the progress side channel."""

    def test_poll_drains_without_blocking(self):
        channel = ProgressChannel()
        assert channel.poll() == []
        channel.send(0.5, "half")
        channel.send(1.0, "done")
        events = channel.poll()
        assert [e.message for e in events] == ["half", "done"]
        assert events[-1].done
        assert channel.poll() == []

    def test_fraction_clamped(self):
        channel = ProgressChannel()
        channel.send(1.5, "over")
        assert channel.poll()[0].fraction == 1.0

    def test_send_after_close(self):
        channel = ProgressChannel()
        channel.close()
        with pytest.raises(ProgressChannelClosed):
            channel.send(0.1, "late")


class TestScanner:
    """Tests for full scans."""

    def test_scan_file_text(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "A.md", "[[B.md]] #foo")
            fact = scan_file(path)
            assert fact.references == ("B.md",)
            assert fact.tags == ("foo",)
            assert not fact.is_image

    def test_scan_file_image_not_read(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "pic.png", b"\x89PNG\r\n#notatag [[x.md]]")
            fact = scan_file(path)
            assert fact.is_image
            assert fact.references == ()
            assert fact.tags == ()

    def test_scan_collects_facts(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "A.md", "[[B.md]] #foo")
            _write(root, "B.md", "no tags here")
            _write(root, "pic.jpg", b"\xff\xd8\xff")
            _write(root, "blob.bin", b"\xff\xfe\x00")

            scanner = Scanner()
            report = scanner.scan(root)
            snapshot = scanner.snapshot()

            assert set(snapshot.references) == {root / "A.md", root / "B.md", root / "pic.jpg"}
            assert snapshot.references[root / "A.md"] == (root / "B.md",)
            assert snapshot.images == (root / "pic.jpg",)
            assert dict(snapshot.tags) == {root / "A.md": ("foo",)}
            assert report.files == 2
            assert report.images == 1
            assert report.tagged == 1
            assert not report.cancelled

    def test_references_resolve_against_root(self):
        """References from nested files resolve against the root, forward ones too."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a/first.md", "[[z/last.md]] [up](B.md)")
            _write(root, "z/last.md", "")

            scanner = Scanner()
            scanner.scan(root)
            refs = scanner.snapshot().references[root / "a" / "first.md"]

            assert refs == (root / "z" / "last.md", root / "B.md")

    def test_hidden_files_excluded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "A.md", "")
            _write(root, ".secret.md", "#secret")

            scanner = Scanner()
            scanner.scan(root, show_hidden=False)
            assert root / ".secret.md" not in scanner.snapshot().facts

            scanner.scan(root, show_hidden=True)
            assert root / ".secret.md" in scanner.snapshot().facts

    def test_not_a_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "file.md", "")
            with pytest.raises(ScanError):
                Scanner().scan(path)

    def test_progress_events(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a.md", "")
            _write(root, "sub/b.md", "")

            channel = ProgressChannel()
            Scanner().scan(root, progress=channel)
            events = channel.poll()

            fractions = [e.fraction for e in events]
            assert fractions == sorted(fractions)
            assert events[-1].fraction == 1.0
            assert events[-1].message == "Scan complete"
            assert any("a.md" in e.message for e in events)

    def test_closed_channel_fails_and_keeps_prior_results(self):
        """A receiver that has gone away aborts the scan without committing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a.md", "")

            scanner = Scanner()
            scanner.scan(root)
            _write(root, "b.md", "")

            channel = ProgressChannel()
            channel.close()
            with pytest.raises(ScanError):
                scanner.scan(root, progress=channel)

            assert set(scanner.snapshot().facts) == {root / "a.md"}

    def test_cancel_commits_partial_results(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            for name in ["d1", "d2", "d3"]:
                _write(root, f"{name}/note.md", "")

            scanner = Scanner()
            channel = ProgressChannel()
            # root, d1, after d1 pass; entering d2 sees the cancellation
            report = scanner.scan(root, progress=channel, cancel=CountdownToken(3))

            assert report.cancelled
            assert set(scanner.snapshot().facts) == {root / "d1" / "note.md"}
            assert channel.poll()[-1].message == "Scan cancelled"

    def test_rescan_replaces_facts(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            old = _write(root, "old.md", "")

            scanner = Scanner()
            scanner.scan(root)
            old.unlink()
            _write(root, "new.md", "")
            scanner.scan(root)

            assert set(scanner.snapshot().facts) == {root / "new.md"}

    def test_concurrent_scan_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "a.md", "")

            scanner = Scanner()
            errors = []

            class ReentrantChannel(ProgressChannel):
                def send(self, fraction, message):
                    try:
                        scanner.scan(root)
                    except ScanInProgressError as exc:
                        errors.append(exc)
                    super().send(fraction, message)

            scanner.scan(root, progress=ReentrantChannel())

            assert errors
            assert not scanner.busy
