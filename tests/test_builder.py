"""
tests/test_builder.py: Tests for furnace.builder.

Tests verify:
- Namespace ownership: lib.rs/main.rs own "crate", mod.rs owns its directory.
- Build-output directories contribute no namespaces or declarations.
- A file that fails extraction becomes an unparsed namespace; the build succeeds.
- Declaration order follows discovery order regardless of worker completion order.
- Repeated builds of the same tree are identical.
- Nested workspace members are separate units and never double counted.
"""

import errno
import hashlib
import logging
import os
import random
import sys
import threading
import time
from pathlib import Path

import pytest

from furnace import serialize
from furnace.builder import GraphBuilder
from furnace.errors import DiscoveryError, ExtractionError
from furnace.extractors.rust.module_hierarchy import source_file_to_module_path
from furnace.filters import PathFilter
from furnace.model import Function, Location


def all_source_files(graph):
    return [ns.source_file for _, ns in graph.namespaces() if ns.source_file]


class TestNamespaceConvention:
    """Which file owns which namespace."""

    def test_qualified_names(self, sample_project):
        graph = GraphBuilder(workers=1).build(sample_project)
        (unit,) = graph.units
        assert [ns.qualified_name for _, ns in unit.walk()] == [
            "crate",
            "crate::util",
            "crate::net",
            "crate::net::tcp",
            "tests",
            "tests::it",
        ]

    def test_entry_files_own_their_namespace(self, sample_project):
        (unit,) = GraphBuilder(workers=1).build(sample_project).units
        assert unit.find("crate").source_file == "src/lib.rs"
        assert unit.find("crate::net").source_file == "src/net/mod.rs"
        assert unit.find("crate::net::tcp").source_file == "src/net/tcp.rs"
        # organizational namespace without a file of its own
        assert unit.find("tests").source_file is None
        assert unit.find("tests::it").source_file == "tests/it.rs"

    def test_tree_shape(self, sample_project):
        (unit,) = GraphBuilder(workers=1).build(sample_project).units
        roots = [unit.namespaces[i].qualified_name for i in unit.roots]
        assert roots == ["crate", "tests"]
        net = unit.find("crate::net")
        assert [unit.namespaces[i].name for i in net.children] == ["tcp"]
        assert unit.namespaces[net.parent].qualified_name == "crate"

    def test_declarations_land_in_their_namespace(self, sample_project):
        (unit,) = GraphBuilder(workers=1).build(sample_project).units
        assert [d.name for d in unit.find("crate").declarations] == ["add"]
        assert [d.name for d in unit.find("crate::util").declarations] == [
            "Point",
            "Shape",
            "Color",
        ]
        assert unit.find("crate::util").declarations[0].methods == ("norm",)
        assert [d.name for d in unit.find("crate::net").declarations] == ["connect"]

    def test_unit_metadata(self, sample_project):
        graph = GraphBuilder(workers=1).build(sample_project)
        (unit,) = graph.units
        assert graph.name == "demo"
        assert unit.path == "."
        assert unit.version == "0.3.0"
        assert unit.dependencies == ("log", "serde")

    def test_digest_is_sha256_of_file(self, sample_project):
        (unit,) = GraphBuilder(workers=1).build(sample_project).units
        expected = hashlib.sha256((sample_project / "src/lib.rs").read_bytes()).hexdigest()
        assert unit.find("crate").digest == expected


class TestExclusion:

    def test_build_dir_never_appears(self, sample_project):
        """A stray source file under target/ yields no namespaces or declarations."""
        graph = GraphBuilder(workers=1).build(sample_project)
        assert not any(f.startswith("target/") for f in all_source_files(graph))
        names = {d.name for _, _, d in graph.declarations()}
        assert "stray" not in names
        assert "hidden" not in names

    def test_ignore_patterns(self, sample_project):
        graph = GraphBuilder(path_filter=PathFilter(ignore=["tests"]), workers=1).build(
            sample_project
        )
        (unit,) = graph.units
        assert unit.find("tests") is None
        assert unit.find("tests::it") is None


class TestPartialFailure:

    def test_syntax_error_becomes_unparsed(self, sample_project, write_files, caplog):
        write_files(sample_project, {"src/broken.rs": "fn broken( {\n"})
        with caplog.at_level(logging.WARNING, logger="furnace"):
            graph = GraphBuilder(workers=1).build(sample_project)
        (unit,) = graph.units

        broken = unit.find("crate::broken")
        assert broken.is_unparsed
        assert "syntax error" in broken.unparsed
        assert broken.declarations == ()
        assert broken.source_file == "src/broken.rs"

        # the rest of the project is intact
        assert [d.name for d in unit.find("crate").declarations] == ["add"]
        assert "src/broken.rs" in caplog.text

    def test_invalid_utf8_becomes_unparsed(self, sample_project, write_files):
        write_files(sample_project, {"src/binary.rs": b"fn ok() {}\n\xff\xfe"})
        (unit,) = GraphBuilder(workers=1).build(sample_project).units
        ns = unit.find("crate::binary")
        assert ns.unparsed.startswith("not valid UTF-8")
        assert ns.digest is not None

    @pytest.mark.skipif(sys.platform == "win32", reason="needs symlinks")
    def test_unreadable_file_becomes_unparsed(self, sample_project, caplog):
        """A dangling symlink is listed by the walk but cannot be read."""
        (sample_project / "src/ghost.rs").symlink_to(sample_project / "src/nowhere.rs")
        with caplog.at_level(logging.WARNING, logger="furnace"):
            (unit,) = GraphBuilder(workers=1).build(sample_project).units

        ghost = unit.find("crate::ghost")
        assert ghost.unparsed.startswith("unreadable: ")
        assert ghost.source_file == "src/ghost.rs"
        assert ghost.digest is None
        assert ghost.declarations == ()
        assert [d.name for d in unit.find("crate").declarations] == ["add"]
        assert "src/ghost.rs" in caplog.text

    def test_unreadable_directory_recorded_at_its_namespace(
        self, sample_project, monkeypatch
    ):
        blocked = (sample_project / "src/net").resolve()
        real_scandir = os.scandir

        def scandir(path="."):
            if Path(path).resolve() == blocked:
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        (unit,) = GraphBuilder(workers=1).build(sample_project).units

        net = unit.find("crate::net")
        assert net.unparsed == "unreadable: Permission denied"
        assert net.source_file is None
        assert unit.find("crate::net::tcp") is None
        # siblings are still analysed
        assert [d.name for d in unit.find("crate::util").declarations][0] == "Point"

    def test_extractor_error_is_per_file(self, sample_project):
        class Failing(FakeExtractor):
            def extract(self, text, path):
                if path.endswith("util.rs"):
                    raise ExtractionError("boom")
                return super().extract(text, path)

        (unit,) = GraphBuilder(Failing(), workers=2).build(sample_project).units
        assert unit.find("crate::util").unparsed == "boom"
        assert not unit.find("crate").is_unparsed

    def test_missing_manifest_is_fatal(self, tmp_path, write_files):
        write_files(tmp_path, {"src/lib.rs": "fn x() {}\n"})
        with pytest.raises(DiscoveryError):
            GraphBuilder().build(tmp_path)


class FakeExtractor:
    """One Function per file, named after the file, with optional random delays."""

    def __init__(self, jitter: float = 0.0, seed: int = 7):
        self.jitter = jitter
        self._rng = random.Random(seed)
        self._lock = threading.Lock()
        self.threads: set[str] = set()

    def extract(self, text, path):
        if self.jitter:
            with self._lock:
                delay = self._rng.uniform(0, self.jitter)
            time.sleep(delay)
        with self._lock:
            self.threads.add(threading.current_thread().name)
        stem = Path(path).stem
        return [
            Function(name=f"{stem}_b", location=Location(path, 2, 2)),
            Function(name=f"{stem}_a", location=Location(path, 1, 1)),
        ]

    def namespace_path(self, source, unit_root):
        return source_file_to_module_path(source, unit_root)


class TestOrdering:

    @pytest.fixture
    def many_files(self, tmp_path, write_files):
        files = {"Cargo.toml": "[package]\nname = 'many'\n", "src/lib.rs": ""}
        files.update({f"src/m{i:02d}.rs": "" for i in range(30)})
        return write_files(tmp_path / "many", files)

    def test_order_stable_under_shuffled_completion(self, many_files):
        sequential = GraphBuilder(FakeExtractor(), workers=1).build(many_files)
        jittered = FakeExtractor(jitter=0.01)
        parallel = GraphBuilder(jittered, workers=8).build(many_files)
        assert parallel == sequential

    def test_declarations_sorted_by_line_within_file(self, many_files):
        (unit,) = GraphBuilder(FakeExtractor(), workers=1).build(many_files).units
        assert [d.name for d in unit.find("crate::m00").declarations] == ["m00_a", "m00_b"]

    def test_deterministic_rebuild(self, sample_project):
        first = GraphBuilder(workers=4).build(sample_project)
        second = GraphBuilder(workers=4).build(sample_project)
        assert first == second
        assert serialize.dumps(first) == serialize.dumps(second)


class TestNestedUnits:

    @pytest.fixture
    def workspace(self, tmp_path, write_files):
        return write_files(
            tmp_path / "ws",
            {
                "Cargo.toml": """\
[package]
name = "app"
version = "1.0.0"

[workspace]
members = ["crates/core"]
""",
                "src/main.rs": "fn main() {}\n",
                "crates/core/Cargo.toml": "[package]\nname = 'core'\nversion = '0.2.0'\n",
                "crates/core/src/lib.rs": "pub fn engine() {}\n",
            },
        )

    def test_units_do_not_overlap(self, workspace):
        graph = GraphBuilder(workers=1).build(workspace)
        assert [(u.name, u.path) for u in graph.units] == [
            ("app", "."),
            ("core", "crates/core"),
        ]
        app, core = graph.units
        assert [ns.qualified_name for _, ns in app.walk()] == ["crate"]
        assert [d.name for d in app.find("crate").declarations] == ["main"]
        assert core.find("crate").source_file == "crates/core/src/lib.rs"
        assert [d.name for d in core.find("crate").declarations] == ["engine"]

    def test_each_file_counted_once(self, workspace):
        graph = GraphBuilder(workers=1).build(workspace)
        files = all_source_files(graph)
        assert len(files) == len(set(files))


class TestEmptyProject:

    def test_manifest_without_packages(self, tmp_path, write_files):
        write_files(tmp_path, {"Cargo.toml": "[workspace]\nmembers = []\n"})
        graph = GraphBuilder(workers=1).build(tmp_path)
        assert graph.empty
        assert graph.units == ()
