"""
Shared pytest fixtures for the furnace test suite.

Fixtures:
    write_files: Factory writing a {relative path: text} mapping under a root.
    sample_project: A single-crate Cargo project covering every declaration kind.
    scenario_graph: Hand-built graph: one unit, namespace "util", fn add and struct Point.
"""

from pathlib import Path

import pytest

from furnace.model import (
    Aggregate,
    Function,
    Location,
    Namespace,
    ProjectGraph,
    Unit,
)

SAMPLE_FILES = {
    "Cargo.toml": """\
[package]
name = "demo"
version = "0.3.0"

[dependencies]
serde = "1"
log = "0.4"
""",
    "src/lib.rs": """\
pub mod util;
pub mod net;

pub fn add(a: i32, b: i32) -> i32 {
    a + b
}
""",
    "src/util.rs": """\
pub struct Point {
    pub x: f64,
    pub y: f64,
}

impl Point {
    pub fn norm(&self) -> f64 {
        (self.x * self.x + self.y * self.y).sqrt()
    }
}

pub trait Shape {
    fn area(&self) -> f64;
    fn scale(&mut self, factor: f64);
}

pub enum Color {
    Red,
    Green,
}
""",
    "src/net/mod.rs": """\
pub mod tcp;

pub(crate) fn connect(host: &str, port: u16) {}
""",
    "src/net/tcp.rs": """\
fn send(buf: &[u8]) -> usize {
    let sent = buf.len();
    sent
}
""",
    "tests/it.rs": """\
#[test]
fn smoke() {}
""",
    "target/debug/stray.rs": "fn stray() {}\n",
    ".cache/hidden.rs": "fn hidden() {}\n",
}


def _write(root: Path, files: dict[str, str | bytes]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_files():
    """Return a function that writes a mapping of files below a root directory."""
    return _write


@pytest.fixture
def sample_project(tmp_path):
    """A small single-crate project on disk."""
    return _write(tmp_path / "demo", SAMPLE_FILES)


@pytest.fixture
def scenario_graph():
    """One unit whose only namespace "util" holds fn add(a, b) and struct Point { x, y }."""
    add = Function(
        name="add",
        location=Location("src/util.rs", 1, 3),
        visibility="public",
        params=("a", "b"),
    )
    point = Aggregate(
        name="Point",
        location=Location("src/util.rs", 5, 8),
        visibility="public",
        fields=("x", "y"),
    )
    util = Namespace(
        name="util",
        qualified_name="util",
        source_file="src/util.rs",
        digest="ab" * 32,
        declarations=(add, point),
    )
    unit = Unit(name="demo", path=".", version="0.1.0", namespaces=(util,), roots=(0,))
    return ProjectGraph(name="demo", root="/tmp/demo", units=(unit,))
