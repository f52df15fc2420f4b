from __future__ import annotations

from pathlib import Path

import pytest


CARGO_TOML = """[package]
name = "r-increment-cargo-version"
version = "0.1.4"
edition = "2021"
rust-version = "1.70"

[dependencies]
regex = "1"
serde = { version = "1.0.150", features = ["derive"] }

[dependencies.toml]
version = "0.5.9"
"""


@pytest.fixture(autouse=True)
def _no_github_output(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)


@pytest.fixture()
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "Cargo.toml"
    path.write_text(CARGO_TOML, encoding="utf-8")
    return path
