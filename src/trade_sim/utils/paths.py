from __future__ import annotations

from pathlib import Path


def repo_root_from_file(file: str | Path, *, levels_up: int) -> Path:
    if levels_up < 0:
        raise ValueError("levels_up must be >= 0")
    return Path(file).resolve().parents[levels_up]


# src/trade_sim/utils/paths.py -> repo root
REPO_ROOT = repo_root_from_file(__file__, levels_up=3)


def configs_root() -> Path:
    return REPO_ROOT / "configs"


def data_root() -> Path:
    return REPO_ROOT / "data"


def resolve_under_root(root: Path, p: str | Path, *, strip_prefix: str | None = None) -> Path:
    """Absolute paths pass through; relative ones are anchored at `root`."""
    candidate = Path(p)
    if candidate.is_absolute():
        return candidate
    if strip_prefix:
        parts = candidate.parts
        if parts and parts[0] == strip_prefix:
            candidate = Path(*parts[1:])
    return Path(root) / candidate


def resolve_data_path(p: str | Path) -> Path:
    return resolve_under_root(data_root(), p, strip_prefix="data")
