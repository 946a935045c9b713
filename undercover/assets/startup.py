from __future__ import annotations

from pathlib import Path

from undercover.assets.singleton import init_lexicons


def init_lexicons_for_app() -> None:
    # project root is two levels up from this file: undercover/assets/startup.py
    project_root = Path(__file__).resolve().parents[2]
    init_lexicons(project_root=project_root)
