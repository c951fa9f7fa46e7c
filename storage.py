from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any
from pydantic import ValidationError
from models import AppState

logger = logging.getLogger(__name__)

STATE_FILENAME = "study_plans.json"


def get_data_dir() -> Path:
    """
    Directory holding the plan-set file. STUDY_PLANNER_DATA_DIR overrides
    the default of ~/.local/share/study-planner.
    """
    override = os.environ.get("STUDY_PLANNER_DATA_DIR")
    if override:
        base = Path(override).expanduser()
    else:
        base = Path.home() / ".local" / "share" / "study-planner"
    base.mkdir(parents=True, exist_ok=True)
    return base


def state_path() -> Path:
    return get_data_dir() / STATE_FILENAME


def _backup_file(path: Path, content: str) -> None:
    backup = path.with_suffix(path.suffix + ".bak")
    try:
        backup.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write backup %s: %s", backup, exc)


def load_json(path: Path | str, default: Any = None) -> Any:
    """
    Load JSON from path with safety:
    - If missing: return default
    - If empty or invalid: write .bak and reset to default
    """
    path = Path(path)
    default = {} if default is None else default
    if not path.exists():
        return default

    raw_text = path.read_text(encoding="utf-8")
    text = raw_text.strip()
    try:
        if not text:
            raise ValueError("empty file")
        return json.loads(text)
    except ValueError as exc:
        logger.warning("Resetting unreadable %s (%s); previous content kept in .bak", path, exc)
        _backup_file(path, raw_text)
        save_json(path, default)
        return default


def save_json(path: Path | str, payload: Any) -> None:
    """
    Atomic JSON write: write to temp file then replace target.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp = path.with_suffix(path.suffix + ".tmp")
    temp.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    temp.replace(path)


def load_state(path: Path | str | None = None) -> AppState:
    path = Path(path) if path is not None else state_path()
    raw = load_json(path, AppState().model_dump(mode="json"))
    try:
        return AppState.model_validate(raw)
    except ValidationError as exc:
        logger.warning("State in %s does not validate; starting empty. %s", path, exc)
        _backup_file(path, json.dumps(raw, ensure_ascii=False, indent=2))
        state = AppState()
        save_state(state, path)
        return state


def save_state(state: AppState, path: Path | str | None = None) -> None:
    path = Path(path) if path is not None else state_path()
    save_json(path, state.model_dump(mode="json"))
