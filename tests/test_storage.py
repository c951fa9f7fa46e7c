import json
from datetime import date

import pytest
from pydantic import ValidationError

import storage
from models import AppState, Settings, StudyPlan


def test_missing_file_gives_empty_state(tmp_path):
    state = storage.load_state(tmp_path / "nothing.json")
    assert state.plans == [] and state.tasks == []


def test_corrupt_file_is_backed_up_and_reset(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text("{not json", encoding="utf-8")
    state = storage.load_state(path)
    assert state.plans == []
    assert (tmp_path / "plans.json.bak").read_text(encoding="utf-8") == "{not json"
    assert json.loads(path.read_text(encoding="utf-8")) == AppState().model_dump(mode="json")


def test_invalid_state_is_backed_up(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps({"plans": [{"date": "yesterday"}]}), encoding="utf-8")
    assert storage.load_state(path).plans == []
    assert (tmp_path / "plans.json.bak").exists()


def test_lock_flag_survives_round_trip(tmp_path):
    path = tmp_path / "plans.json"
    storage.save_state(AppState(plans=[StudyPlan(date=date(2024, 1, 5), is_locked=True)]), path)
    assert not (tmp_path / "plans.json.tmp").exists()
    plan = storage.load_state(path).plans[0]
    assert plan.date == date(2024, 1, 5)
    assert plan.is_locked is True


def test_data_dir_override(tmp_path, monkeypatch):
    target = tmp_path / "custom"
    monkeypatch.setenv("STUDY_PLANNER_DATA_DIR", str(target))
    assert storage.state_path() == target / storage.STATE_FILENAME
    assert target.is_dir()


def test_settings_reject_inverted_window():
    with pytest.raises(ValidationError):
        Settings(study_window_start="18:00", study_window_end="09:00")
    with pytest.raises(ValidationError):
        Settings(study_window_start="9am")
