"""
Tests for result models and the JSON result store.
"""

import json
import os
import tempfile

import pytest

from bitreplay.config import EngineSettings
from bitreplay.core.errors import ResultStoreError
from bitreplay.record import ExecutionResult, ResultStore
from bitreplay.session import Session


def make_result():
    return Session(settings=EngineSettings()).run(["NOT [0:4]", "ROL 2"], "00001111", "store-test", "Store test")


def test_json_uses_camel_case_keys():
    data = json.loads(make_result().to_json())
    assert data["strategyId"] == "store-test"
    assert data["initialBits"] == "00001111"
    assert "finalBits" in data
    assert "budgetExceeded" in data
    step = data["steps"][0]
    assert step["fullBeforeBits"] == "00001111"
    assert step["fullAfterBits"] == "11111111"
    assert step["bitRanges"] == [{"start": 0, "end": 4}]
    assert "strategy_id" not in data


def test_save_and_load_roundtrip():
    result = make_result()
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ResultStore(tmpdir)
        path = store.save(result)
        assert os.path.exists(path)
        assert result.id in store
        assert store.list_ids() == [result.id]

        loaded = store.load(result.id)
        assert loaded == result
        assert loaded.steps[0].bit_range.end == 4


def test_save_replaces_existing_file():
    result = make_result()
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ResultStore(tmpdir)
        store.save(result)
        store.save(result.model_copy(update={"strategy_name": "renamed"}))
        assert store.load(result.id).strategy_name == "renamed"
        assert not [f for f in os.listdir(tmpdir) if f.endswith(".tmp")]


def test_delete():
    result = make_result()
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ResultStore(tmpdir)
        store.save(result)
        assert store.delete(result.id)
        assert not store.delete(result.id)
        assert store.load_all() == []


@pytest.mark.parametrize("bad_id", ["../escape", "a/b", "", ".hidden"])
def test_invalid_ids_are_rejected(bad_id):
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ResultStoreError):
            ResultStore(tmpdir).load(bad_id)


def test_missing_and_corrupt_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ResultStore(tmpdir)
        with pytest.raises(ResultStoreError):
            store.load("nothere")

        corrupt = os.path.join(tmpdir, "corrupt.json")
        with open(corrupt, "w", encoding="utf-8") as f:
            f.write('{"id": "corrupt"}')
        with pytest.raises(ResultStoreError):
            ResultStore.load_file(corrupt)


def test_load_readable_skips_corrupt_files():
    result = make_result()
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ResultStore(tmpdir)
        store.save(result)
        with open(os.path.join(tmpdir, "broken.json"), "w", encoding="utf-8") as f:
            f.write("{not json")

        with pytest.raises(ResultStoreError):
            store.load_all()

        results, errors = store.load_readable()
        assert [r.id for r in results] == [result.id]
        assert list(errors) == ["broken"]
        assert "broken.json" in errors["broken"]


def test_model_accepts_snake_case_names():
    result = ExecutionResult(id="x", initial_bits="1", final_bits="0")
    assert result.status == "completed"
    assert result.to_dict()["initialBits"] == "1"
