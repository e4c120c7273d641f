"""
Tests for replay determinism.

Critical: Replay must produce identical buffers across multiple runs.
"""

from bitreplay.config import EngineSettings
from bitreplay.core.canonical import canonical_json_str
from bitreplay.ops import OperationRegistry
from bitreplay.replay import replay_steps
from bitreplay.session import Session

REGISTRY = OperationRegistry.default()

STRATEGY = [
    "NOT | XOR 11001100",
    "SHUFFLE",
    "REPEAT 3 { ROL 1 ; GRAY }",
    "XOR [0:8]",
    "EXEC { bits[::-1] }",
    "INSERT position=4 bits=101",
]


def record(initial="1011001110001111"):
    return Session(registry=REGISTRY, settings=EngineSettings()).run(STRATEGY, initial, "replay")


def test_replay_determinism_100_runs():
    """Replay the same steps 100 times must produce identical buffers."""
    result = record()
    assert result.status == "completed"

    outcomes = set()
    for _ in range(100):
        replayed = replay_steps(REGISTRY, result.initial_bits, result.steps)
        outcomes.add(canonical_json_str([replayed.bits, replayed.applied, replayed.divergent_step]))
    assert len(outcomes) == 1

    final = replay_steps(REGISTRY, result.initial_bits, result.steps)
    assert final.ok
    assert final.bits == result.final_bits
    assert final.applied == len(result.steps)


def test_replay_uses_recorded_params_not_defaults():
    """The content-derived SHUFFLE seed is frozen in the recording."""
    result = record()
    shuffle = next(s for s in result.steps if s.operation == "SHUFFLE")
    assert "seed" in shuffle.params

    replayed = replay_steps(REGISTRY, shuffle.full_before_bits, [shuffle])
    assert replayed.bits == shuffle.full_after_bits


def test_replay_reports_divergence():
    result = record()
    tampered = list(result.steps)
    assert tampered[1].operation == "XOR"
    tampered[1] = tampered[1].model_copy(update={"params": {"mask": "00110011"}})

    replayed = replay_steps(REGISTRY, result.initial_bits, tampered)
    assert not replayed.ok
    assert replayed.divergent_step == 1
    assert replayed.applied == 2

    kept_going = replay_steps(REGISTRY, result.initial_bits, tampered, stop_on_divergence=False)
    assert kept_going.divergent_step == 1
    assert kept_going.applied == len(tampered)


def test_replay_reports_unknown_operation():
    result = record()
    broken = [result.steps[0].model_copy(update={"operation": "NOPE"})]
    replayed = replay_steps(REGISTRY, result.initial_bits, broken)
    assert replayed.error is not None
    assert replayed.applied == 0
    assert replayed.bits == result.initial_bits


def test_empty_step_list_replays_to_initial():
    replayed = replay_steps(REGISTRY, "1010", [])
    assert replayed.ok
    assert replayed.bits == "1010"
    assert replayed.applied == 0
