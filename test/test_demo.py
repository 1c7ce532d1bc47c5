"""
The scripted demo runs end to end and leaves the states it is handed alone.
"""

import main as demo
from veche.engine.reducer import apply_action


def test_demo_runs(capsys):
    demo.main()
    out = capsys.readouterr().out
    assert "[SCENARIO 6: Heuristics Fill Every Seat for One Round]" in out
    assert "Replayed 6 actions" in out


def test_demo_never_edits_reducer_output(monkeypatch):
    returned = []

    def recording_apply(*args, **kwargs):
        result = apply_action(*args, **kwargs)
        returned.append((result.new_state, result.new_state.to_dict()))
        return result

    monkeypatch.setattr(demo, "apply_action", recording_apply)
    demo.main()

    assert returned
    for state, snapshot in returned:
        assert state.to_dict() == snapshot
