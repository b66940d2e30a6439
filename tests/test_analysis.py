"""Tests for offline trace analysis and the CLI."""

from __future__ import annotations

import math

import pandas as pd
import pytest
import structlog

from conftest import make_action
from dawdle.main import build_parser, main
from dawdle.motion.segmenter import split_into_actions
from dawdle.research.analysis import (
    actions_to_dataframe,
    compute_summary,
    load_trace,
    replay_verdicts,
)


@pytest.fixture
def trace_samples():
    return (
        make_action(start=1_000, step_px=10)
        + make_action(start=3_000, step_px=10, origin=(100, 0))
        + make_action(start=5_000, step_px=14, origin=(200, 0))
    )


@pytest.fixture
def trace_csv(tmp_path, trace_samples):
    path = tmp_path / "trace.csv"
    pd.DataFrame(
        [{"x": s.x, "y": s.y, "timestamp": s.timestamp} for s in trace_samples]
    ).to_csv(path, index=False)
    return path


class TestLoadTrace:
    def test_round_trip(self, trace_csv, trace_samples):
        assert load_trace(trace_csv) == trace_samples

    def test_bad_rows_are_dropped(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("x,y,timestamp\n1,2,100\noops,2,150\n3,,200\n4,5,250\n")
        samples = load_trace(path)
        assert [(s.x, s.timestamp) for s in samples] == [(1.0, 100), (4.0, 250)]

    def test_missing_column(self, tmp_path):
        path = tmp_path / "nots.csv"
        path.write_text("x,y\n1,2\n")
        with pytest.raises(ValueError, match="timestamp"):
            load_trace(path)


class TestActionsToDataFrame:
    def test_one_row_per_action(self, trace_samples, settings):
        df = actions_to_dataframe(split_into_actions(trace_samples, settings.action_delay_ms))
        assert list(df.columns) == ["start", "end", "samples", "distance", "duration", "velocity"]
        assert len(df) == 3
        assert df["distance"].tolist() == pytest.approx([100.0, 100.0, 140.0])
        assert df["duration"].tolist() == [1_000, 1_000, 1_000]

    def test_empty(self):
        df = actions_to_dataframe([])
        assert df.empty
        assert compute_summary(df) == {"actions": 0}

    def test_summary(self, trace_samples, settings):
        df = actions_to_dataframe(split_into_actions(trace_samples, settings.action_delay_ms))
        summary = compute_summary(df)
        assert summary["actions"] == 3
        assert summary["total_distance"] == pytest.approx(340.0)


class TestReplayVerdicts:
    def test_verdict_after_each_action(self, trace_samples, settings):
        df = replay_verdicts(trace_samples, settings)
        assert df.index.tolist() == [1, 2]
        assert df.loc[1, "distance_ratio"] == pytest.approx(1.0)
        assert not df.loc[1, "distance_in_zone"]
        # 140 px against 200 px over the two prior actions.
        assert df.loc[2, "distance_ratio"] == pytest.approx(0.7)

    def test_windowed_baseline(self, trace_samples):
        from dawdle.config import Settings

        settings = Settings(_env_file=None, baseline_window=1)
        df = replay_verdicts(trace_samples, settings)
        assert df.loc[2, "distance_ratio"] == pytest.approx(1.4)
        assert df.loc[2, "distance_in_zone"]

    def test_pause_shorter_than_debounce_still_scores(self, settings):
        # 500 ms pause: closes an action, but a live session would not fire yet.
        samples = make_action(start=1_000, step_px=10)
        samples += make_action(start=2_500, step_px=14, origin=(100, 0))
        df = replay_verdicts(samples, settings)
        assert list(df.index) == [1]
        assert df.loc[1, "distance_ratio"] == pytest.approx(1.4)
        assert df.loc[1, "distance_in_zone"]

    def test_too_short_trace(self, settings):
        df = replay_verdicts(make_action(start=1_000, step_px=10), settings)
        assert df.empty

    def test_degenerate_rows_are_nan(self, settings):
        # A stationary first action leaves nothing to compare against.
        samples = make_action(start=1_000, step_px=0, steps=3)
        samples += make_action(start=3_000, step_px=10)
        samples += make_action(start=5_000, step_px=10, origin=(100, 0))
        df = replay_verdicts(samples, settings)
        assert math.isnan(df.loc[1, "distance_ratio"])
        assert not df.loc[1, "distance_in_zone"]
        assert df.loc[2, "distance_ratio"] == pytest.approx(1.0)


class TestCli:
    @pytest.fixture(autouse=True)
    def logging_calls(self, monkeypatch):
        calls: list[str] = []
        monkeypatch.setattr("dawdle.main.setup_logging", lambda level="INFO": calls.append(level))
        return calls

    def test_main_configures_logging(self, logging_calls, capsys):
        with pytest.raises(SystemExit):
            main([])
        assert logging_calls == ["INFO"]
        assert structlog.get_config()["cache_logger_on_first_use"] is False

    def test_parser_commands(self):
        parser = build_parser()
        assert parser.parse_args(["serve", "--port", "9000"]).port == 9000
        args = parser.parse_args(["replay", "t.csv", "--actions"])
        assert args.trace == "t.csv"
        assert args.actions is True

    def test_replay_prints_verdicts(self, trace_csv, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["replay", str(trace_csv), "--actions"])
        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert "actions: 3" in out
        assert "distance_ratio" in out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        assert "usage" in capsys.readouterr().out
