"""Tests for the vibe-builder CLI."""

import json

import pytest

from vibe_builder.cli import ScenarioError, main, run_scenario
from vibe_builder.io.settings import ViewStateConfig

RESPONSE = '{"dependencies": {"react": "^18.2.0"}}\nA counter:\n```jsx\nexport default App;\n```\n'

BASE = "/chat/s1/my-app"
IDENTITY = {"session_id": "s1", "title": "my-app", "path": BASE}


@pytest.fixture(autouse=True)
def _cli_env(isolated_logging, tmp_settings, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


def sse_lines(*contents: str) -> str:
    lines = [
        "data: " + json.dumps({"choices": [{"delta": {"content": c}}]}) for c in contents
    ]
    return "\n".join([": OPENROUTER PROCESSING", *lines, "data: [DONE]", ""])


class TestParseCommands:
    def test_parse_json(self, tmp_path, capsys):
        src = tmp_path / "reply.md"
        src.write_text(RESPONSE)
        assert main(["parse", str(src), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["dependencies"] == {"react": "^18.2.0"}
        assert [s["type"] for s in data["segments"]] == ["markdown", "code"]
        assert data["segments"][1]["content"] == "export default App;\n"

    def test_parse_rendered(self, tmp_path, capsys):
        src = tmp_path / "reply.md"
        src.write_text(RESPONSE)
        assert main(["parse", str(src)]) == 0
        assert "code #1" in capsys.readouterr().out

    def test_deps(self, tmp_path, capsys):
        src = tmp_path / "reply.md"
        src.write_text(RESPONSE)
        assert main(["deps", str(src)]) == 0
        assert json.loads(capsys.readouterr().out) == {"react": "^18.2.0"}

    def test_missing_file(self, tmp_path, capsys):
        assert main(["parse", str(tmp_path / "nope.md")]) == 1
        assert "error" in capsys.readouterr().out


class TestReplay:
    def test_replay_small_chunks(self, tmp_path, capsys):
        src = tmp_path / "capture.sse"
        src.write_text(sse_lines("Here:\n``", "`jsx\nconst total = 1;\n", "```\nDone ✓"), encoding="utf-8")
        assert main(["replay", str(src), "--chunk-size", "7", "-v"]) == 0
        out = capsys.readouterr().out
        assert "const total = 1;" in out
        assert "Done ✓" in out
        assert "md code md" in out


class TestScenario:
    def test_stream_end_navigates_once(self):
        records = run_scenario(
            {
                "initial": {**IDENTITY, "code": "x", "is_streaming": True},
                "steps": [
                    {"inputs": {"preview_ready": True}},
                    {"inputs": {"is_streaming": False}},
                    {"inputs": {"code": "y"}},
                ],
            }
        )
        assert [r["navigated"] for r in records] == [[], [BASE + "/app"], []]
        assert records[-1]["path"] == BASE + "/app"
        assert records[-1]["display_view"] == "preview"

    def test_iframe_ready_fires_after_advance(self):
        records = run_scenario(
            {
                "initial": {**IDENTITY, "code": "x", "preview_ready": True},
                "steps": [{"iframe": {"type": "preview-ready"}}, {"advance": 0.5}],
            },
            ViewStateConfig(auto_navigate_delay=0.5),
        )
        assert [r["navigated"] for r in records] == [[], [BASE + "/app"]]

    def test_unrecognized_iframe_payloads_are_skipped(self):
        records = run_scenario(
            {
                "initial": {**IDENTITY, "code": "x", "preview_ready": True},
                "steps": [
                    {"iframe": "preview-ready"},
                    {"iframe": {"type": "callai-api-key"}},
                    {"advance": 1},
                ],
            }
        )
        assert [r["navigated"] for r in records] == [[], [], []]

    def test_back_after_iframe_ready_keeps_path(self):
        records = run_scenario(
            {
                "initial": {**IDENTITY, "code": "x", "preview_ready": True},
                "steps": [{"iframe": {"type": "preview-ready"}}, {"back": True}, {"advance": 1}],
            }
        )
        assert records[-1]["path"] == BASE
        assert all(r["navigated"] == [] for r in records)

    def test_select_and_back(self):
        records = run_scenario(
            {
                "initial": {**IDENTITY, "code": "x"},
                "steps": [{"select": "code"}, {"back": True}],
            }
        )
        assert records[0]["navigated"] == [BASE + "/code"]
        assert records[0]["current_view"] == "code"
        assert records[1]["navigated"] == []

    @pytest.mark.parametrize(
        "scenario",
        [
            {"initial": {"colour": "blue"}},
            {"initial": [], "steps": []},
            {"steps": "nope"},
            {"steps": [{"jump": 1}]},
            {"steps": [{"select": "settings"}]},
        ],
    )
    def test_malformed(self, scenario):
        with pytest.raises(ScenarioError):
            run_scenario(scenario)

    def test_views_command(self, tmp_path, capsys):
        src = tmp_path / "scenario.json"
        src.write_text(
            json.dumps(
                {
                    "initial": {**IDENTITY, "code": "x", "is_streaming": True},
                    "steps": [{"inputs": {"is_streaming": False, "preview_ready": True}}],
                }
            )
        )
        assert main(["views", str(src)]) == 0
        assert BASE + "/app" in capsys.readouterr().out

    def test_views_command_bad_file(self, tmp_path, capsys):
        src = tmp_path / "scenario.json"
        src.write_text("[]")
        assert main(["views", str(src)]) == 1
