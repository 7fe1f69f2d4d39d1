import json

import pytest

import planner_py.cli as cli
from planner_py.cli import EXIT_CONFLICT, main

DAY = "2025-01-01"


@pytest.fixture
def run(tmp_path):
    db = f"sqlite:///{tmp_path / 'cli.db'}"
    return lambda *args: main(["--db", db, *args])


def test_add_conflict_override_and_show(run, capsys):
    assert run("add", DAY, "Focus", "09:00", "--duration", "60") == 0
    assert run("add", DAY, "Call", "09:30", "--end", "10:00") == EXIT_CONFLICT
    assert "Time conflict" in capsys.readouterr().out

    assert run("add", DAY, "Call", "09:30", "--end", "10:00", "--override") == 0
    capsys.readouterr()

    assert run("show", DAY, "--json") == 0
    grid = json.loads(capsys.readouterr().out)
    names = [r["task"]["name"] for r in grid["rows"] if r["task"]]
    assert names == ["Call"]
    assert grid["config"]["startTime"] == "08:00"


def test_config_warns_about_stranded_tasks(run, capsys):
    run("add", DAY, "Early", "08:30", "--duration", "30")
    capsys.readouterr()

    assert run("config", "--date", DAY, "--start", "09:00") == EXIT_CONFLICT
    assert "Early" in capsys.readouterr().out

    assert run("config", "--date", DAY, "--start", "09:00", "--force") == 0
    assert json.loads(capsys.readouterr().out)["startTime"] == "09:00"

    assert run("config", "--date", DAY, "--reset") == 0
    capsys.readouterr()
    assert run("config", "--date", DAY) == 0
    assert json.loads(capsys.readouterr().out)["startTime"] == "08:00"


def test_breaks_export_import(run, capsys, tmp_path):
    run("add", DAY, "Lunch", "12:00", "--duration", "60")
    assert run("breaks", DAY) == 0
    assert "[break]" in capsys.readouterr().out

    path = tmp_path / "out.json"
    assert run("export", str(path)) == 0
    doc = json.loads(path.read_text(encoding="utf-8"))
    assert [len(d["items"]) for d in doc["days"]] == [3]

    assert run("clear", DAY) == 0
    assert run("import", str(path)) == 0
    capsys.readouterr()
    run("show", DAY, "--json")
    rows = json.loads(capsys.readouterr().out)["rows"]
    assert sum(1 for r in rows if r["task"]) == 3


def test_errors_exit_nonzero(run, capsys):
    assert run("add", DAY, "Bad", "9:00", "--duration", "30") == 1
    assert "error:" in capsys.readouterr().err
    assert run("remove", DAY, "missing") == 0


def test_share_command(run, capsys, monkeypatch):
    class FakeClient:
        def __init__(self, base_url):
            self.base_url = base_url

        def share_day(self, planner, date_key):
            return planner.set_shared_link(date_key, "s" * 32, f"{self.base_url}/share/{'s' * 32}")

    monkeypatch.setattr(cli, "ShareClient", FakeClient)
    run("add", DAY, "Demo", "15:00", "--duration", "30")
    capsys.readouterr()

    assert run("share", DAY, "--api", "https://plan.example") == 0
    assert capsys.readouterr().out.strip() == f"https://plan.example/share/{'s' * 32}"

    run("show", DAY)
    assert "shared: https://plan.example/share/" in capsys.readouterr().out


def test_unaligned_times_snap_to_grid(run, capsys):
    assert run("add", DAY, "Standup", "09:15", "--end", "09:45") == 0
    assert "09:30-10:00" in capsys.readouterr().out

    run("show", DAY, "--json")
    rows = json.loads(capsys.readouterr().out)["rows"]
    assert [(r["time"], r["task"]["name"]) for r in rows if r["task"]] == [("09:30", "Standup")]
