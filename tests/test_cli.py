import json

import clubhub.cli as cli
import clubhub.storage as storage


def test_init_db(capsys):
    assert cli.main(["init_db"]) == 0
    assert "Database ready" in capsys.readouterr().out


def test_seed_is_repeatable(capsys):
    assert cli.main(["seed"]) == 0
    assert cli.main(["seed"]) == 0
    out = capsys.readouterr().out
    assert "Seeded 3 clubs" in out
    assert "Seeded 0 clubs" in out

    clubs = storage.list_clubs()
    assert sorted(c.name for c in clubs) == ["Computer Science Club", "Environmental Club", "Photography Club"]
    student = storage.get_user_by_email("student@clubhub.local")
    for club in clubs:
        assert storage.count_events(club.club_id) == 1
        assert storage.find_pending_request(club.club_id, student.user_id) is not None


def test_suggest_prints_json(capsys, monkeypatch):
    monkeypatch.setattr(cli, "build_client", lambda: None)
    cli.main(["seed"])
    capsys.readouterr()

    assert cli.main(["suggest", "photography"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["clubName"] == "Photography Club"


def test_suggest_without_clubs_reports_error(capsys, monkeypatch):
    monkeypatch.setattr(cli, "build_client", lambda: None)
    assert cli.main(["suggest", "chess"]) == 1
    assert "No clubs available to suggest" in capsys.readouterr().out
