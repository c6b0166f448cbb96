from __future__ import annotations

import json
from pathlib import Path

from eregalerij import __main__
from eregalerij import scrape
from eregalerij import stats as stats_module
from eregalerij.scrape import WriteError


def test_build_parser_defaults() -> None:
    args = __main__.build_parser().parse_args([])

    assert args.output == stats_module.DEFAULT_OUTPUT_PATH
    assert args.retries == 3
    assert args.delay == 0.5
    assert args.html_dir is None
    assert args.skip_download is False
    assert args.name_mapping is None


def test_build_parser_accepts_offline_flags(tmp_path) -> None:
    args = __main__.build_parser().parse_args(
        ["--html-dir", str(tmp_path), "--skip-download", "--retries", "5"]
    )

    assert args.html_dir == tmp_path
    assert isinstance(args.html_dir, Path)
    assert args.skip_download is True
    assert args.retries == 5


def test_main_writes_artifact_even_when_every_source_fails(monkeypatch, tmp_path, capsys) -> None:
    def offline_fetch(url, **kwargs):
        raise scrape.NetworkError(url, "offline")

    monkeypatch.setattr(scrape, "fetch_html", offline_fetch)
    output_path = tmp_path / "halloffame.json"

    exit_code = __main__.main(["--output", str(output_path)])

    assert exit_code == 0
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["players"] == []
    assert data["allResults"] == []
    assert len(data["sources"]) == 7
    assert "Hall of fame updated" in capsys.readouterr().out


def test_main_applies_name_mapping_file(monkeypatch, tmp_path, capsys) -> None:
    page = "<table><tr><td>Jaar</td><td>Naam</td></tr><tr><td>2023</td><td>Rie</td></tr></table>"

    def fake_fetch(url, **kwargs):
        if url.endswith("zomercyclus/"):
            return page
        raise scrape.HttpError(url, 404)

    monkeypatch.setattr(scrape, "fetch_html", fake_fetch)
    mapping_path = tmp_path / "mapping.json"
    mapping_path.write_text(json.dumps({"rie": "Marie Peeters"}), encoding="utf-8")
    output_path = tmp_path / "halloffame.json"

    exit_code = __main__.main(
        ["--output", str(output_path), "--name-mapping", str(mapping_path)]
    )

    assert exit_code == 0
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["players"] == [
        {"displayName": "Marie Peeters", "wins": {"competition_zomercyclus": 1}, "totalWins": 1}
    ]
    assert "1. Marie Peeters: 1 wins" in capsys.readouterr().out


def test_main_returns_error_code_when_output_cannot_be_written(monkeypatch, tmp_path) -> None:
    def failing_build(**kwargs):
        raise WriteError("disk full")

    monkeypatch.setattr(__main__, "build_hall_of_fame", failing_build)

    assert __main__.main(["--output", str(tmp_path / "halloffame.json")]) == 1


def test_main_rejects_unreadable_name_mapping(tmp_path) -> None:
    assert __main__.main(["--name-mapping", str(tmp_path / "missing.json")]) == 1
