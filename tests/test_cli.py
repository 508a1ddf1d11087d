"""Tests for the command line interface."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from starspharm.cli import main
from starspharm.db.loyalty import LoyaltyStore
from starspharm.pipeline import ScanData, ScanOutcome


@pytest.fixture
def db_env(tmp_path, monkeypatch):
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("STARSPHARM_DB_PATH", str(db_path))
    return db_path


def test_no_command_exits(db_env):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_add_client_and_balance(db_env, capsys):
    main(["add-client", "user-1", "--stars", "12"])
    main(["balance", "user-1"])
    out = capsys.readouterr().out
    assert "user-1: 12 stars" in out


def test_balance_unknown_client(db_env, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["balance", "nobody"])
    assert exc.value.code == 1


def test_orphans_empty(db_env, capsys):
    main(["orphans"])
    assert "No orphaned receipts." in capsys.readouterr().out


def test_orphans_json(db_env, capsys):
    with LoyaltyStore(db_env) as store:
        cid = store.add_client("user-1")
        store.insert_receipt(cid, "https://suf.purs.gov.rs/v/?vl=x", 100,
                             scanned_at="2026-01-01T00:00:00+00:00")

    main(["orphans", "--json"])
    orphans = json.loads(capsys.readouterr().out)
    assert len(orphans) == 1
    assert orphans[0]["amount"] == 100


@pytest.mark.parametrize("command", [["orphans"], ["balance", "user-1"]])
def test_unreadable_database_exits_nonzero(tmp_path, monkeypatch, capsys, command):
    db_path = tmp_path / "corrupt.db"
    db_path.write_bytes(b"this is not a sqlite database" * 100)
    monkeypatch.setenv("STARSPHARM_DB_PATH", str(db_path))

    with pytest.raises(SystemExit) as exc:
        main(command)
    assert exc.value.code == 1
    assert "Database error" in capsys.readouterr().err


def test_scan_with_client_qr(db_env, capsys):
    outcome = ScanOutcome(
        success=True,
        message="Uspešno dodato 3 zvezdica!",
        data=ScanData("INV1", 300, 1, 3, 10, 1),
    )
    with patch("starspharm.cli.process_receipt_scan", AsyncMock(return_value=outcome)) as scan:
        main(["scan", "https://suf.purs.gov.rs/v/?vl=x", "--client-qr", '{"u": "user-1"}'])

    assert scan.await_args.args == ("https://suf.purs.gov.rs/v/?vl=x", "user-1")
    assert "Uspešno dodato 3 zvezdica!" in capsys.readouterr().out


def test_scan_failure_exits_nonzero(db_env, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["scan", "https://example.com/", "--user", "user-1", "--json"])
    assert exc.value.code == 1
    assert json.loads(capsys.readouterr().out)["success"] is False


def test_scan_bad_client_qr(db_env, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["scan", "https://suf.purs.gov.rs/v/?vl=x", "--client-qr", "not-json"])
    assert exc.value.code == 1
    assert "Invalid client QR code" in capsys.readouterr().err
