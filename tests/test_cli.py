"""Tests for the beacon CLI, run against an in-memory store."""

import json

import pytest

from beacon import cli
from beacon.metrics import RegistryMetrics
from beacon.store import InMemoryStore


@pytest.fixture
def shared_store(monkeypatch):
    store = InMemoryStore()
    monkeypatch.setattr(cli, "_open_store", lambda config: store)
    return store


def test_register_then_list_json(shared_store, capsys):
    cli.main(["register", "svc", "1.0.0", "10.0.0.1", "9000", "--ttl", "30", "--meta", "zone=a"])
    assert capsys.readouterr().out.strip() == "/svc/1.0.0/10.0.0.1/9000"

    cli.main(["list", "--name", "svc", "--format", "json"])
    rows = json.loads(capsys.readouterr().out)

    assert len(rows) == 1
    assert rows[0]["id"] == "/svc/1.0.0/10.0.0.1/9000"
    assert rows[0]["meta"] == {"zone": "a"}
    assert rows[0]["expires_at"] is not None


def test_list_text_when_empty(shared_store, capsys):
    cli.main(["list"])
    assert capsys.readouterr().out.strip() == "(no registrations)"


def test_list_version_requires_name(shared_store):
    with pytest.raises(SystemExit):
        cli.main(["list", "--service-version", "1.0.0"])


def test_register_rejects_bad_meta(shared_store, capsys):
    with pytest.raises(SystemExit):
        cli.main(["register", "svc", "1", "h", "80", "--meta", "novalue"])
    assert "KEY=VALUE" in capsys.readouterr().err


def test_deregister(shared_store, capsys):
    cli.main(["register", "svc", "1", "h", "80"])
    cli.main(["deregister", "/svc/1/h/80"])
    capsys.readouterr()

    cli.main(["list"])
    assert capsys.readouterr().out.strip() == "(no registrations)"


def test_reap_prints_expired_ids(shared_store, capsys):
    cli.main(["register", "svc", "1", "h", "80", "--ttl", "0"])
    cli.main(["register", "svc", "1", "h", "81", "--ttl", "60"])
    capsys.readouterr()

    cli.main(["reap"])
    assert capsys.readouterr().out.split() == ["/svc/1/h/80"]


def test_clear_requires_confirmation(shared_store, capsys):
    cli.main(["register", "svc", "1", "h", "80"])
    with pytest.raises(SystemExit):
        cli.main(["clear"])

    cli.main(["clear", "--yes"])
    capsys.readouterr()
    cli.main(["list"])
    assert capsys.readouterr().out.strip() == "(no registrations)"


def test_no_command_prints_help():
    with pytest.raises(SystemExit):
        cli.main([])


def test_serve_exposes_metrics_when_port_given(shared_store, monkeypatch, capsys):
    served = []
    loops = []

    async def one_pass(registry, interval, log=None):
        loops.append(interval)

    monkeypatch.setattr(cli, "run_reaper_loop", one_pass)
    monkeypatch.setattr(RegistryMetrics, "serve", lambda self, port: served.append(port))

    cli.main(["serve", "--reaper-interval", "0.5", "--metrics-port", "9464"])

    assert served == [9464]
    assert loops == [0.5]
    assert "Metrics on :9464/metrics" in capsys.readouterr().err


def test_serve_without_metrics_port_starts_no_server(shared_store, monkeypatch):
    served = []

    async def one_pass(registry, interval, log=None):
        pass

    monkeypatch.setattr(cli, "run_reaper_loop", one_pass)
    monkeypatch.setattr(RegistryMetrics, "serve", lambda self, port: served.append(port))

    cli.main(["serve"])

    assert served == []
