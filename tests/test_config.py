from __future__ import annotations

import importlib

import pytest

import pricedash.config as config


@pytest.fixture
def reload_config(monkeypatch):
    def _reload(**env):
        for key in ("PRICEDASH_CORS_ORIGINS", "PRICEDASH_MAX_UPLOAD_MB", "PRICEDASH_EVOLUTION_Y_DOMAIN"):
            monkeypatch.delenv(key, raising=False)
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


def test_defaults(reload_config):
    cfg = reload_config()
    assert cfg.CORS_ORIGINS == ["http://localhost:3000", "http://127.0.0.1:3000"]
    assert cfg.MAX_UPLOAD_MB == 50.0
    assert cfg.EVOLUTION_Y_DOMAIN is None


def test_env_overrides(reload_config):
    cfg = reload_config(
        PRICEDASH_CORS_ORIGINS=" https://a.example , ,https://b.example",
        PRICEDASH_MAX_UPLOAD_MB="2.5",
        PRICEDASH_EVOLUTION_Y_DOMAIN="40000,60000",
    )
    assert cfg.CORS_ORIGINS == ["https://a.example", "https://b.example"]
    assert cfg.MAX_UPLOAD_MB == 2.5
    assert cfg.EVOLUTION_Y_DOMAIN == (40000.0, 60000.0)


@pytest.mark.parametrize("domain", ["60000,40000", "abc", "1,2,3", "5,5"])
def test_invalid_domain_falls_back_to_auto(reload_config, domain):
    assert reload_config(PRICEDASH_EVOLUTION_Y_DOMAIN=domain).EVOLUTION_Y_DOMAIN is None


def test_invalid_upload_cap_falls_back_to_default(reload_config):
    assert reload_config(PRICEDASH_MAX_UPLOAD_MB="lots").MAX_UPLOAD_MB == 50.0
    assert reload_config(PRICEDASH_MAX_UPLOAD_MB="  ").MAX_UPLOAD_MB == 50.0
