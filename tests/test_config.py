"""Tests for environment-backed configuration."""

import pytest

from ctfbot.config import Config


@pytest.fixture
def valid_config(monkeypatch):
    monkeypatch.setattr(Config, 'DISCORD_TOKEN', 'token')
    monkeypatch.setattr(Config, 'API_BASE_URL', 'https://ctf.test/api')
    monkeypatch.setattr(Config, 'SEARCH_DEBOUNCE_SECONDS', 0.3)
    monkeypatch.setattr(Config, 'FLASH_MESSAGE_SECONDS', 3.2)


class TestGuildIds:
    def test_multiple_ids(self, monkeypatch):
        monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', '1, 2,,3')
        assert Config.get_guild_ids() == [1, 2, 3]

    def test_single_id_fallback(self, monkeypatch):
        monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', '')
        monkeypatch.setattr(Config, 'DISCORD_GUILD_ID', 42)
        assert Config.get_guild_ids() == [42]

    def test_global_sync(self, monkeypatch):
        monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', '')
        monkeypatch.setattr(Config, 'DISCORD_GUILD_ID', 0)
        assert Config.get_guild_ids() == []

    def test_garbage_ids(self, monkeypatch):
        monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', '1,abc')
        with pytest.raises(ValueError):
            Config.get_guild_ids()


class TestValidate:
    def test_valid(self, valid_config):
        Config.validate()

    @pytest.mark.parametrize('name, value', [
        ('DISCORD_TOKEN', None),
        ('API_BASE_URL', ''),
        ('SEARCH_DEBOUNCE_SECONDS', 1.0),
        ('FLASH_MESSAGE_SECONDS', 10.0),
    ])
    def test_invalid(self, valid_config, monkeypatch, name, value):
        monkeypatch.setattr(Config, name, value)
        with pytest.raises(ValueError):
            Config.validate()
