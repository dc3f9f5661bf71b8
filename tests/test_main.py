"""Tests for the bot's slash-command error handler."""

import logging
from types import SimpleNamespace

import pytest
from discord import app_commands

from ctfbot.main import CTFArenaBot


class Response:
    def __init__(self):
        self.sent = []

    def is_done(self):
        return False

    async def send_message(self, embed=None, ephemeral=False):
        self.sent.append((embed, ephemeral))


def interaction(command_name):
    return SimpleNamespace(
        command=SimpleNamespace(name=command_name),
        user=SimpleNamespace(id=1),
        response=Response(),
    )


async def handle(command_name, error):
    bot = SimpleNamespace(logger=logging.getLogger("test"))
    target = interaction(command_name)
    await CTFArenaBot.on_app_command_error(bot, target, error)
    embed, ephemeral = target.response.sent[0]
    assert ephemeral
    return embed


@pytest.mark.parametrize('command_name, error, expected', [
    ('admin-groups', app_commands.CheckFailure(), "This command is restricted to bot administrators only."),
    ('leaderboard', app_commands.CheckFailure(), "You don't have the required permissions to use this command."),
    ('leaderboard', app_commands.BotMissingPermissions(['embed_links']),
     "I don't have the required permissions to execute this command."),
    ('leaderboard', app_commands.AppCommandError("boom"),
     "An unexpected error occurred while processing your command."),
])
async def test_error_reply(command_name, error, expected):
    embed = await handle(command_name, error)
    assert embed.description == expected
