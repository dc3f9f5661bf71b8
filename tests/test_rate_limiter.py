"""Tests for the per-user panel throttle."""

from types import SimpleNamespace

import pytest

from ctfbot.services.rate_limiter import PanelRateLimiter, rate_limit


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return PanelRateLimiter(clock=clock)


class TestPanelRateLimiter:
    async def test_allows_up_to_limit_then_blocks(self, limiter):
        results = [await limiter.is_allowed(1, "leaderboard", 3, 60) for _ in range(4)]
        assert results == [True, True, True, False]

    async def test_window_slides(self, limiter, clock):
        for _ in range(2):
            assert await limiter.is_allowed(1, "leaderboard", 2, 60)
        assert not await limiter.is_allowed(1, "leaderboard", 2, 60)
        clock.now += 60
        assert await limiter.is_allowed(1, "leaderboard", 2, 60)

    async def test_users_and_panels_are_independent(self, limiter):
        assert await limiter.is_allowed(1, "leaderboard", 1, 60)
        assert await limiter.is_allowed(2, "leaderboard", 1, 60)
        assert await limiter.is_allowed(1, "competitions", 1, 60)
        assert not await limiter.is_allowed(1, "leaderboard", 1, 60)

    async def test_non_positive_limits_deny(self, limiter):
        assert not await limiter.is_allowed(1, "leaderboard", 0, 60)
        assert not await limiter.is_allowed(1, "leaderboard", 5, 0)


class Response:
    def __init__(self):
        self.messages = []

    async def send_message(self, content, ephemeral=False):
        self.messages.append((content, ephemeral))


def interaction(user_id: int, administrator: bool = False):
    user = SimpleNamespace(id=user_id, guild_permissions=SimpleNamespace(administrator=administrator))
    return SimpleNamespace(user=user, response=Response())


class PanelCog:
    def __init__(self, limiter):
        self.bot = SimpleNamespace(rate_limiter=limiter)
        self.opened = 0

    @rate_limit("leaderboard", limit=1, window=60)
    async def open_panel(self, interaction):
        self.opened += 1


class TestRateLimitDecorator:
    async def test_blocked_user_gets_ephemeral_notice(self, limiter):
        cog = PanelCog(limiter)
        target = interaction(1)
        await cog.open_panel(target)
        await cog.open_panel(target)
        assert cog.opened == 1
        content, ephemeral = target.response.messages[0]
        assert "/leaderboard" in content
        assert ephemeral

    async def test_administrators_are_not_throttled(self, limiter):
        cog = PanelCog(limiter)
        admin = interaction(1, administrator=True)
        for _ in range(3):
            await cog.open_panel(admin)
        assert cog.opened == 3
        assert admin.response.messages == []
