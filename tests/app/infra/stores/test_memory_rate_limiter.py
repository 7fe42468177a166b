"""Testes do FixedWindowRateLimiter."""

from __future__ import annotations

from app.infra.stores.memory_rate_limiter import FixedWindowRateLimiter
from app.protocols.rate_limiter import RateLimiterProtocol


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter:
    def test_implements_protocol(self) -> None:
        assert isinstance(FixedWindowRateLimiter(1, 60), RateLimiterProtocol)

    def test_allows_up_to_limit_then_rejects(self) -> None:
        limiter = FixedWindowRateLimiter(3, 60, clock=_FakeClock())

        results = [limiter.allow("1.2.3.4") for _ in range(5)]

        assert results == [True, True, True, False, False]

    def test_clients_are_counted_independently(self) -> None:
        limiter = FixedWindowRateLimiter(1, 60, clock=_FakeClock())

        assert limiter.allow("a") is True
        assert limiter.allow("a") is False
        assert limiter.allow("b") is True

    def test_window_resets_after_expiry(self) -> None:
        clock = _FakeClock()
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)
        limiter.allow("a")
        assert limiter.allow("a") is False

        clock.now += 60
        assert limiter.allow("a") is False

        clock.now += 0.5
        assert limiter.allow("a") is True

    def test_window_is_fixed_from_first_request(self) -> None:
        """Requisições recusadas não estendem a janela."""
        clock = _FakeClock()
        limiter = FixedWindowRateLimiter(1, 10, clock=clock)
        limiter.allow("a")
        for _ in range(5):
            clock.now += 1
            limiter.allow("a")

        clock.now += 6
        assert limiter.allow("a") is True

    def test_reset_forgets_windows(self) -> None:
        limiter = FixedWindowRateLimiter(1, 60, clock=_FakeClock())
        limiter.allow("a")

        limiter.reset()

        assert limiter.allow("a") is True
