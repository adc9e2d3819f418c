"""Unit tests for auth/limiter.py -- per-identity login attempt limiter.

Covers:
- five attempts allowed per window, the sixth throttled
- throttled attempts do not bump the counter
- window expiry (now >= window_reset_at) resets the entry to a count of 1
- reset() after a successful login clears accumulated attempts
- counters are per identity and case-sensitive (known weakness, preserved)
- concurrent checks for one identity never let more than max_attempts through
- expired entries are swept out; live counters survive a sweep
"""

from concurrent.futures import ThreadPoolExecutor

from auth.limiter import LimitDecision, LoginRateLimiter

WINDOW = 15 * 60


def _limiter(clock) -> LoginRateLimiter:
    return LoginRateLimiter(max_attempts=5, window_seconds=WINDOW, clock=clock)


class TestWindow:
    def test_sixth_attempt_in_window_is_throttled(self, clock) -> None:
        limiter = _limiter(clock)
        decisions = [limiter.check("admin") for _ in range(6)]
        assert decisions[:5] == [LimitDecision.ALLOWED] * 5
        assert decisions[5] is LimitDecision.THROTTLED

    def test_throttled_attempts_do_not_increment(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(12):
            limiter.check("admin")
        assert limiter.attempts("admin") == 5

    def test_still_throttled_just_before_window_ends(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(5):
            limiter.check("admin")
        clock.advance(WINDOW - 1)
        assert limiter.check("admin") is LimitDecision.THROTTLED

    def test_window_expiry_resets_count_to_one(self, clock) -> None:
        """At now == window_reset_at the window has passed and the entry restarts."""
        limiter = _limiter(clock)
        for _ in range(6):
            limiter.check("admin")
        clock.advance(WINDOW)
        assert limiter.check("admin") is LimitDecision.ALLOWED
        assert limiter.attempts("admin") == 1

    def test_window_starts_at_first_attempt_not_last(self, clock) -> None:
        """The window is fixed from the entry's creation; later attempts do not extend it."""
        limiter = _limiter(clock)
        limiter.check("admin")
        clock.advance(WINDOW - 10)
        for _ in range(4):
            limiter.check("admin")
        assert limiter.check("admin") is LimitDecision.THROTTLED
        clock.advance(10)
        assert limiter.check("admin") is LimitDecision.ALLOWED


class TestReset:
    def test_reset_clears_accumulated_attempts(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(4):
            limiter.check("admin")
        limiter.reset("admin")
        assert limiter.attempts("admin") == 0
        for _ in range(5):
            assert limiter.check("admin") is LimitDecision.ALLOWED

    def test_success_after_expiry_then_one_failure_is_not_throttled(self, clock) -> None:
        """Throttled -> wait out window -> succeed -> fail once: count is 1, not 6."""
        limiter = _limiter(clock)
        for _ in range(6):
            limiter.check("admin")
        clock.advance(WINDOW + 1)

        assert limiter.check("admin") is LimitDecision.ALLOWED  # the successful login
        limiter.reset("admin")

        assert limiter.check("admin") is LimitDecision.ALLOWED  # the failed one
        assert limiter.attempts("admin") == 1

    def test_reset_unknown_identity_is_noop(self, clock) -> None:
        limiter = _limiter(clock)
        limiter.reset("never-seen")
        assert limiter.attempts("never-seen") == 0


class TestKeying:
    def test_identities_are_independent(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(6):
            limiter.check("admin")
        assert limiter.check("user") is LimitDecision.ALLOWED

    def test_key_is_case_sensitive(self, clock) -> None:
        """Known weakness: a case variant of a throttled username gets its own counter."""
        limiter = _limiter(clock)
        for _ in range(6):
            limiter.check("admin")
        assert limiter.check("Admin") is LimitDecision.ALLOWED


class TestConcurrency:
    def test_concurrent_checks_allow_exactly_max_attempts(self, clock) -> None:
        limiter = _limiter(clock)
        with ThreadPoolExecutor(max_workers=16) as pool:
            decisions = list(pool.map(lambda _: limiter.check("admin"), range(64)))
        assert decisions.count(LimitDecision.ALLOWED) == 5
        assert decisions.count(LimitDecision.THROTTLED) == 59
        assert limiter.attempts("admin") == 5


class TestExpiredEntries:
    def test_expired_keys_are_dropped(self, clock) -> None:
        """A spray of unique usernames does not outlive its window."""
        limiter = _limiter(clock)
        for i in range(10_000):
            limiter.check(f"spray-{i}")
        clock.advance(10 * WINDOW)
        limiter.check("admin")
        assert len(limiter) == 1

    def test_sweep_keeps_live_counters(self, clock) -> None:
        limiter = LoginRateLimiter(max_attempts=5, window_seconds=WINDOW, clock=clock, sweep_threshold=4)
        for _ in range(5):
            limiter.check("admin")
        for i in range(20):
            limiter.check(f"other-{i}")
        assert limiter.attempts("admin") == 5
        assert limiter.check("admin") is LimitDecision.THROTTLED
