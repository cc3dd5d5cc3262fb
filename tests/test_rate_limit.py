"""Tests for the per-session strike counter."""
from lantern_chat.server.rate_limit import Decision, RateLimiter

A, T = Decision.ALLOW, Decision.THROTTLE


def run(limiter, times, session_id="s1"):
    return [limiter.admit(session_id, now) for now in times]


def test_first_message_is_allowed():
    assert RateLimiter().admit("s1", 100.0) is A


def test_burst_hits_threshold_then_stays_throttled():
    limiter = RateLimiter(window=2.0, threshold=5)
    decisions = run(limiter, [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0])
    assert decisions == [A, A, A, A, A, T, T]
    assert limiter.strikes("s1") == 6


def test_throttle_does_not_move_last_accepted_timestamp():
    limiter = RateLimiter(window=2.0, threshold=1)
    assert run(limiter, [0.0, 1.0]) == [A, T]
    # 2.5s after the last accepted message, though only 1.5s after the throttled one
    assert limiter.admit("s1", 2.5) is A
    assert limiter.strikes("s1") == 0


def test_slow_posting_resets_strikes():
    limiter = RateLimiter(window=2.0, threshold=3)
    assert run(limiter, [0.0, 1.0, 2.0]) == [A, A, A]
    assert limiter.strikes("s1") == 2
    assert limiter.admit("s1", 4.0) is A
    assert limiter.strikes("s1") == 0


def test_gap_equal_to_window_is_not_a_strike():
    limiter = RateLimiter(window=2.0, threshold=1)
    assert run(limiter, [0.0, 2.0, 4.0]) == [A, A, A]


def test_sessions_are_independent():
    limiter = RateLimiter(window=2.0, threshold=2)
    assert run(limiter, [0.0, 0.1, 0.2], "noisy") == [A, A, T]
    assert limiter.admit("quiet", 0.3) is A
    assert limiter.strikes("quiet") == 0
