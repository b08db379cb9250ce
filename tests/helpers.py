"""Shared constants for API tests."""

SCOPE = "t3_testpost"
PLAYER = "test_pilot"
API_HEADERS = {"X-Post-Id": SCOPE, "X-Username": PLAYER}
ANONYMOUS_HEADERS = {"X-Post-Id": SCOPE}
