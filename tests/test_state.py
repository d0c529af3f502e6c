"""
Tests for the Session State Machine

The state machine is exercised on its own, without any transport.
"""

import pytest

from chat_client import (
    ABNORMAL_CLOSE_CODE,
    MANUAL_CLOSE_CODE,
    ConnectionState,
    ReconnectPolicy,
    SessionState,
    StateTransitionError,
)


def open_session(max_attempts=5):
    session = SessionState(policy=ReconnectPolicy(max_attempts=max_attempts))
    session.begin_connect()
    session.connected()
    return session


def test_policy_defaults():
    """The retry policy is a fixed 3 second delay with 5 attempts."""
    policy = ReconnectPolicy()
    assert policy.max_attempts == 5
    assert policy.delay == 3.0
    assert policy.attempt == 0
    assert not policy.exhausted


def test_policy_exhaust_and_reset():
    policy = ReconnectPolicy()
    policy.exhaust()
    assert policy.exhausted
    assert policy.attempt == 5

    policy.reset()
    assert policy.attempt == 0
    assert not policy.exhausted


def test_initial_state_is_idle():
    session = SessionState()
    assert session.state is ConnectionState.IDLE
    assert session.can_open


def test_connect_and_open():
    session = SessionState()
    assert session.begin_connect() is ConnectionState.CONNECTING
    assert not session.can_open
    assert session.connected() is ConnectionState.OPEN
    assert not session.can_open


def test_connected_resets_attempts():
    session = open_session()
    session.connection_lost(ABNORMAL_CLOSE_CODE)
    session.retry()
    session.connection_lost(ABNORMAL_CLOSE_CODE)
    assert session.policy.attempt == 2

    session.retry()
    session.connected()
    assert session.policy.attempt == 0


def test_abnormal_close_waits_to_reconnect():
    session = open_session()
    assert (
        session.connection_lost(ABNORMAL_CLOSE_CODE)
        is ConnectionState.RECONNECT_WAIT
    )
    assert session.policy.attempt == 1
    assert session.can_open


def test_normal_close_code_goes_idle():
    session = open_session()
    assert session.connection_lost(MANUAL_CLOSE_CODE) is ConnectionState.IDLE
    assert session.policy.attempt == 0


def test_open_after_manual_close_restores_retries():
    session = open_session()
    session.begin_close()
    session.closed()
    assert session.policy.exhausted

    session.begin_connect()

    assert session.policy.attempt == 0
    assert (
        session.connection_lost(ABNORMAL_CLOSE_CODE)
        is ConnectionState.RECONNECT_WAIT
    )


def test_handshake_failure_uses_same_policy():
    session = SessionState()
    session.begin_connect()
    assert (
        session.connection_lost(ABNORMAL_CLOSE_CODE)
        is ConnectionState.RECONNECT_WAIT
    )


def test_exhaustion_after_max_attempts():
    """Five retries are scheduled; the sixth loss fails the session."""
    session = open_session()
    states = []
    for _ in range(5):
        states.append(session.connection_lost(ABNORMAL_CLOSE_CODE))
        session.retry()
    states.append(session.connection_lost(ABNORMAL_CLOSE_CODE))

    assert states[:5] == [ConnectionState.RECONNECT_WAIT] * 5
    assert states[5] is ConnectionState.FAILED
    assert session.policy.attempt == 5
    assert not session.can_open


def test_manual_close_exhausts_policy():
    session = open_session()
    assert session.begin_close() is ConnectionState.CLOSING
    assert session.closed() is ConnectionState.IDLE
    assert session.policy.exhausted


def test_close_from_failed_goes_idle():
    session = SessionState(policy=ReconnectPolicy(max_attempts=0))
    session.begin_connect()
    assert session.connection_lost(ABNORMAL_CLOSE_CODE) is ConnectionState.FAILED

    session.begin_close()
    assert session.closed() is ConnectionState.IDLE


@pytest.mark.parametrize(
    "transition",
    ["connected", "retry", "closed"],
)
def test_illegal_transitions_from_idle(transition):
    session = SessionState()
    with pytest.raises(StateTransitionError, match="IDLE"):
        getattr(session, transition)()
    assert session.state is ConnectionState.IDLE


def test_connection_lost_requires_live_session():
    session = SessionState()
    with pytest.raises(StateTransitionError):
        session.connection_lost(ABNORMAL_CLOSE_CODE)


def test_begin_connect_rejected_while_open():
    session = open_session()
    with pytest.raises(StateTransitionError):
        session.begin_connect()
    assert session.state is ConnectionState.OPEN
