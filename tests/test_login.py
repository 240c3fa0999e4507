"""
Tests for the login handshake, logoff and renewal.
"""

import unittest
from unittest.mock import MagicMock

from fritzbox_aha.auth.challenge import solve_iterated
from fritzbox_aha.auth.login import Authenticator, Credential, SessionInfo
from fritzbox_aha.auth.sid import SessionState
from fritzbox_aha.config import INVALID_SID, LOGIN_PATH
from fritzbox_aha.exceptions import FormatError, ProtocolError, TransportError
from fritzbox_aha.network.client import HttpResponse

from fakes import OTHER_SID, VALID_SID, FakeGateway, FakeTransport, session_info


def scripted(*responses):
    """Handler returning *responses* in order."""
    queue = list(responses)

    def handler(path, params):
        return queue.pop(0)

    return handler


class TestCredential(unittest.TestCase):
    def test_password_not_in_repr(self):
        cred = Credential("smarthome", "s3cr3t")
        self.assertNotIn("s3cr3t", repr(cred))

    def test_username_rules(self):
        Credential("user.name@example-1_x", "pw")
        Credential("", "pw")
        with self.assertRaises(FormatError):
            Credential("a" * 33, "pw")
        with self.assertRaises(FormatError):
            Credential("bad name", "pw")


class TestSessionInfo(unittest.TestCase):
    def test_from_body(self):
        info = SessionInfo.from_body(session_info(VALID_SID, "abc", 12).body)
        self.assertEqual(info, SessionInfo(VALID_SID, "abc", 12))

    def test_block_time_defaults_to_zero(self):
        body = b"<SessionInfo><SID>0000000000000000</SID><Challenge>x</Challenge></SessionInfo>"
        self.assertEqual(SessionInfo.from_body(body).block_time, 0)

    def test_missing_elements_are_protocol_errors(self):
        for body in (b"<SessionInfo><Challenge>x</Challenge></SessionInfo>",
                     b"<SessionInfo><SID>0000000000000000</SID></SessionInfo>"):
            with self.subTest(body=body):
                with self.assertRaises(ProtocolError):
                    SessionInfo.from_body(body)

    def test_malformed_sid_is_format_error(self):
        with self.assertRaises(FormatError):
            SessionInfo.from_body(b"<SessionInfo><SID>xyz</SID><Challenge>x</Challenge></SessionInfo>")


class TestLogin(unittest.TestCase):
    def _auth(self, handler, username="", password="äbc"):
        transport = FakeTransport(handler)
        state = SessionState()
        keep_alive = MagicMock()
        auth = Authenticator(transport, state, Credential(username, password), keep_alive)
        return auth, transport, state, keep_alive

    def test_end_to_end_legacy_login(self):
        auth, transport, state, keep_alive = self._auth(scripted(
            session_info(INVALID_SID, "1234567z"),
            session_info("affe1234affe1234", "1234567z"),
            session_info("affe1234affe1234", "1234567z"),
        ))

        self.assertTrue(auth.login())

        self.assertEqual(state.current(), "affe1234affe1234")
        keep_alive.start.assert_called_once()
        self.assertEqual(transport.calls, [
            (LOGIN_PATH, {"version": "2"}),
            (LOGIN_PATH, {"version": "2", "username": "",
                          "response": "1234567z-9e224a41eeefa284df7bb0f26c2913e2"}),
            (LOGIN_PATH, {"version": "2", "sid": "affe1234affe1234"}),
        ])

    def test_pbkdf2_challenge_is_answered_with_iterated_response(self):
        challenge = "2$1$5A5A$1$5A5A"
        auth, transport, state, _ = self._auth(scripted(
            session_info(INVALID_SID, challenge),
            session_info(VALID_SID, challenge),
            session_info(VALID_SID, challenge),
        ), username="smarthome", password="password")

        self.assertTrue(auth.login())

        params = transport.calls[1][1]
        self.assertEqual(params["username"], "smarthome")
        self.assertEqual(params["response"], solve_iterated(challenge, "password"))

    def test_pre_authenticated_box_skips_challenge(self):
        auth, transport, state, keep_alive = self._auth(scripted(
            session_info(VALID_SID),
            session_info(VALID_SID),
        ))

        self.assertTrue(auth.login())

        self.assertEqual(len(transport.calls), 2)
        self.assertEqual(transport.calls[1][1], {"version": "2", "sid": VALID_SID})
        keep_alive.start.assert_called_once()

    def test_wrong_password_fails_and_resets_state(self):
        auth, transport, state, keep_alive = self._auth(
            FakeGateway(password="right"), password="wrong"
        )

        self.assertFalse(auth.login())

        self.assertEqual(state.current(), INVALID_SID)
        self.assertEqual(auth.block_time, 4)
        keep_alive.start.assert_not_called()
        keep_alive.cancel.assert_called_once()

    def test_rejected_credentials_are_not_renewed_automatically(self):
        auth, transport, state, _ = self._auth(
            FakeGateway(password="right"), password="wrong"
        )
        self.assertFalse(auth.login())
        calls = len(transport.calls)

        self.assertFalse(auth.renew(INVALID_SID))
        self.assertEqual(len(transport.calls), calls)

        # An explicit login tries again
        self.assertFalse(auth.login())
        self.assertEqual(transport.challenge_requests(), 2)

    def test_sid_invalidated_between_response_and_confirmation(self):
        auth, _, state, keep_alive = self._auth(scripted(
            session_info(INVALID_SID),
            session_info(VALID_SID),
            session_info(INVALID_SID),
        ))
        self.assertFalse(auth.login())
        self.assertFalse(state.is_valid())
        keep_alive.start.assert_not_called()

    def test_against_fake_gateway(self):
        auth, _, state, _ = self._auth(FakeGateway(password="secret"), password="secret")
        self.assertTrue(auth.login())
        self.assertEqual(state.current(), VALID_SID)

    def test_transport_error_propagates(self):
        def handler(path, params):
            raise TransportError("unreachable")

        auth, _, _, keep_alive = self._auth(handler)
        with self.assertRaises(TransportError):
            auth.login()
        keep_alive.start.assert_not_called()

    def test_non_200_login_answer_is_protocol_error(self):
        auth, _, _, _ = self._auth(scripted(HttpResponse(500, "Internal Server Error", b"")))
        with self.assertRaises(ProtocolError):
            auth.login()

    def test_missing_challenge_is_protocol_error(self):
        auth, _, _, _ = self._auth(scripted(
            HttpResponse(200, "OK", b"<SessionInfo><SID>0000000000000000</SID></SessionInfo>")
        ))
        with self.assertRaises(ProtocolError):
            auth.login()

    def test_malformed_challenge_is_format_error(self):
        auth, transport, _, _ = self._auth(scripted(session_info(INVALID_SID, "2$1$5A5A$1")))
        with self.assertRaises(FormatError):
            auth.login()
        self.assertEqual(len(transport.calls), 1)

    def test_login_touches_activity(self):
        auth, _, state, _ = self._auth(FakeGateway(password="äbc"))
        before = state.last_activity
        auth.login()
        self.assertGreaterEqual(state.last_activity, before)


class TestRenew(unittest.TestCase):
    def test_reuses_concurrent_renewal(self):
        transport = FakeTransport(FakeGateway())
        state = SessionState()
        state.set(OTHER_SID)
        auth = Authenticator(transport, state, Credential("", "secret"))

        self.assertTrue(auth.renew("0123456701234567"))
        self.assertEqual(transport.calls, [])

    def test_logs_in_when_stale_sid_is_current(self):
        transport = FakeTransport(FakeGateway())
        state = SessionState()
        state.set(OTHER_SID)
        auth = Authenticator(transport, state, Credential("", "secret"))

        self.assertTrue(auth.renew(OTHER_SID))
        self.assertEqual(state.current(), VALID_SID)
        self.assertEqual(transport.challenge_requests(), 1)

    def test_logs_in_when_no_session(self):
        transport = FakeTransport(FakeGateway())
        auth = Authenticator(transport, SessionState(), Credential("", "secret"))
        self.assertTrue(auth.renew(INVALID_SID))
        self.assertEqual(transport.challenge_requests(), 1)


class TestLogoff(unittest.TestCase):
    def test_successful_logoff_stops_keep_alive_and_resets(self):
        transport = FakeTransport(scripted(session_info(INVALID_SID)))
        state = SessionState()
        state.set(VALID_SID)
        keep_alive = MagicMock()
        auth = Authenticator(transport, state, Credential(), keep_alive)

        self.assertTrue(auth.logoff())

        self.assertEqual(transport.calls, [
            (LOGIN_PATH, {"version": "2", "logout": "1", "sid": VALID_SID}),
        ])
        keep_alive.cancel.assert_called_once()
        keep_alive.stop.assert_called_once()
        self.assertEqual(state.current(), INVALID_SID)

    def test_refused_logoff_keeps_state(self):
        transport = FakeTransport(scripted(session_info(VALID_SID)))
        state = SessionState()
        state.set(VALID_SID)
        keep_alive = MagicMock()
        auth = Authenticator(transport, state, Credential(), keep_alive)

        self.assertFalse(auth.logoff())

        self.assertEqual(state.current(), VALID_SID)
        keep_alive.stop.assert_not_called()

    def test_no_renewal_after_logoff_until_next_login(self):
        gateway = FakeGateway()
        transport = FakeTransport(gateway)
        state = SessionState()
        auth = Authenticator(transport, state, Credential("", "secret"), MagicMock())
        self.assertTrue(auth.login())
        self.assertTrue(auth.logoff())
        calls = len(transport.calls)

        self.assertFalse(auth.renew(INVALID_SID))
        self.assertEqual(len(transport.calls), calls)

        self.assertTrue(auth.login())
        self.assertEqual(state.current(), VALID_SID)


if __name__ == "__main__":
    unittest.main()
