import threading
import time
import unittest

from doctor_portal.models.access import AccessState
from doctor_portal.models.doctor import Operator
from doctor_portal.services.secure_access import SecureAccessMachine
from doctor_portal.services.session_timer import SessionTimer
from portal_fakes import FakeChannel, FakeStore

INTERVAL = 0.01


class TestSessionTimer(unittest.TestCase):
    def setUp(self):
        self.ticks = []
        self.expired = threading.Event()
        self.timer = SessionTimer(self.ticks.append, self.expired.set, interval=INTERVAL)

    def tearDown(self):
        self.timer.cancel()

    def test_ticks_down_then_expires_once(self):
        self.timer.start(3)
        self.assertTrue(self.expired.wait(2))
        self.assertEqual(self.ticks, [2, 1])
        self.assertFalse(self.timer.running)

    def test_cancel_stops_callbacks(self):
        timer = SessionTimer(self.ticks.append, self.expired.set, interval=0.2)
        timer.start(3)
        timer.cancel()
        time.sleep(0.5)
        self.assertEqual(self.ticks, [])
        self.assertFalse(self.expired.is_set())

    def test_cancel_is_idempotent_and_safe_after_expiry(self):
        self.timer.cancel()
        self.timer.start(1)
        self.assertTrue(self.expired.wait(2))
        self.timer.cancel()
        self.timer.cancel()
        self.assertFalse(self.timer.running)

    def test_restart_replaces_previous_countdown(self):
        timer = SessionTimer(self.ticks.append, self.expired.set, interval=0.2)
        timer.start(50)
        timer.start(2)
        self.assertTrue(self.expired.wait(2))
        timer.cancel()
        time.sleep(0.3)
        self.assertEqual(self.ticks, [1])

    def test_ttl_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.timer.start(0)


class TestMachineWithRealTimer(unittest.TestCase):
    def test_access_session_expires_on_its_own(self):
        store = FakeStore({"patients": {"P1": {"name": "Jane", "email": "j@x.com"}}})
        channel = FakeChannel()
        machine = SecureAccessMachine(
            store,
            channel,
            Operator(uid="doc-1", name="Dr. Grey", hospital="Acme"),
            timer_factory=lambda on_tick, on_expire: SessionTimer(on_tick, on_expire, interval=INTERVAL),
            ttl=3,
        )
        machine.search("email", "j@x.com")
        machine.send_otp()
        machine.verify(channel.last_code)

        deadline = time.monotonic() + 2
        while machine.state == AccessState.ACCESSING and time.monotonic() < deadline:
            view = machine.view()
            if view.state == AccessState.ACCESSING:
                self.assertGreater(view.ttl, 0)
            time.sleep(INTERVAL / 2)

        self.assertEqual(machine.state, AccessState.SEARCH)
        self.assertIsNone(machine.target)
        self.assertIsNone(machine.code)


if __name__ == '__main__':
    unittest.main()
