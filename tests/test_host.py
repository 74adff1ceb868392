"""Deadline and in-memory host tests."""

import unittest

from github_owners import (
    Deadline,
    DeadlineExceededError,
    HostError,
    InMemoryRepositoryHost,
    NotFoundError,
    TrustComment,
)


class FakeClock:

    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestDeadline(unittest.TestCase):

    def test_unbounded(self):
        deadline = Deadline()
        self.assertIsNone(deadline.remaining())
        self.assertFalse(deadline.expired())
        self.assertEqual(deadline.timeout(10.0), 10.0)
        deadline.check("anything")

    def test_caps_timeout(self):
        clock = FakeClock()
        deadline = Deadline(5, clock=clock)
        self.assertEqual(deadline.timeout(10.0), 5)
        clock.now += 4
        self.assertAlmostEqual(deadline.timeout(10.0), 1.0)
        self.assertEqual(deadline.timeout(0.5), 0.5)

    def test_expiry(self):
        clock = FakeClock()
        deadline = Deadline(2, clock=clock)
        clock.now += 3
        self.assertTrue(deadline.expired())
        self.assertEqual(deadline.remaining(), 0.0)
        with self.assertRaises(DeadlineExceededError):
            deadline.check("GET /orgs/acme/public_members")


class TestInMemoryRepositoryHost(unittest.TestCase):

    def setUp(self):
        self.host = InMemoryRepositoryHost(
            org_members={"acme": ["alice"]},
            collaborators={"acme/widgets": ["bob"]},
            files={("acme/widgets", "OWNERS"): "approvers: [carol]\n"},
            comments={("acme/widgets", 7): [TrustComment("carol", "/ok-to-test")]},
        )

    def test_lookups(self):
        self.assertEqual(self.host.list_org_public_members("acme"), {"alice"})
        self.assertEqual(self.host.list_org_public_members("nobody"), set())
        self.assertEqual(self.host.list_collaborators("acme", "widgets"), {"bob"})
        self.assertEqual(self.host.get_file_content("acme", "widgets", "OWNERS"), b"approvers: [carol]\n")
        self.assertEqual(len(self.host.list_pull_request_comments("acme", "widgets", 7)), 1)
        self.assertEqual(self.host.list_pull_request_comments("acme", "widgets", 8), [])

    def test_missing_file_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self.host.get_file_content("acme", "gadgets", "OWNERS")

    def test_unknown_repository_collaborators(self):
        with self.assertRaises(HostError) as cm:
            self.host.list_collaborators("acme", "gadgets")
        self.assertNotIsInstance(cm.exception, NotFoundError)

    def test_injected_failure_and_call_log(self):
        self.host.fail_on["list_org_public_members"] = HostError("connection reset")
        with self.assertRaises(HostError):
            self.host.list_org_public_members("acme")
        self.assertEqual(self.host.calls, [("list_org_public_members", "acme")])

    def test_expired_deadline_refuses_calls(self):
        clock = FakeClock()
        host = InMemoryRepositoryHost(deadline=Deadline(1, clock=clock))
        clock.now += 2
        with self.assertRaises(DeadlineExceededError):
            host.list_org_public_members("acme")
        self.assertEqual(host.calls, [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
