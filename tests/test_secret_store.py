"""Secret reference parsing and store backends."""

import base64
import tempfile
import unittest
from pathlib import Path

import requests

from github_owners import (
    FileSecretStore,
    KubernetesSecretStore,
    ParamsError,
    SecretError,
    SecretReference,
    parse_trigger_namespace,
    resolve_secret,
)


class FakeResponse:

    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self.invalid_json = invalid_json

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.opened = 0
        self.closed = 0

    def __enter__(self):
        self.opened += 1
        return self

    def __exit__(self, *exc_info):
        self.closed += 1

    def get(self, url, headers=None, timeout=None, verify=None):
        self.calls.append((url, headers))
        if self.error is not None:
            raise self.error
        return self.response


class StaticStore:

    def __init__(self, value):
        self.value = value
        self.calls = []

    def get(self, namespace, name, key):
        self.calls.append((namespace, name, key))
        return self.value


class TestSecretReference(unittest.TestCase):

    def test_tekton_names(self):
        ref = SecretReference.from_dict({"secretName": "github", "secretKey": "token", "namespace": "ci"})
        self.assertEqual(ref, SecretReference("github", "token", "ci"))

    def test_name_alias(self):
        ref = SecretReference.from_dict({"name": "github", "secretKey": "token"})
        self.assertEqual(ref.secret_name, "github")
        self.assertIsNone(ref.namespace)

    def test_wrong_types(self):
        with self.assertRaises(ParamsError):
            SecretReference.from_dict(["github"])
        with self.assertRaises(ParamsError):
            SecretReference.from_dict({"secretName": 1, "secretKey": "token"})


class TestTriggerNamespace(unittest.TestCase):

    def test_parse(self):
        self.assertEqual(parse_trigger_namespace("namespaces/ci/triggers/pr"), "ci")
        self.assertIsNone(parse_trigger_namespace("ci/pr"))
        self.assertIsNone(parse_trigger_namespace(""))
        self.assertIsNone(parse_trigger_namespace(None))


class TestResolveSecret(unittest.TestCase):

    def test_no_reference_is_anonymous(self):
        self.assertEqual(resolve_secret(None, None, None), "")

    def test_strips_value(self):
        store = StaticStore("  tok\n")
        ref = SecretReference("github", "token")
        self.assertEqual(resolve_secret(store, ref, "namespaces/ci/triggers/pr"), "tok")
        self.assertEqual(store.calls, [("ci", "github", "token")])

    def test_reference_namespace_wins(self):
        store = StaticStore("tok")
        resolve_secret(store, SecretReference("github", "token", "other"), "namespaces/ci/triggers/pr")
        self.assertEqual(store.calls[0][0], "other")

    def test_errors(self):
        store = StaticStore("tok")
        with self.assertRaises(SecretError):
            resolve_secret(store, SecretReference("github", ""), "namespaces/ci/triggers/pr")
        with self.assertRaises(SecretError):
            resolve_secret(store, SecretReference("", "token"), "namespaces/ci/triggers/pr")
        with self.assertRaises(SecretError):
            resolve_secret(store, SecretReference("github", "token"), "bogus")
        with self.assertRaises(SecretError):
            resolve_secret(None, SecretReference("github", "token"), "namespaces/ci/triggers/pr")


class TestFileSecretStore(unittest.TestCase):

    def test_read_and_missing(self):
        with tempfile.TemporaryDirectory() as root:
            Path(root, "ci", "github").mkdir(parents=True)
            Path(root, "ci", "github", "token").write_text("abc", encoding="utf-8")
            store = FileSecretStore(root)
            self.assertEqual(store.get("ci", "github", "token"), "abc")
            with self.assertRaises(SecretError):
                store.get("ci", "github", "other")


class TestKubernetesSecretStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.token_path = Path(self.tmp.name, "token")
        self.token_path.write_text("sa-token\n", encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def store(self, session):
        return KubernetesSecretStore(
            "https://10.0.0.1:443", str(self.token_path), session_factory=lambda: session)

    def test_reads_and_decodes(self):
        encoded = base64.b64encode(b"gh-token").decode("ascii")
        session = FakeSession(FakeResponse(payload={"data": {"token": encoded}}))
        self.assertEqual(self.store(session).get("ci", "github", "token"), "gh-token")
        url, headers = session.calls[0]
        self.assertEqual(url, "https://10.0.0.1:443/api/v1/namespaces/ci/secrets/github")
        self.assertEqual(headers["Authorization"], "Bearer sa-token")

    def test_missing_key(self):
        session = FakeSession(FakeResponse(payload={"data": {}}))
        with self.assertRaises(SecretError):
            self.store(session).get("ci", "github", "token")

    def test_not_found_and_forbidden(self):
        for status in (404, 403):
            with self.subTest(status=status):
                with self.assertRaises(SecretError):
                    self.store(FakeSession(FakeResponse(status, {}))).get("ci", "github", "token")

    def test_transport_error(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        with self.assertRaises(SecretError):
            self.store(session).get("ci", "github", "token")


    def test_session_per_call(self):
        encoded = base64.b64encode(b"gh-token").decode("ascii")
        session = FakeSession(FakeResponse(payload={"data": {"token": encoded}}))
        store = self.store(session)
        store.get("ci", "github", "token")
        store.get("ci", "github", "token")
        self.assertEqual(session.opened, 2)
        self.assertEqual(session.closed, 2)

    def test_non_json_response(self):
        session = FakeSession(FakeResponse(200, invalid_json=True))
        with self.assertRaises(SecretError):
            self.store(session).get("ci", "github", "token")

    def test_unexpected_document_shapes(self):
        for payload in ("hello", ["token"], {"data": "token"}, {"data": {"token": 5}}):
            with self.subTest(payload=payload):
                with self.assertRaises(SecretError):
                    self.store(FakeSession(FakeResponse(payload=payload))).get("ci", "github", "token")


if __name__ == "__main__":
    unittest.main(verbosity=2)
