"""
Secret resolution for the GitHub API token.

Provides secret stores for reading the token referenced by a Trigger's
``secretRef``, with support for the Kubernetes API and mounted files.
No reference means anonymous GitHub access; a reference that cannot be
resolved is always an error.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import requests

from .errors import ParamsError, SecretError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretReference:
    """Points at one key of one Kubernetes secret."""
    secret_name: str
    secret_key: str
    namespace: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "SecretReference":
        """
        Parse a ``secretRef`` object.

        Accepts the Tekton field names (``secretName``, ``secretKey``) and
        ``name`` as an alias for ``secretName``.

        Raises:
            ParamsError: if the object or one of its fields has the wrong type
        """
        if not isinstance(raw, dict):
            raise ParamsError("secretRef must be an object")
        values = {}
        for field_name, keys in (
            ("secret_name", ("secretName", "name")),
            ("secret_key", ("secretKey",)),
            ("namespace", ("namespace",)),
        ):
            value = next((raw[k] for k in keys if raw.get(k) is not None), None)
            if value is not None and not isinstance(value, str):
                raise ParamsError(f"secretRef.{keys[0]} must be a string")
            values[field_name] = value
        return cls(
            secret_name=values["secret_name"] or "",
            secret_key=values["secret_key"] or "",
            namespace=values["namespace"] or None,
        )


def parse_trigger_namespace(trigger_id: Optional[str]) -> Optional[str]:
    """
    Namespace from a trigger id of the form ``namespaces/<ns>/triggers/<name>``.

    Returns None when the id does not have four segments.
    """
    if not trigger_id:
        return None
    parts = trigger_id.split("/")
    if len(parts) != 4:
        return None
    return parts[1] or None


class SecretStore(ABC):
    """Abstract interface for reading one key of a namespaced secret."""

    @abstractmethod
    def get(self, namespace: str, name: str, key: str) -> str:
        """
        Return the secret value.

        Raises:
            SecretError: if the secret or key cannot be read
        """
        pass


class FileSecretStore(SecretStore):
    """
    Reads secrets mounted as files under ``<root>/<namespace>/<name>/<key>``.

    Suitable for local development and for deployments that project secrets
    into the pod filesystem.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def get(self, namespace: str, name: str, key: str) -> str:
        path = self.root / namespace / name / key
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SecretError(f"secret {namespace}/{name} has no key {key}") from e
        except OSError as e:
            raise SecretError(f"cannot read secret {namespace}/{name}: {e}") from e


class KubernetesSecretStore(SecretStore):
    """
    Reads secrets from the Kubernetes API using the pod service account.

    Every call opens its own session and performs one GET; nothing is shared
    or cached between requests.
    """

    def __init__(
        self,
        api_url: str,
        token_path: str,
        ca_path: Optional[str] = None,
        timeout: float = 5.0,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.api_url = api_url.rstrip("/")
        self.token_path = token_path
        self.ca_path = ca_path
        self.timeout = timeout
        self._session_factory = session_factory

    def _service_account_token(self) -> str:
        try:
            return Path(self.token_path).read_text(encoding="utf-8").strip()
        except OSError as e:
            raise SecretError(f"cannot read service account token: {e}") from e

    def get(self, namespace: str, name: str, key: str) -> str:
        url = f"{self.api_url}/api/v1/namespaces/{namespace}/secrets/{name}"
        headers = {
            "Authorization": f"Bearer {self._service_account_token()}",
            "Accept": "application/json",
        }
        verify = self.ca_path if self.ca_path and Path(self.ca_path).exists() else True
        try:
            with self._session_factory() as session:
                response = session.get(url, headers=headers, timeout=self.timeout, verify=verify)
        except requests.RequestException as e:
            raise SecretError(f"error getting secret {namespace}/{name}: {e}") from e

        if response.status_code == 404:
            raise SecretError(f"secret {namespace}/{name} not found")
        if response.status_code >= 400:
            raise SecretError(f"error getting secret {namespace}/{name}: HTTP {response.status_code}")

        try:
            document = response.json()
        except ValueError as e:
            raise SecretError(f"error getting secret {namespace}/{name}: response is not JSON") from e
        data = document.get("data") if isinstance(document, dict) else None
        if not isinstance(data, dict):
            raise SecretError(f"secret {namespace}/{name} has no data")
        if not isinstance(data.get(key), str):
            raise SecretError(f"secret {namespace}/{name} has no key {key}")
        try:
            return base64.b64decode(data[key], validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise SecretError(f"secret {namespace}/{name} key {key} is not valid base64 text") from e


def resolve_secret(store: Optional[SecretStore], ref: Optional[SecretReference], trigger_id: Optional[str]) -> str:
    """
    Resolve the GitHub token for a request.

    Returns:
        The token, or an empty string when no reference is configured

    Raises:
        SecretError: if a configured reference cannot be resolved
    """
    if ref is None:
        return ""
    if not ref.secret_key:
        raise SecretError("github interceptor secretRef.secretKey is empty")
    if not ref.secret_name:
        raise SecretError("github interceptor secretRef.secretName is empty")

    namespace = ref.namespace or parse_trigger_namespace(trigger_id)
    if not namespace:
        raise SecretError(f"cannot determine secret namespace from trigger id {trigger_id!r}")
    if store is None:
        raise SecretError("a secretRef is configured but no secret store is available")

    logger.debug("Resolving secret %s/%s key %s", namespace, ref.secret_name, ref.secret_key)
    return store.get(namespace, ref.secret_name, ref.secret_key).strip()
