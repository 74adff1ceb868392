"""
Configuration module for the GitHub owners interceptor service.

Centralizes all configuration with environment variable support
and validation.
"""

import os
from pathlib import Path
from typing import Dict, Optional

from github_owners import FileSecretStore, KubernetesSecretStore, SecretStore
from github_owners.github import GITHUB_API_URL as DEFAULT_GITHUB_API_URL

# ============================================================
# Environment Configuration
# ============================================================

# Service
PORT = int(os.getenv("PORT", "8082"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE", "")

# GitHub
GITHUB_API_URL = os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL)
GITHUB_REQUEST_TIMEOUT = float(os.getenv("GITHUB_REQUEST_TIMEOUT", "10"))

# Whole-evaluation deadline (seconds)
EVALUATION_TIMEOUT = float(os.getenv("EVALUATION_TIMEOUT", "20"))


# ============================================================
# Secret Backend Configuration
# ============================================================

SECRET_BACKEND = os.getenv("SECRET_BACKEND", "kubernetes")  # kubernetes|file
SECRETS_DIR = os.getenv("SECRETS_DIR", "secrets")

KUBERNETES_SERVICE_HOST = os.getenv("KUBERNETES_SERVICE_HOST", "")
KUBERNETES_SERVICE_PORT = os.getenv("KUBERNETES_SERVICE_PORT", "443")
SERVICE_ACCOUNT_TOKEN_PATH = os.getenv(
    "SERVICE_ACCOUNT_TOKEN_PATH", "/var/run/secrets/kubernetes.io/serviceaccount/token"
)
SERVICE_ACCOUNT_CA_PATH = os.getenv(
    "SERVICE_ACCOUNT_CA_PATH", "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"
)
KUBERNETES_REQUEST_TIMEOUT = float(os.getenv("KUBERNETES_REQUEST_TIMEOUT", "5"))


def kubernetes_api_url() -> str:
    """In-cluster API server URL, or empty when not running in a cluster."""
    if not KUBERNETES_SERVICE_HOST:
        return ""
    return f"https://{KUBERNETES_SERVICE_HOST}:{KUBERNETES_SERVICE_PORT}"


def build_secret_store() -> Optional[SecretStore]:
    """
    Secret store for the configured backend.

    Returns None when the Kubernetes backend is selected outside a cluster;
    requests without a secretRef still work anonymously, requests with one
    fail with a secret error.
    """
    if SECRET_BACKEND == "file":
        return FileSecretStore(SECRETS_DIR)
    api_url = kubernetes_api_url()
    if not api_url:
        return None
    return KubernetesSecretStore(
        api_url=api_url,
        token_path=SERVICE_ACCOUNT_TOKEN_PATH,
        ca_path=SERVICE_ACCOUNT_CA_PATH,
        timeout=KUBERNETES_REQUEST_TIMEOUT,
    )


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate the configured backends and limits.
    Returns dict of check -> ok.
    """
    checks = {
        "secret_backend": SECRET_BACKEND in ("kubernetes", "file"),
        "github_request_timeout": GITHUB_REQUEST_TIMEOUT > 0,
        "evaluation_timeout": EVALUATION_TIMEOUT > 0,
    }

    if SECRET_BACKEND == "file":
        checks["secrets_dir"] = Path(SECRETS_DIR).is_dir()
    else:
        checks["service_account_token"] = Path(SERVICE_ACCOUNT_TOKEN_PATH).exists()

    return checks

