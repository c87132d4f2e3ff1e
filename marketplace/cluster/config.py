"""Configuration for the Kubernetes API client.

Inside a pod the client discovers the API server from
``KUBERNETES_SERVICE_HOST``/``KUBERNETES_SERVICE_PORT`` and authenticates with
the mounted service-account token. Outside a cluster, point it at an API
server explicitly:

>>> import os
>>> os.environ["MARKETPLACE_KUBE_API_SERVER"] = "https://127.0.0.1:6443"
>>> os.environ["MARKETPLACE_KUBE_TOKEN"] = "dev-token"
>>> ClusterConfig.from_env().api_server
'https://127.0.0.1:6443'

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from .errors import ClusterConfigError

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")


@dc.dataclass(frozen=True, slots=True)
class ClusterConfig:
    """Connection settings for :class:`KubernetesClusterClient`.

    Attributes
    ----------
    api_server
        Base URL of the Kubernetes API server.
    token
        Bearer token; ``None`` sends unauthenticated requests.
    ca_path
        CA bundle used to verify the API server certificate. ``None`` uses the
        system trust store.
    timeout_s
        Per-request transport timeout in seconds.

    """

    api_server: str
    token: str | None = None
    ca_path: Path | None = None
    timeout_s: float = 20.0
    user_agent: str = "marketplace-registry/0.1"

    @staticmethod
    def _parse_timeout(raw: str, default: float) -> float:
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            raise ClusterConfigError.invalid_timeout(raw) from exc
        if value <= 0:
            raise ClusterConfigError.invalid_timeout(raw)
        return value

    @staticmethod
    def _api_server_from_env() -> str:
        explicit = os.environ.get("MARKETPLACE_KUBE_API_SERVER", "").strip()
        if explicit:
            return explicit.rstrip("/")
        host = os.environ.get("KUBERNETES_SERVICE_HOST", "").strip()
        if not host:
            raise ClusterConfigError.missing_api_server()
        port = os.environ.get("KUBERNETES_SERVICE_PORT", "443").strip() or "443"
        if ":" in host:
            host = f"[{host}]"
        return f"https://{host}:{port}"

    @staticmethod
    def _token_from_env(account_dir: Path) -> str | None:
        explicit = os.environ.get("MARKETPLACE_KUBE_TOKEN", "").strip()
        if explicit:
            return explicit
        token_path = account_dir / "token"
        if not token_path.exists():
            return None
        try:
            return token_path.read_text(encoding="utf-8").strip() or None
        except OSError as exc:
            raise ClusterConfigError.unreadable_token(str(token_path), str(exc)) from exc

    @classmethod
    def from_env(cls, account_dir: Path = SERVICE_ACCOUNT_DIR) -> ClusterConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``MARKETPLACE_KUBE_API_SERVER``: API server URL. Defaults to the
          in-cluster service address.
        - ``MARKETPLACE_KUBE_TOKEN``: Bearer token. Defaults to the mounted
          service-account token when present.
        - ``MARKETPLACE_KUBE_CA``: CA bundle path. Defaults to the mounted
          service-account CA when present.
        - ``MARKETPLACE_KUBE_TIMEOUT``: Request timeout in seconds.

        Raises
        ------
        ClusterConfigError
            If no API server can be determined, the token file is unreadable,
            or the timeout is invalid.

        """
        raw_ca = os.environ.get("MARKETPLACE_KUBE_CA", "").strip()
        ca_path: Path | None = Path(raw_ca) if raw_ca else None
        if ca_path is None and (account_dir / "ca.crt").exists():
            ca_path = account_dir / "ca.crt"

        return cls(
            api_server=cls._api_server_from_env(),
            token=cls._token_from_env(account_dir),
            ca_path=ca_path,
            timeout_s=cls._parse_timeout(
                os.environ.get("MARKETPLACE_KUBE_TIMEOUT", ""), 20.0
            ),
        )
