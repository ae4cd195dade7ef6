"""Builder for Global Accelerator provider instances."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config

from ..constants import DEFAULT_API_REGION
from ..services.aws.client import GlobalAcceleratorProvider
from ..utils.secrets import get_secret_value

# auth field -> default key inside the referenced Secret
_SECRET_REFS = {
    "accessKeySecretRef": "access-key",
    "secretKeySecretRef": "secret-key",
    "sessionTokenSecretRef": "session-token",
}


def _core_api() -> client.CoreV1Api:
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
    return client.CoreV1Api()


def _read_credentials(auth: dict[str, Any], namespace: str) -> dict[str, str | None]:
    """Resolve every secret reference in ``auth`` to its value."""
    for required in ("accessKeySecretRef", "secretKeySecretRef"):
        if not (auth.get(required) or {}).get("name"):
            raise ValueError("accessKeySecretRef and secretKeySecretRef are required")

    api = _core_api()
    values: dict[str, str | None] = {}
    for field, default_key in _SECRET_REFS.items():
        ref = auth.get(field) or {}
        if not ref.get("name"):
            values[field] = None
            continue
        values[field] = get_secret_value(api, namespace, ref["name"], ref.get("key", default_key))
    return values


def create_provider_from_spec(
    spec: dict[str, Any],
    meta: dict[str, Any],
) -> GlobalAcceleratorProvider:
    """Create a Global Accelerator provider instance from CRD spec.

    Without an ``auth`` block the provider falls back to the default AWS
    credential chain (e.g. IRSA on EKS).

    Raises:
        ValueError: If the provider type is unsupported or credentials cannot be read
    """
    provider_type = spec.get("type", "aws")
    if provider_type != "aws":
        raise ValueError(f"Unsupported provider type: {provider_type}")

    credentials: dict[str, str | None] = dict.fromkeys(_SECRET_REFS)
    auth = spec.get("auth")
    if auth:
        credentials = _read_credentials(auth, meta.get("namespace", "default"))

    return GlobalAcceleratorProvider(
        access_key=credentials["accessKeySecretRef"],
        secret_key=credentials["secretKeySecretRef"],
        session_token=credentials["sessionTokenSecretRef"],
        region=spec.get("region", DEFAULT_API_REGION),
        endpoint=spec.get("endpoint"),
        max_attempts=int(spec.get("maxAttempts", 5)),
    )
