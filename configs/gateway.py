"""Gateway deployment profiles.

Each profile configures one deployment of the upload gateway. Select one with
``BLOBGATE_PROFILE`` (default: ``default``). Profiles may inherit from each
other with ``__inherits__``.

Fields (all optional, see ``blobgate.settings.GatewaySettings``):
    backend                  name of a backend in configs/blob_backends.py
    key_policy               "sanitized_dated" or "random_opaque"
    read_url_ttl_seconds     lifetime of signed read URLs
    write_url_ttl_seconds    lifetime of signed upload URLs
    write_url_method         "PUT", or "GET" for clients of the old upload links
    indeterminate_as_absent  report an unreachable store as "missing" (True)
                             instead of failing with STORE_UNAVAILABLE (False)
    max_upload_bytes         per-file upload limit
    cors_origins             allowed CORS origins
    service_name             reported by /uploads/health
"""

from __future__ import annotations

from blobgate.core.utils.env import env_str, load_env_file_if_present

load_env_file_if_present()

CONFIGURATION = {
    "default": {
        "backend": env_str("BLOBGATE_DEFAULT_BACKEND", "local"),
        "key_policy": "sanitized_dated",
        "read_url_ttl_seconds": 7 * 24 * 3600,
        "write_url_ttl_seconds": 24 * 3600,
        "write_url_method": "PUT",
        "indeterminate_as_absent": True,
        "max_upload_bytes": 100 * 1024 * 1024,
        "cors_origins": ["*"],
        "service_name": "Blob Upload Gateway",
    },
    # Random keys that don't reveal the uploaded file's name
    "opaque": {
        "__inherits__": "default",
        "key_policy": "random_opaque",
    },
    # Upload links signed with GET, as older clients expect
    "legacy": {
        "__inherits__": "default",
        "write_url_method": "GET",
    },
    # Fail with STORE_UNAVAILABLE when existence can't be determined
    "strict": {
        "__inherits__": "default",
        "indeterminate_as_absent": False,
    },
}
