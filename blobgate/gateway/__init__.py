"""Object key and access policy layer.

``ObjectGateway`` (in ``blobgate.gateway.service``) wires these modules for
one deployment.
"""

from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.keys import KeyDeriver, KeyPolicy, derive_key, sanitize_filename
from blobgate.gateway.models import (
    BatchItemResult,
    BatchUploadReport,
    IncomingFile,
    ListedObject,
    ObjectInfo,
    UploadOutcome,
    UploadResult,
)
from blobgate.gateway.probe import ExistenceProbe, Presence, probe
from blobgate.gateway.signing import (
    READ_URL_LIFETIME,
    WRITE_URL_LIFETIME,
    SignedUrl,
    UrlIntent,
    UrlSigner,
)

__all__ = [
    "ErrorKind",
    "GatewayError",
    "KeyPolicy",
    "KeyDeriver",
    "derive_key",
    "sanitize_filename",
    "Presence",
    "ExistenceProbe",
    "probe",
    "UrlIntent",
    "UrlSigner",
    "SignedUrl",
    "READ_URL_LIFETIME",
    "WRITE_URL_LIFETIME",
    "IncomingFile",
    "UploadOutcome",
    "UploadResult",
    "BatchItemResult",
    "BatchUploadReport",
    "ListedObject",
    "ObjectInfo",
]
