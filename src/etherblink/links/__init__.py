"""Action link encoding, resolution and storage."""

from .codec import (
    InlineLinkCodec,
    LinkCodec,
    StoreLinkCodec,
    build_link_url,
    create_codec,
    extract_token,
)
from .store import (
    ActionStore,
    LocalActionStore,
    RemoteActionStore,
    StoreHealthCheck,
    generate_short_id,
)

__all__ = [
    "ActionStore",
    "InlineLinkCodec",
    "LinkCodec",
    "LocalActionStore",
    "RemoteActionStore",
    "StoreHealthCheck",
    "StoreLinkCodec",
    "build_link_url",
    "create_codec",
    "extract_token",
    "generate_short_id",
]
