"""Link encoding and resolution.

Two strategies turn an action into the token after ``/a/`` in a link:

- inline: the whole action as Base64url JSON; no server state needed
- store: ``{action_type}-{short_id}``; the action lives in an ``ActionStore``
"""

import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlsplit

from etherblink.config import LinkStrategy
from etherblink.core.errors import LinkResolutionError, MalformedLinkError
from etherblink.core.models import ActionDescription, ActionRecord, parse_action
from etherblink.observability.metrics import LINKS_CREATED, LINKS_RESOLVED

from .store import ActionStore

logger = logging.getLogger(__name__)

LINK_PATH_PREFIX = "/a/"


def build_link_url(base_url: str, token: str) -> str:
    """Compose the shareable ``{base}/a/{token}`` URL."""
    return f"{base_url.rstrip('/')}{LINK_PATH_PREFIX}{token}"


def extract_token(link: str) -> str:
    """Return the token from a full link, or the input if it is already a token.

    Raises
    ------
    MalformedLinkError
        If the input is empty or a URL without an ``/a/`` segment.
    """
    link = link.strip()
    if "://" in link or link.startswith("/"):
        path = urlsplit(link).path
        marker = path.find(LINK_PATH_PREFIX)
        if marker == -1:
            raise MalformedLinkError("Link has no action segment")
        link = unquote(path[marker + len(LINK_PATH_PREFIX) :]).strip("/")
    if not link:
        raise MalformedLinkError("Empty action token")
    return link


def b64url_encode(data: bytes) -> str:
    """Base64url without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(token: str) -> bytes:
    """Decode Base64url, tolerating missing padding and the standard alphabet.

    Raises
    ------
    MalformedLinkError
        If the token is not valid Base64.
    """
    normalized = token.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedLinkError("Token is not valid Base64") from e


class LinkCodec(ABC):
    """Turns actions into link tokens and back."""

    strategy: LinkStrategy

    @abstractmethod
    async def _encode(self, action: ActionDescription) -> str: ...

    @abstractmethod
    async def _resolve(self, token: str) -> ActionDescription: ...

    async def encode(self, action: ActionDescription) -> str:
        """Produce the link token for an action.

        Raises
        ------
        StoreWriteError
            If a store-backed write fails; no token is produced.
        """
        token = await self._encode(action)
        self._count_created(action)
        return token

    def _count_created(self, action: ActionDescription) -> None:
        LINKS_CREATED.labels(action_type=action.action_type, strategy=self.strategy.value).inc()

    async def resolve(self, token: str) -> ActionDescription:
        """Recover the action a token stands for.

        Raises
        ------
        LinkResolutionError
            ``MalformedLinkError``, ``UnknownActionTypeError`` or
            ``ActionNotFoundError``.
        """
        try:
            action = await self._resolve(token)
        except LinkResolutionError as e:
            LINKS_RESOLVED.labels(strategy=self.strategy.value, status=type(e).__name__).inc()
            logger.info(
                "Link resolution failed",
                extra={"strategy": self.strategy.value, "error": str(e)},
            )
            raise
        LINKS_RESOLVED.labels(strategy=self.strategy.value, status="ok").inc()
        return action

    async def close(self) -> None:
        return None


class InlineLinkCodec(LinkCodec):
    """Embeds the full action as Base64url JSON."""

    strategy = LinkStrategy.INLINE

    async def _encode(self, action: ActionDescription) -> str:
        return self.encode_sync(action)

    async def _resolve(self, token: str) -> ActionDescription:
        return self.decode_sync(token)

    @staticmethod
    def encode_sync(action: ActionDescription) -> str:
        payload = json.dumps(action.model_dump(exclude_none=True), separators=(",", ":"))
        return b64url_encode(payload.encode("utf-8"))

    @staticmethod
    def decode_sync(token: str) -> ActionDescription:
        """Decode an inline token without I/O.

        Raises
        ------
        MalformedLinkError
            On Base64, UTF-8, JSON or field errors.
        UnknownActionTypeError
            If the payload's type is not supported.
        """
        raw = b64url_decode(token)
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedLinkError("Token does not contain valid JSON") from e
        return parse_action(data)


class StoreLinkCodec(LinkCodec):
    """Stores the action and links to it by ``{action_type}-{short_id}``.

    Parameters
    ----------
    store : ActionStore
        Where actions are persisted and looked up.
    """

    strategy = LinkStrategy.STORE

    def __init__(self, store: ActionStore):
        self._store = store

    @property
    def store(self) -> ActionStore:
        return self._store

    @staticmethod
    def token_for(record: ActionRecord) -> str:
        return f"{record.action.action_type}-{record.short_id}"

    async def _encode(self, action: ActionDescription) -> str:
        record = await self._store.create(action)
        return self.token_for(record)

    async def encode_record(self, action: ActionDescription) -> tuple[str, ActionRecord]:
        """Store an action and return its token together with the new record.

        Raises
        ------
        StoreWriteError
            If the store rejects the write.
        """
        record = await self._store.create(action)
        self._count_created(action)
        return self.token_for(record), record

    @staticmethod
    def split_token(token: str) -> tuple[str, str]:
        """Split a token into ``(action_type_hint, short_id)``.

        Raises
        ------
        MalformedLinkError
            If either part is empty.
        """
        action_type, _, short_id = token.partition("-")
        if not action_type or not short_id:
            raise MalformedLinkError("Token must look like '{action_type}-{short_id}'")
        return action_type, short_id

    async def _resolve(self, token: str) -> ActionDescription:
        hint, short_id = self.split_token(token)
        record = await self._store.get(short_id)
        # The stored row's type is authoritative
        if record.action.action_type != hint:
            logger.warning(
                "Link type hint disagrees with stored action",
                extra={
                    "short_id": short_id,
                    "hint": hint,
                    "stored": record.action.action_type,
                },
            )
        return record.action

    async def close(self) -> None:
        await self._store.close()


def create_codec(strategy: LinkStrategy, store: ActionStore | None = None) -> LinkCodec:
    """Build the codec for a configured strategy.

    Raises
    ------
    ValueError
        If the store strategy is requested without a store.
    """
    if strategy == LinkStrategy.INLINE:
        return InlineLinkCodec()
    if store is None:
        raise ValueError("Store-backed links require an action store")
    return StoreLinkCodec(store)
