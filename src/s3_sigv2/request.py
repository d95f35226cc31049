import enum
import logging
import re
from dataclasses import dataclass
from typing import IO, Any

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .auth import AWSSignatureV2
from .config import Config
from .urlparsing import get_request_url

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "POST"

# RFC 7230 token
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class BodyKind(enum.Enum):
    NONE = "none"
    STREAM = "stream"
    SEEKABLE = "seekable"


@dataclass(frozen=True)
class Operation:
    server_address: str
    method: str
    path: str

    def request_url(self, config: Config) -> str:
        return get_request_url(self.server_address, self.path, config.virtual_style)


class SigningRequest:
    def __init__(
        self,
        method: str,
        url: URL,
        config: Config,
        body: Any = None,
        expires: int = 0,
        body_kind: BodyKind = BodyKind.SEEKABLE,
    ):
        self.method = method
        self.url = url
        self.config = config
        self.headers: CIMultiDict[str] = CIMultiDict()
        self.body = body
        self.expires = expires
        self.body_kind = body_kind

        self._auth = AWSSignatureV2(
            config.access_key,
            config.secret_key,
            region=config.region,
            virtual_style=config.virtual_style,
            region_hosts=config.region_hosts,
        )

    def set(self, key: str, value: str) -> None:
        self.headers[key] = value

    def add(self, key: str, value: str) -> None:
        self.headers.add(key, value)

    def get(self, key: str) -> str:
        return self.headers.get(key, "")

    def string_to_sign(self) -> str:
        return self._auth.string_to_sign(self.method, self.url, self.headers)

    def sign(self) -> None:
        self._auth.sign_request(self.method, self.url, self.headers)

    def presign(self) -> str:
        presigned_url = self._auth.create_presigned_url(
            self.method, self.url, self.headers, self.expires
        )
        self.url = URL(presigned_url, encoded=True)
        return presigned_url

    def post_presign_signature(self, policy_base64: str) -> str:
        return self._auth.post_presign_signature(policy_base64)

    async def send(
        self, session: aiohttp.ClientSession | None = None
    ) -> aiohttp.ClientResponse:
        """Signs the request if credentials are configured and dispatches it.

        Requests built by :func:`new_unauthenticated_request` are never signed.

        Redirects are returned to the caller instead of being followed.
        """
        if (
            self.body_kind is not BodyKind.STREAM
            and self.config.access_key
            and self.config.secret_key
        ):
            self.sign()

        session = session or self.config.transport
        if session is not None:
            return await self._dispatch(session)

        async with aiohttp.ClientSession() as own_session:
            response = await self._dispatch(own_session)
            await response.read()
            return response

    async def _dispatch(
        self, session: aiohttp.ClientSession
    ) -> aiohttp.ClientResponse:
        logger.debug("Sending %s %s", self.method, self.url)
        skip_auto_headers = () if "Content-Type" in self.headers else ("Content-Type",)
        return await session.request(
            self.method,
            self.url,
            headers=self.headers,
            data=self.body,
            allow_redirects=False,
            skip_auto_headers=skip_auto_headers,
        )


def _build_request(
    op: Operation,
    config: Config,
    body_kind: BodyKind,
    body: Any = None,
    expires: int = 0,
) -> SigningRequest:
    method = op.method or DEFAULT_METHOD
    if not _METHOD_RE.match(method):
        raise ValueError(f"Invalid HTTP method: {method!r}")

    url = URL(op.request_url(config), encoded=True)
    if not url.absolute:
        raise ValueError(f"Request URL must be absolute: '{url}'")

    match body_kind:
        case BodyKind.NONE:
            body = None
        case BodyKind.SEEKABLE:
            if body is not None and not _is_seekable(body):
                raise TypeError("Signed request body must be seekable")

    request = SigningRequest(
        method, url, config, body=body, expires=expires, body_kind=body_kind
    )
    request.set("User-Agent", config.user_agent)
    if config.accept_type:
        request.set("Accept", config.accept_type)

    return request


def _is_seekable(body: Any) -> bool:
    seekable = getattr(body, "seekable", None)
    if seekable is not None:
        return seekable()
    return hasattr(body, "seek") and hasattr(body, "tell")


def new_presigned_request(
    op: Operation, config: Config, expires: int
) -> SigningRequest:
    return _build_request(op, config, BodyKind.NONE, expires=expires)


def new_unauthenticated_request(
    op: Operation, config: Config, body: Any = None
) -> SigningRequest:
    return _build_request(op, config, BodyKind.STREAM, body=body)


def new_request(
    op: Operation, config: Config, body: IO[bytes] | None = None
) -> SigningRequest:
    return _build_request(op, config, BodyKind.SEEKABLE, body=body)
