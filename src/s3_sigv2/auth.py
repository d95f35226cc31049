"""AWS Signature Version 2 authentication for S3.

Authorization = "AWS" + " " + AWSAccessKeyId + ":" + Signature
Signature = Base64(HMAC-SHA1(SecretAccessKey, UTF-8(StringToSign)))

StringToSign = HTTP-Verb + "\\n" +
    Content-MD5 + "\\n" +
    Content-Type + "\\n" +
    Date + "\\n" +
    CanonicalizedAmzHeaders +
    CanonicalizedResource
"""

import base64
import datetime as dt
import email.utils
import hashlib
import hmac
import logging
import urllib.parse
from collections.abc import Mapping

from multidict import CIMultiDict, MultiDict
from yarl import URL

from .config import REGION_HOSTS
from .exceptions import S3CredentialsError
from .urlparsing import encode_path

logger = logging.getLogger(__name__)

AMZ_HEADER_PREFIX = "x-amz"

# Sub-resources that are part of the canonicalized resource, must be sorted
RESOURCE_LIST: tuple[str, ...] = tuple(
    sorted(
        [
            "acl",
            "location",
            "logging",
            "notification",
            "partNumber",
            "policy",
            "requestPayment",
            "response-cache-control",
            "response-content-disposition",
            "response-content-encoding",
            "response-content-language",
            "response-content-type",
            "response-expires",
            "torrent",
            "uploadId",
            "uploads",
            "versionId",
            "versioning",
            "versions",
            "website",
        ]
    )
)


class AWSSignatureV2:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        virtual_style: bool = False,
        region_hosts: Mapping[str, str] = REGION_HOSTS,
    ):
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.virtual_style = virtual_style
        self.region_hosts = region_hosts

    def _hmac_sha1(self, data: str) -> str:
        digest = hmac.new(
            self.secret_key.encode("utf-8"), data.encode("utf-8"), hashlib.sha1
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def _now(self) -> dt.datetime:
        return dt.datetime.now(dt.UTC)

    def _ensure_date(self, headers: CIMultiDict, now: dt.datetime) -> None:
        if not headers.get("Date"):
            headers["Date"] = email.utils.format_datetime(now, usegmt=True)

    def _canonical_amz_headers(self, headers: CIMultiDict) -> str:
        amz_headers: dict[str, list[str]] = {}
        for name, value in headers.items():
            lower_name = name.lower()
            if lower_name.startswith(AMZ_HEADER_PREFIX):
                amz_headers.setdefault(lower_name, []).append(value)

        # Multi-line values are written as is, folded whitespace is not
        # replaced by a single space as RFC 2616 section 4.2 would allow.
        return "".join(
            f"{name}:{','.join(amz_headers[name])}\n" for name in sorted(amz_headers)
        )

    def _canonical_path(self, url: URL) -> str:
        if not self.virtual_style:
            return encode_path(url.path)

        host_suffix = self.region_hosts.get(self.region)
        host = url.host or ""
        if host_suffix is None or not host.endswith("." + host_suffix):
            logger.debug(
                "Host %r does not match region %r, using the request path",
                host,
                self.region,
            )
            return encode_path(url.path)

        bucket = host.removesuffix("." + host_suffix)
        return encode_path("/" + bucket + url.path)

    def _canonical_resource(self, url: URL) -> str:
        resource = self._canonical_path(url)
        if not url.raw_query_string:
            return resource

        query = url.query
        n = 0
        for name in RESOURCE_LIST:
            values = query.getall(name, [])
            if not values:
                continue
            n += 1
            resource += "?" if n == 1 else "&"
            resource += name
            if values[0]:
                resource += "=" + urllib.parse.quote_plus(values[0], safe="")

        return resource

    def string_to_sign(self, method: str, url: URL, headers: CIMultiDict) -> str:
        return "\n".join(
            [
                method,
                headers.get("Content-MD5", ""),
                headers.get("Content-Type", ""),
                headers.get("Date", ""),
                self._canonical_amz_headers(headers) + self._canonical_resource(url),
            ]
        )

    def sign_request(self, method: str, url: URL, headers: CIMultiDict) -> None:
        """Sets the ``Date`` (if missing) and ``Authorization`` headers in place."""
        self._ensure_date(headers, self._now())

        string_to_sign = self.string_to_sign(method, url, headers)
        logger.debug("StringToSign:\n%s", string_to_sign)

        signature = self._hmac_sha1(string_to_sign)
        headers["Authorization"] = f"AWS {self.access_key}:{signature}"

    def create_presigned_url(
        self,
        method: str,
        url: URL,
        headers: CIMultiDict,
        expires_in: int,
    ) -> str:
        """Returns ``url`` with ``AWSAccessKeyId``, ``Expires`` and ``Signature``.

        Only the method, the expiry and the bare request path are signed.
        """
        if not self.access_key or not self.secret_key:
            raise S3CredentialsError()

        now = self._now()
        self._ensure_date(headers, now)

        epoch_expires = int(now.timestamp()) + expires_in
        string_to_sign = f"{method}\n\n\n{epoch_expires}\n{url.path}"
        logger.debug("StringToSign:\n%s", string_to_sign)

        query = MultiDict(url.query)
        query["AWSAccessKeyId"] = self.access_key
        query["Expires"] = str(epoch_expires)
        query["Signature"] = self._hmac_sha1(string_to_sign)

        # Signature is Base64, "/" "+" and "=" must all be escaped
        query_string = urllib.parse.urlencode(
            sorted(query.items(), key=lambda item: item[0]),
            quote_via=urllib.parse.quote_plus,
        )
        return f"{url.with_query(None)}?{query_string}"

    def post_presign_signature(self, policy_base64: str) -> str:
        """Signs a Base64 encoded POST policy document."""
        return self._hmac_sha1(policy_base64)
