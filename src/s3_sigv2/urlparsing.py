import logging
import re

logger = logging.getLogger(__name__)

SEPARATOR = "/"

_UNRESERVED_PATH_RE = re.compile(r"^[a-zA-Z0-9\-_.~/]+$")
_UNRESERVED_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~/"
)


def encode_path(path: str) -> str:
    """Percent-encodes a path from its UTF-8 bytes.

    Letters, digits and ``-_.~/`` are kept as they are, everything else is
    written as ``%XX`` per UTF-8 byte with uppercase hex digits. Unlike
    ``urllib.parse.quote`` the slash is always preserved, so whole paths can
    be encoded at once.

    If a character cannot be encoded (lone surrogates), the path is returned
    unchanged and a warning is logged.
    """
    if _UNRESERVED_PATH_RE.fullmatch(path):
        return path

    encoded = []
    for char in path:
        if char in _UNRESERVED_CHARS:
            encoded.append(char)
            continue
        try:
            char_bytes = char.encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("Cannot UTF-8 encode %r in path %r", char, path)
            return path
        encoded.extend(f"%{byte:02X}" for byte in char_bytes)

    return "".join(encoded)


def split_path(path: str) -> tuple[str, str, str]:
    """Splits ``[/]bucket/object?query`` into bucket, object and query.

    The object keeps any further separators: ``/b/dir/key`` gives
    ``("b", "dir/key", "")``.
    """
    path, _, query = path.partition("?")
    if path.startswith(SEPARATOR):
        path = path[1:]

    bucket, _, object_name = path.partition(SEPARATOR)
    return bucket, object_name, query


def path_to_bucket(path: str) -> str:
    return split_path(path)[0]


def path_to_object(path: str) -> str:
    return split_path(path)[1]


def path_to_query(path: str) -> str:
    return split_path(path)[2]


def get_request_url(server_address: str, path: str, virtual_style: bool) -> str:
    """Builds the request target from the server address and operation path.

    In path-style addressing the bucket is part of the path, in
    virtual-hosted style it is expected to be in the server address already.
    The object name goes through :func:`encode_path`, the query string is
    appended raw.
    """
    bucket, object_name, query = split_path(path)

    url = server_address + SEPARATOR
    if not virtual_style:
        url += bucket

    object_name = encode_path(object_name)
    if object_name:
        url += SEPARATOR + object_name
    if query:
        url += "?" + query

    return url
