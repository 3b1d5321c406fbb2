"""Deterministic output names for produced variants.

Naming happens in two passes:

1. :func:`resolve_template` fills ``[token]`` placeholders from the
   combination's options or the produced image metadata, leaving
   ``[name]`` and ``[hash]`` (and anything unresolved) in place.
2. :func:`interpolate_name` resolves the file-level placeholders
   (``[name]``, ``[ext]``, ``[path]``, ``[folder]``, ``[hash]``) against
   the resource path and the produced bytes.
"""

from __future__ import annotations

import hashlib
import mimetypes
import os
import re
from collections.abc import Mapping
from typing import Any

from variantforge.errors import ConfigError

DEFAULT_TEMPLATE = "[name].[ext]"

# Produced format → file extension.
EXTENSIONS: dict[str, str] = {
    "webp": ".webp",
    "jpeg": ".jpg",
    "png": ".png",
    "gif": ".gif",
    "tiff": ".tiff",
    "avif": ".avif",
}

# Older interpreters ship without these.
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/avif", ".avif")

_TOKEN_RE = re.compile(r"\[([^\]]+)\]")
_HASH_RE = re.compile(
    r"\[(?:([^:\]]+):)?(?:hash|contenthash)(?::([a-z]+\d*))?(?::(\d+))?\]",
    re.IGNORECASE,
)
_PASSTHROUGH_TOKENS = frozenset({"name", "hash"})
_BASE_ALPHABET = (
    "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ-_"
)


def extension(fmt: str) -> str:
    """Return the file extension (with dot) for a produced format."""
    try:
        return EXTENSIONS[fmt]
    except KeyError:
        return f".{fmt}"


def content_type(name: str) -> str | None:
    """Resolve the MIME type for a file name, ``None`` when unknown."""
    return mimetypes.guess_type(name, strict=False)[0]


def _token_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_template(
    template: str,
    options: Mapping[str, Any],
    info: Mapping[str, Any],
) -> str:
    """Fill ``[token]`` placeholders from options, then produced metadata.

    ``[name]`` and ``[hash]`` are left for :func:`interpolate_name`, as
    is any token neither source provides a truthy value for.
    """

    def _replace(match: re.Match[str]) -> str:
        token = match.group(1)
        if token in _PASSTHROUGH_TOKENS:
            return match.group(0)
        if options.get(token):
            return _token_text(options[token])
        if info.get(token):
            return _token_text(info[token])
        return match.group(0)

    return _TOKEN_RE.sub(_replace, template)


def _encode_digest(digest: bytes, digest_type: str) -> str:
    if digest_type == "hex":
        return digest.hex()
    if digest_type.startswith("base"):
        try:
            base = int(digest_type[4:])
        except ValueError:
            base = 0
        if 2 <= base <= len(_BASE_ALPHABET):
            number = int.from_bytes(digest, "big")
            chars: list[str] = []
            while number:
                number, rem = divmod(number, base)
                chars.append(_BASE_ALPHABET[rem])
            return "".join(reversed(chars)) or "0"
    raise ConfigError(f"Unsupported hash digest type: {digest_type!r}")


def content_hash(
    content: bytes,
    hash_type: str | None = None,
    digest_type: str | None = None,
    max_length: int | None = None,
) -> str:
    """Hash *content* (md5/hex by default), truncated to *max_length*.

    Raises:
        ConfigError: If the algorithm or digest type is unknown.
    """
    algorithm = (hash_type or "md5").lower()
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as exc:
        raise ConfigError(f"Unsupported hash type: {hash_type!r}") from exc
    hasher.update(content)
    text = _encode_digest(hasher.digest(), (digest_type or "hex").lower())
    return text[:max_length] if max_length else text


def interpolate_name(
    resource_path: str,
    template: str,
    *,
    context: str | None = None,
    content: bytes = b"",
) -> str:
    """Resolve a file name template against a resource and its bytes.

    Args:
        resource_path: Path of the resource (its extension is ``[ext]``).
        template: Template such as ``"[path][name].[hash:8].[ext]"``.
        context: Directory ``[path]`` is relative to.  Defaults to the
            resource's own directory.
        content: Bytes hashed by ``[hash]`` / ``[contenthash]``.

    Returns:
        The resolved name.
    """
    basename = os.path.basename(resource_path)
    stem, ext = os.path.splitext(basename)
    ext = ext[1:]

    directory = ""
    folder = ""
    if context is not None:
        relative = os.path.relpath(os.path.dirname(resource_path) or ".", context)
        relative = relative.replace(os.sep, "/")
        if relative != ".":
            # Keep names inside the output tree.
            relative = re.sub(r"\.\.(/)?", r"_\1", relative)
            directory = relative.rstrip("/") + "/"
            folder = os.path.basename(relative.rstrip("/"))

    url = template
    url = url.replace("[ext]", ext)
    url = url.replace("[name]", stem)
    url = url.replace("[path]", directory)
    url = url.replace("[folder]", folder)
    url = url.replace("[query]", "")

    def _hash(match: re.Match[str]) -> str:
        hash_type, digest_type, length = match.groups()
        return content_hash(
            content, hash_type, digest_type, int(length) if length else None
        )

    return _HASH_RE.sub(_hash, url)


def output_name(
    options: Mapping[str, Any],
    info: Mapping[str, Any],
    *,
    resource_path: str,
    content: bytes,
    default_template: str | None = None,
    context: str | None = None,
) -> str:
    """Compute the final output name for one produced variant.

    The template is the combination's ``name``, else *default_template*,
    else ``"[name].[ext]"``.  The resource path handed to
    :func:`interpolate_name` carries the produced format's extension.
    """
    template = options.get("name") or default_template or DEFAULT_TEMPLATE
    template = resolve_template(str(template), options, info)
    stem, _ = os.path.splitext(resource_path)
    return interpolate_name(
        stem + extension(str(info["format"])),
        template,
        context=context,
        content=content,
    )
