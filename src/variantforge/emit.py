"""Asset naming and delivery: inline data URLs or emitted files."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from variantforge.host import BuildHost
from variantforge.models import Asset, EncodeInfo, LoaderConfig
from variantforge.naming import content_type, output_name
from variantforge.serializer import CodeFragment, public_path_expression
from variantforge.utils import bytes_to_data_url


def deliver(
    content: bytes,
    name: str,
    media_type: str | None,
    *,
    inline: bool,
    host: BuildHost,
    public_path_var: str,
) -> str | CodeFragment:
    """Deliver produced bytes and return the URL value for the record.

    Inline delivery embeds the bytes as a ``data:`` URL and emits
    nothing.  Otherwise the bytes are emitted under *name* and the URL is
    code that joins the runtime public path with the escaped name.
    """
    if inline:
        return bytes_to_data_url(content, media_type)
    host.emit_file(name, content)
    return public_path_expression(public_path_var, name)


def build_asset(
    content: bytes,
    info: EncodeInfo,
    options: Mapping[str, Any],
    preset: str | None,
    *,
    host: BuildHost,
    config: LoaderConfig,
) -> Asset:
    """Name, type and deliver one produced variant."""
    name = output_name(
        options,
        info.model_dump(),
        resource_path=host.resource_path,
        content=content,
        default_template=config.name,
        context=config.context or host.root_context,
    )
    media_type = content_type(name)
    url = deliver(
        content,
        name,
        media_type,
        inline=bool(options.get("inline")),
        host=host,
        public_path_var=config.public_path_var,
    )
    return Asset(
        options=dict(options),
        info=info,
        type=media_type,
        preset=preset,
        name=name,
        url=url,
    )
