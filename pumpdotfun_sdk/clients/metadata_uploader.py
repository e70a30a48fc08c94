"""
Token metadata upload to the pump.fun IPFS endpoint
Produces the metadata URI passed to the create instruction
"""

from dataclasses import dataclass
from typing import Optional

import aiohttp

from pumpdotfun_sdk.core.errors import MetadataUploadError
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import LatencyTimer, get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


PUMP_FUN_IPFS_URL = "https://pump.fun/api/ipfs"


@dataclass
class TokenMetadataRequest:
    """Token metadata to publish before a create"""
    image_url: str
    name: str
    symbol: str
    description: str = ""
    twitter: str = ""
    telegram: str = ""
    website: str = ""


@dataclass
class TokenMetadataResponse:
    """Metadata as stored by pump.fun"""
    name: str
    symbol: str
    description: str
    show_name: bool
    created_on: str
    twitter: str
    telegram: str
    website: str
    image: str
    metadata_uri: str

    @classmethod
    def from_json(cls, payload: dict) -> "TokenMetadataResponse":
        metadata = payload.get("metadata", {})
        return cls(
            name=metadata.get("name", ""),
            symbol=metadata.get("symbol", ""),
            description=metadata.get("description", ""),
            show_name=bool(metadata.get("showName", False)),
            created_on=metadata.get("createdOn", ""),
            twitter=metadata.get("twitter", ""),
            telegram=metadata.get("telegram", ""),
            website=metadata.get("website", ""),
            image=metadata.get("image", ""),
            metadata_uri=payload.get("metadataUri", "")
        )


async def upload_token_metadata(
    request: TokenMetadataRequest,
    session: Optional[aiohttp.ClientSession] = None,
    url: str = PUMP_FUN_IPFS_URL,
    timeout_s: float = 30.0
) -> TokenMetadataResponse:
    """
    Download the token image and upload it with the metadata fields

    Args:
        request: Metadata to publish
        session: Optional shared aiohttp session (one is created if omitted)
        url: Upload endpoint
        timeout_s: Total timeout for each HTTP request

    Returns:
        TokenMetadataResponse with the metadata URI for the create instruction

    Raises:
        MetadataUploadError: If either HTTP request fails
    """
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout_s))

    try:
        with LatencyTimer(metrics, "metadata_upload"):
            async with session.get(request.image_url) as response:
                if response.status != 200:
                    raise MetadataUploadError(
                        f"can't download image {request.image_url}: HTTP {response.status}"
                    )
                image = await response.read()

            form = aiohttp.FormData()
            form.add_field("file", image, filename="image.png", content_type="image/png")
            form.add_field("name", request.name)
            form.add_field("symbol", request.symbol)
            form.add_field("description", request.description)
            form.add_field("twitter", request.twitter)
            form.add_field("telegram", request.telegram)
            form.add_field("website", request.website)
            form.add_field("showName", "true")

            async with session.post(url, data=form) as response:
                if response.status != 200:
                    body = await response.text()
                    raise MetadataUploadError(
                        f"metadata upload failed: HTTP {response.status}: {body}"
                    )
                payload = await response.json(content_type=None)
    except aiohttp.ClientError as e:
        metrics.increment_counter("metadata_uploads_failed")
        raise MetadataUploadError(f"metadata upload failed: {e}") from e
    finally:
        if owns_session:
            await session.close()

    result = TokenMetadataResponse.from_json(payload)

    logger.info(
        "token_metadata_uploaded",
        name=result.name,
        symbol=result.symbol,
        metadata_uri=result.metadata_uri
    )
    metrics.increment_counter("metadata_uploads_success")

    return result
