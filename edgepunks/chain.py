from __future__ import annotations

import json
from typing import Any

from web3 import AsyncWeb3

from .errors import MetadataError
from .utils import decode_data_url_text

TOKEN_URI_ABI = [
    {
        "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
        "name": "tokenURI",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class TokenMetadataClient:
    """Reads ERC-721 ``tokenURI`` metadata from the collection contract."""

    def __init__(self, rpc_url: str, contract_address: str, call_gas: int = 300_000_000):
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address), abi=TOKEN_URI_ABI
        )
        self.call_gas = call_gas

    async def fetch_metadata(self, token_id: int) -> dict[str, Any]:
        # tokenURI builds the whole SVG on-chain, which needs far more than the default gas cap.
        uri = await self.contract.functions.tokenURI(token_id).call({"gas": self.call_gas})
        return parse_token_uri(uri)


def parse_token_uri(uri: str) -> dict[str, Any]:
    try:
        meta = json.loads(decode_data_url_text(uri))
    except (ValueError, UnicodeDecodeError) as e:
        raise MetadataError(f"tokenURI is not a JSON data URL: {e}") from e
    if not isinstance(meta, dict):
        raise MetadataError("tokenURI JSON is not an object")
    return meta


def get_svg(metadata: dict[str, Any]) -> str:
    """Return the SVG source; Indelible Labs metadata keeps it in ``svg_image_data``."""
    data_url = metadata.get("svg_image_data")
    if not isinstance(data_url, str):
        raise MetadataError("Metadata has no svg_image_data")
    return decode_data_url_text(data_url)


def non_image_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in metadata.items() if "image" not in k}
