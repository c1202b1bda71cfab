# Save this file as: s2s_client/session/transport.py

from pathlib import Path
from typing import List, Optional

import grpc
import riva.client

from s2s_client.exceptions import TransportSetupError
from s2s_client.utils.logger import logger


def parse_metadata(metadata: str) -> Optional[List[List[str]]]:
    """'key1,value1,key2,value2' -> [['key1', 'value1'], ['key2', 'value2']]"""
    if not metadata:
        return None
    items = [item.strip() for item in metadata.split(',')]
    if len(items) % 2:
        raise TransportSetupError(f"Metadata must be key,value pairs, got {len(items)} items")
    return [[items[i], items[i + 1]] for i in range(0, len(items), 2)]


def create_auth(
    uri: str,
    use_ssl: bool = False,
    ssl_cert: str = '',
    metadata: str = '',
    timeout: float = 10.0
) -> riva.client.Auth:
    """
    Build the channel and block until it is ready.
    A client certificate implies SSL.
    """
    if ssl_cert and not Path(ssl_cert).is_file():
        raise TransportSetupError(f"SSL certificate not found: {ssl_cert}")

    try:
        auth = riva.client.Auth(
            ssl_root_cert=ssl_cert or None,
            use_ssl=use_ssl or bool(ssl_cert),
            uri=uri,
            metadata_args=parse_metadata(metadata),
        )
    except (OSError, ValueError) as e:
        raise TransportSetupError(f"Error creating GRPC channel: {e}") from e

    try:
        grpc.channel_ready_future(auth.channel).result(timeout=timeout)
    except grpc.FutureTimeoutError as e:
        auth.channel.close()
        raise TransportSetupError(f"Timed out after {timeout}s connecting to {uri}") from e

    logger.info(f"Connected to {uri}{' (SSL)' if use_ssl or ssl_cert else ''}")
    return auth
