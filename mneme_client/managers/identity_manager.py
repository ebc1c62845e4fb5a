"""
Mneme Sync Client - Identity Manager

Issues and persists the stable per-machine client identifier that the
coordinator uses to tell lease holders apart.
"""

import logging
import socket
import uuid
from pathlib import Path

# Configure logging
logger = logging.getLogger(__name__)

CLIENT_ID_FILENAME = ".client-id"


def _generate_client_id() -> str:
    """Build '<hostname>-<8 hex chars>'."""
    host_label = socket.gethostname() or "unknown-host"
    return f"{host_label}-{uuid.uuid4().hex[:8]}"


def get_client_id(base_path: Path) -> str:
    """
    Get or create the persistent client ID for this machine.

    Reads <base_path>/.client-id. When the file is missing, unreadable or
    empty, a new ID is generated and written back. A failed write is logged
    and the generated ID is still returned for this session.

    Args:
        base_path: Directory that holds the identifier file

    Returns:
        The client ID string
    """
    client_id_path = Path(base_path) / CLIENT_ID_FILENAME

    if client_id_path.exists():
        try:
            existing = client_id_path.read_text(encoding='utf-8').strip()
            if existing:
                return existing
            logger.warning(f"Client ID file {client_id_path} is empty, regenerating")
        except OSError as e:
            logger.error(f"Failed to read client ID from {client_id_path}: {e}")

    client_id = _generate_client_id()
    try:
        client_id_path.parent.mkdir(parents=True, exist_ok=True)
        client_id_path.write_text(client_id, encoding='utf-8')
        logger.info(f"Generated new client ID: {client_id}")
    except OSError as e:
        logger.error(f"Failed to persist client ID to {client_id_path}: {e}")

    return client_id
