"""
Mneme Sync Client - CLI Mode Module

Implements the command-line interface used by the session-start and
session-stop hooks. Runs one operation, logs to a timestamped file and
writes one-line advisories to stderr. Coordinator problems never fail the
calling session.
"""

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from .managers import ConfigManager
from .exceptions import MnemeSyncAPIError
from .operations import SyncOperations, create_sync_operations


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def setup_cli_logging(config_manager: ConfigManager) -> Path:
    """
    Setup logging for CLI mode with timestamped log file.

    Creates log file with format: mneme-sync-YYYY-MM-DD-HH-MM-SS.log
    in the "logs" subdirectory of the memory base directory.

    Args:
        config_manager: ConfigManager instance for log settings

    Returns:
        Path to the created log file
    """
    # Get log level from config
    log_level = config_manager.get("log_level", "INFO")

    # Create timestamped log filename
    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_filename = f"mneme-sync-{timestamp}.log"

    log_dir = config_manager.base_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / log_filename

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stderr)  # stdout belongs to the host session
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Mneme Sync CLI Mode - Log file: {log_file}")
    logger.info(f"Log level: {log_level}")

    return log_file


def cleanup_old_logs(config_manager: ConfigManager, current_log: Path):
    """
    Delete log files older than retention period.

    Args:
        config_manager: ConfigManager instance for retention settings
        current_log: Path to current log file (don't delete this)
    """
    logger = logging.getLogger(__name__)
    retention_days = config_manager.get("log_retention_days", 30)

    if retention_days <= 0:
        return  # Retention disabled

    log_dir = current_log.parent
    cutoff_time = datetime.now().timestamp() - (retention_days * 86400)

    deleted_count = 0
    for log_file in log_dir.glob("mneme-sync-*.log"):
        if log_file == current_log:
            continue

        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1
        except OSError as e:
            logger.warning(f"Failed to delete old log file {log_file}: {e}")

    if deleted_count > 0:
        logger.info(f"Deleted {deleted_count} old log file(s)")


def print_advisory(message: str):
    """Write a one-line advisory for the user to stderr."""
    print(message, file=sys.stderr)


def show_status(sync_ops: SyncOperations) -> int:
    """
    Print coordinator health and the project's lock state to stdout.

    Returns:
        Exit code
    """
    api_client = sync_ops.api
    print(f"Project:   {api_client.project_id}")
    print(f"Client ID: {api_client.client_id}")

    health = api_client.check_health()
    if not health.ok:
        print(f"Server:    unreachable ({health.reason.value if health.reason else 'unknown'})")
        return EXIT_SUCCESS

    print(f"Server:    ok (auth {'required' if health.auth_required else 'not required'})")

    lock_result = api_client.get_lock_status()
    if not lock_result.success:
        print(f"Lock:      unknown ({lock_result.reason.value if lock_result.reason else 'error'})")
    elif lock_result.lease is None:
        print("Lock:      free")
    else:
        lease = lock_result.lease
        owner = "this client" if lease.client_id == api_client.client_id else lease.client_id
        expires = lease.expires_at.isoformat() if lease.expires_at else "unknown"
        print(f"Lock:      held by {owner} until {expires}")
    return EXIT_SUCCESS


def run_cli_operation(operation: str, project_override: Optional[str] = None,
                      cwd: Optional[Path] = None) -> int:
    """
    Execute CLI operation.

    Process:
    1. Load configuration
    2. Setup logging to timestamped file
    3. Resolve project and client identity
    4. Execute requested operation
    5. Return appropriate exit code

    Args:
        operation: Operation to perform ("pull", "push", or "status")
        project_override: Optional project id from --project
        cwd: Working directory used for project detection (defaults to the current one)

    Returns:
        Exit code (0 for success or local-only fallback, non-zero for failure)
    """
    logger = None

    try:
        config_mgr = ConfigManager()
        config_mgr.load_config()
        log_file = setup_cli_logging(config_mgr)
        logger = logging.getLogger(__name__)

        cleanup_old_logs(config_mgr, log_file)

        logger.info("=" * 60)
        logger.info(f"Starting Mneme Sync CLI: {operation.upper()}")
        logger.info("=" * 60)

        if operation == "status" and not config_mgr.is_sync_enabled():
            print("Sync disabled: set sync.enabled and sync.server_url in "
                  f"{config_mgr.config_file}")
            return EXIT_CONFIG_ERROR

        sync_ops = create_sync_operations(
            config_mgr,
            Path(cwd) if cwd else Path.cwd(),
            project_override=project_override,
            advisory_callback=print_advisory
        )

        try:
            if operation == "pull":
                result = sync_ops.pull()
                logger.info(f"PULL finished: {result.message} (files: {result.files})")
            elif operation == "push":
                result = sync_ops.push()
                logger.info(f"PUSH finished: {result.message} (files: {result.files})")
            elif operation == "status":
                return show_status(sync_ops)
            else:
                logger.error(f"Unknown operation: {operation}")
                return EXIT_FAILURE
        finally:
            sync_ops.close()

        return EXIT_SUCCESS

    except OSError as e:
        # Base directory or log directory not writable
        if logger:
            logger.error(f"Configuration error: {e}")
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    except MnemeSyncAPIError as e:
        if logger:
            logger.error(f"API Error: {e}")
        else:
            print(f"API Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        if logger:
            logger.warning("Operation cancelled by user (Ctrl+C)")
        else:
            print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_FAILURE

    except Exception as e:
        if logger:
            logger.exception(f"Unexpected error: {e}")
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE
