# dockbrowse/utils/cleanup.py - Utility functions for cleaning up resources

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

def cleanup_temp_file(temp_file_path: Path | None):
    """Safely removes a leftover temporary file."""
    try:
        if temp_file_path and temp_file_path.is_file():
            temp_file_path.unlink()
            logger.debug(f"Cleaned up temporary file: {temp_file_path}")
    except OSError as e:
        # Cleanup failures never mask the error that triggered the cleanup
        logger.error(f"Error cleaning up temp file {temp_file_path}: {e}", exc_info=True)
