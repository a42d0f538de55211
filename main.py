#!/usr/bin/env python3
"""Main entry point for the MateriaTrack security layer."""

import sys

from materiatrack.common.config import get_config, load_security_config
from materiatrack.common.exceptions import MateriaTrackException
from materiatrack.common.logging import get_logger
from materiatrack.security import SecurityManager, check_file_permissions

config = get_config()
logger = get_logger(__name__)


def main():
    """Main entry point."""
    logger.info(f"MateriaTrack security initialized in {config.environment.value} mode")
    logger.info(f"Config directory: {config.config_dir}")

    try:
        security_config = load_security_config(config.security_file)
        manager = SecurityManager.from_config(security_config, config_dir=config.config_dir)
        manager.validate_config()
    except MateriaTrackException as e:
        logger.error(f"Security configuration rejected: {e.to_dict()}")
        return 1

    if manager.is_audit_enabled:
        audit = manager.audit
        if manager.verify_audit_integrity():
            logger.info(f"Audit log OK: {audit.entry_count()} entries in {audit.path}")
        else:
            logger.warning(f"Audit log integrity check FAILED for {audit.path}")
        if not check_file_permissions(audit.path):
            logger.warning(f"Audit log {audit.path} is readable by other users")

    logger.info(
        f"Encryption {'enabled' if manager.is_encryption_enabled else 'disabled'}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
