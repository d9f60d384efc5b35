"""Constants shared across nas-automount modules."""

from pathlib import Path

NAS_AUTOMOUNT_VERSION = "0.3.0"

DEFAULT_SMB_VERSION = "3.0"

# Where credentials files and unit files live on a standard systemd host
CREDENTIALS_DIR = Path("/etc/samba")
SYSTEMD_UNIT_DIR = Path("/etc/systemd/system")

# Ownership applied to everything this tool creates
PRIVILEGED_USER = "root"
PRIVILEGED_GROUP = "root"

MOUNTPOINT_MODE = "755"
CREDENTIALS_MODE = "600"

INSTALL_TARGET = "multi-user.target"

# Fixed trailing flags of the CIFS Options= line, in order
CIFS_FIXED_FLAGS = ["nofail", "_netdev", "x-systemd.automount"]

MASKED_PASSWORD = "********"
