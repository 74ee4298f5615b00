"""Constants for rabot."""

# Lock acquisition
LOCK_SUFFIX = ".lock"
LOCK_POLL_INTERVAL = 0.05  # seconds between non-blocking attempts
INSTANCE_HASH_LENGTH = 12

# Subprocess timeouts (seconds)
INIT_TOOL_CHECK_TIMEOUT = 10
CHILD_TERMINATE_TIMEOUT = 5

# Filenames
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
PARTIAL_SUFFIX = ".part"

# Exit status offset for signal-triggered termination (shell convention)
SIGNAL_EXIT_BASE = 128
