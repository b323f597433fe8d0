"""Hard-coded configuration constants not meant to be user-configurable."""

import stat

DEFAULT_REF = "refs/heads/treefs"
DEFAULT_AUTHOR_NAME = "treefs"
DEFAULT_AUTHOR_EMAIL = "treefs@localhost"

FILE_MODE = stat.S_IFREG | 0o644
EXECUTABLE_MODE = stat.S_IFREG | 0o755
DIR_MODE = stat.S_IFDIR
# File modes carried over when an existing base file is overwritten
PRESERVED_FILE_MODES = frozenset({FILE_MODE, EXECUTABLE_MODE})
