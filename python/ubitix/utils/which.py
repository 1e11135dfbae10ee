import functools
import os
from pathlib import Path


@functools.lru_cache(maxsize=16)
def which(binary_name: str) -> Path:
    """
    Get absolute path of an executable given name.

    Searches in $PATH. An absolute or relative path containing a slash is returned as is,
    if it exists. The result of the function is LRU cached.

    Raises:
        RuntimeError: If the executable was not found.

    """
    if os.sep in binary_name:
        path = Path(binary_name)
        if path.exists():
            return path.absolute()
    else:
        for dr in os.get_exec_path():
            exec_path = Path(dr, binary_name)
            if exec_path.exists():
                return exec_path.absolute()

    msg = f"The executable '{binary_name}' was not found in $PATH"
    raise RuntimeError(msg)
