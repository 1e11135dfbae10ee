import os
import tempfile
from asyncio import create_subprocess_exec, subprocess
from pathlib import Path
from typing import List, Tuple

from ubitix.utils.compat.asyncio import to_thread


async def call(cmd: List[str]) -> Tuple[int, str]:
    """
    Async alternative to subprocess.call(), which also collects the standard error output.

    Returns a tuple of the exit code and the decoded stderr of the process.
    """
    if not isinstance(cmd, list):
        msg = "Please use list of arguments, not a single string. It will prevent ambiguity when parsing"
        raise RuntimeError(msg)

    proc = await create_subprocess_exec(*cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
    _, stderr = await proc.communicate()
    return proc.returncode if proc.returncode is not None else -1, stderr.decode("utf8", errors="replace").strip()


async def readfile(path: Path) -> str:
    """Asynchronously read file on a path and return its content."""

    def readfile_sync(path: Path) -> str:
        with path.open("r", encoding="utf8") as file:
            return file.read()

    return await to_thread(readfile_sync, path)


def writefile_atomic_sync(path: Path, content: str) -> None:
    """
    Replace the content of the file on a path atomically.

    The content is written into a temporary file in the same directory first and moved
    over the target afterwards, so a crash never leaves a partially written file behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf8") as file:
            file.write(content)
            file.flush()
            os.fsync(file.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


async def writefile_atomic(path: Path, content: str) -> None:
    """Asynchronously set content of a file on path to a given string content."""

    await to_thread(writefile_atomic_sync, path, content)
