# --- Directory scanning convenience -----------------------------------------
import logging
import os

from method_insight.src.method_insight.indexer import JavaIndexer

logger = logging.getLogger(__name__)


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def index_directory(indexer: JavaIndexer, root_dir: str) -> int:
    """
    Recursively index all .java files in a directory. Paths are recorded
    relative to `root_dir` so test/content globs see the project layout.
    Returns the number of files indexed.
    """
    count = 0
    for dirpath, dirnames, filenames in os.walk(root_dir):
        dirnames.sort()
        for fn in sorted(filenames):
            if not fn.endswith(".java"):
                continue
            full = os.path.join(dirpath, fn)
            rel = os.path.relpath(full, root_dir).replace(os.sep, "/")
            try:
                src = read_text(full)
            except OSError as e:
                logger.warning("Failed to read %s: %s", full, e)
                continue
            indexer.index_source(src, rel)
            count += 1
    logger.info("Indexed %d Java files under %s", count, root_dir)
    return count
