"""Serialize an export document to indented JSON and replace the target file atomically."""

import json
import logging
import os
import stat
import tempfile

logger = logging.getLogger(__name__)


def dump_document(document):
    """Return the JSON text for ``document``, keys in insertion order."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def target_mode(path):
    """Mode the export should end up with: the existing file's, else 0666 minus umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_document(document, path):
    """Write ``document`` to ``path``, replacing any existing file.

    The JSON is written to a temporary file next to ``path`` first, so a
    failed write never leaves a truncated export behind. Permissions of an
    existing file are kept. Raises ``OSError`` when the destination
    directory is missing or unwritable.
    """
    path = os.fspath(path)
    json_output = dump_document(document)
    directory = os.path.dirname(os.path.abspath(path))

    fd, tmp_path = tempfile.mkstemp(prefix=".export-", suffix=".json.tmp", dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(json_output)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates the file as 0600
        os.chmod(tmp_path, target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise

    logger.debug("Wrote %d bytes to %s", len(json_output.encode('utf-8')), path)
    return path
