"""Stable track identity derived from the file name.

Hey future me - this is THE contract between the importer and the reconciler! Both sides
MUST compute ids with this exact function or the reconciler will delete the wrong rows
(or none at all).

Only the base name is hashed: no directory, no content. Consequences we accept:
- moving a file between folders keeps its id
- renaming a file gives it a new id (favorites/playlists of the old id are lost on re-import)
- two different files with the same name in different folders collide
"""

import hashlib
from pathlib import PurePath

StableId = str


def compute_stable_id(file_name: str) -> StableId:
    """Return the hex SHA-256 of the UTF-8 bytes of the file's base name.

    Accepts either a bare name ("song.flac") or a full path; the directory part is
    ignored. Pure, no I/O, never fails.

    Args:
        file_name: File name or path

    Returns:
        64-character lowercase hex digest
    """
    base_name = PurePath(file_name).name if file_name else ""
    # surrogatepass: names from os.fsdecode() may carry lone surrogates
    data = base_name.encode("utf-8", errors="surrogatepass")
    return hashlib.sha256(data).hexdigest()
