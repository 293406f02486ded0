"""GistStore — zero-infrastructure team directory via GitHub Gist.

Why Gist as the team store:
- Zero infra: no DB to provision, no server to maintain.
- Built-in access control: Gist ACL == GitHub account — every teammate with
  the Gist id and a token can read and update the same directory.
- Plain JSON: the directory can be inspected or hand-fixed in the browser.

Data format: a single JSON file named `reviewpool_directory.json` inside the
Gist, holding the same document MemoryStore keeps in memory. Each call reads
the whole document and writes it back if the call changed it. Concurrent
writers race; the last write wins.
"""

from __future__ import annotations

import json
import logging

from reviewpool_store.base import StoreError
from reviewpool_store.memory import MemoryStore, empty_document

logger = logging.getLogger(__name__)

GIST_FILENAME = "reviewpool_directory.json"


class GistStore(MemoryStore):
    """Keeps the directory document in a GitHub Gist.

    The Gist ID is stored in .reviewpool.yml under `gist_id`. Running
    `reviewpool init` creates the Gist and writes the ID to .reviewpool.yml
    automatically.
    """

    def __init__(self, gist_id: str, token: str, rng=None):
        from github import Github

        super().__init__(rng=rng)
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _read(self) -> dict:
        """Load the current document from the Gist, or an empty one."""
        from github import GithubException

        try:
            gist = self._get_gist()
        except GithubException as e:
            raise StoreError(f"could not read Gist {self._gist_id}: {e}") from e

        file_obj = gist.files.get(GIST_FILENAME)
        if file_obj is None:
            return empty_document()
        try:
            doc = json.loads(file_obj.content) or {}
        except (json.JSONDecodeError, AttributeError) as e:
            raise StoreError(f"{GIST_FILENAME} in Gist {self._gist_id} is not valid JSON") from e
        if not isinstance(doc, dict):
            raise StoreError(f"{GIST_FILENAME} in Gist {self._gist_id} does not hold a reviewpool directory")
        return {**empty_document(), **doc}

    def _write(self, doc: dict) -> None:
        from github import GithubException, InputFileContent

        try:
            gist = self._get_gist()
            gist.edit(files={GIST_FILENAME: InputFileContent(json.dumps(doc, indent=2))})
        except GithubException as e:
            logger.warning("GistStore write failed (%s): %s", type(e).__name__, e)
            raise StoreError(f"could not update Gist {self._gist_id}: {e}") from e
