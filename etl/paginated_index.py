# WORKFLOW: Paginated, sharded static indexes keyed by category, brand or country.
# Used by: Batch pipeline reduce step
# Functions:
# 1. slugify() / shard_for() - Filesystem-safe key and its shard directory
# 2. PaginatedIndex.add() - Buffer an item, flushing full pages
# 3. PaginatedIndex.flush() - Write the buffered items as the next page
# 4. PaginatedIndex.finalize() - Flush residue, write _meta.json, backfill page links
#
# Index flow: add -> buffer -> page-XXXX.json (prev only) -> finalize -> totals + next
# Per key: Empty -> Buffering -> (Flushed)* -> Finalized. Memory holds at most one
# page per key plus small counters.

"""
Paginated, sharded static indexes.

Layout::

    <root>/<key_type>/<shard>/<slug>/page-0001.json
    <root>/<key_type>/<shard>/<slug>/_meta.json
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from etl.errors import IndexFinalizeError, IndexWriteError
from etl.models import IndexItem, IndexMeta, IndexPage

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"[\W_]+")
MAX_SLUG_LENGTH = 96
SHORT_SLUG_SHARD = "__"
META_FILE = "_meta.json"


def slugify(key: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to single hyphens."""
    slug = SLUG_RE.sub("-", key.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def shard_for(slug: str) -> str:
    """First two characters of the slug, or a fixed shard for short slugs."""
    if len(slug) < 2:
        return SHORT_SLUG_SHARD
    return slug[:2]


def page_name(page: int) -> str:
    return f"page-{page:04d}.json"


@dataclass
class _KeyState:
    tag: str
    directory: Path
    pages: int = 0
    count: int = 0
    buffer: List[IndexItem] = field(default_factory=list)


class PaginatedIndex:
    """
    Builds one paginated index per distinct key of a key type.

    Keys that slugify to the same value share an index; the first key seen
    becomes its ``tag``. Keys with an empty slug are ignored.
    """

    def __init__(self, root: str, key_type: str, page_size: int = 100):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.root = Path(root) / key_type
        self.key_type = key_type
        self.page_size = page_size
        self._keys: Dict[str, _KeyState] = {}

    def _state(self, key: str, create: bool = False) -> Optional[_KeyState]:
        slug = slugify(key)
        if not slug:
            return None
        state = self._keys.get(slug)
        if state is None and create:
            state = _KeyState(tag=key, directory=self.root / shard_for(slug) / slug)
            self._keys[slug] = state
        return state

    def directory_for(self, key: str) -> Optional[Path]:
        slug = slugify(key)
        if not slug:
            return None
        return self.root / shard_for(slug) / slug

    def add(self, key: str, item: IndexItem) -> bool:
        """
        Buffer ``item`` under ``key``.

        Returns:
            False if the key has no usable slug
        """
        state = self._state(key, create=True)
        if state is None:
            return False
        state.buffer.append(item)
        if len(state.buffer) >= self.page_size:
            try:
                self._flush_state(state)
            except IndexWriteError:
                # the rest of the page stays buffered for the next flush
                state.buffer.pop()
                raise
        return True

    def flush(self, key: str) -> None:
        state = self._state(key)
        if state is not None:
            self._flush_state(state)

    def _flush_state(self, state: _KeyState) -> None:
        if not state.buffer:
            return
        page_number = state.pages + 1
        page = IndexPage(
            tag=state.tag,
            page=page_number,
            page_size=self.page_size,
            items=state.buffer,
            prev=page_name(page_number - 1) if page_number > 1 else None,
        )
        path = state.directory / page_name(page_number)
        try:
            state.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(page.model_dump_json(), encoding="utf-8")
        except OSError as e:
            raise IndexWriteError(f"Failed to write index page {path}: {e}") from e
        state.pages = page_number
        state.count += len(state.buffer)
        state.buffer = []

    def finalize(self) -> List[IndexMeta]:
        """
        Flush residual buffers and backfill totals and forward links.

        Safe to call more than once: a finalized key is rewritten with
        identical bytes. Every key is attempted; failures are reported
        together once the remaining keys are finalized.

        Raises:
            IndexFinalizeError: one or more keys could not be written
        """
        metas = []
        failed = []
        for state in self._keys.values():
            try:
                self._flush_state(state)
                if state.pages == 0:
                    continue
                metas.append(self._finalize_state(state))
            except (IndexWriteError, IndexFinalizeError) as e:
                logger.error(f"Failed to finalize {self.key_type} index for {state.tag!r}: {e}")
                failed.append(state.tag)

        logger.info(
            f"Finalized {self.key_type} index: {len(metas)} keys, "
            f"{sum(m.total_pages for m in metas)} pages, {sum(m.count for m in metas)} items"
        )
        if failed:
            raise IndexFinalizeError(f"Failed to finalize {len(failed)} {self.key_type} keys: {failed[:5]}")
        return metas

    def _finalize_state(self, state: _KeyState) -> IndexMeta:
        meta = IndexMeta(
            tag=state.tag,
            count=state.count,
            page_size=self.page_size,
            total_pages=state.pages,
        )
        try:
            (state.directory / META_FILE).write_text(meta.model_dump_json(), encoding="utf-8")
            for number in range(1, state.pages + 1):
                path = state.directory / page_name(number)
                page = IndexPage.model_validate_json(path.read_text(encoding="utf-8"))
                page.count = state.count
                page.total_pages = state.pages
                page.next = page_name(number + 1) if number < state.pages else None
                path.write_text(page.model_dump_json(), encoding="utf-8")
        except (OSError, ValueError) as e:
            raise IndexFinalizeError(f"Failed to finalize index {state.directory}: {e}") from e
        return meta

    def stats(self) -> Dict[str, int]:
        return {
            "keys": len(self._keys),
            "pages": sum(s.pages for s in self._keys.values()),
            "items": sum(s.count for s in self._keys.values()),
        }
