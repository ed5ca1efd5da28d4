#!/usr/bin/env python3
"""
Page-level cache of optimized CSS, backed by SQLite.

One row per page URL. A row is "in progress" while is_processed = 0 and
processing_started is set; rows stuck that way past the stuck timeout are
reclaimed by the queue and removed by the cleanup sweep.

Sweep from the command line:

  python -m css_reducer.cache --db css_optimizer.db
  python -m css_reducer.cache --db css_optimizer.db --process 10   # also compact queued rows
"""
from __future__ import annotations

import argparse
import gc
import logging
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from dotenv import load_dotenv

from .budget import ProcessingBudget
from .config import ConfigError, parse_size
from .minify import minify_css


logger = logging.getLogger(__name__)

FRESH_TTL = timedelta(hours=24)
RETENTION = timedelta(days=7)
STUCK_TIMEOUT = timedelta(hours=1)

SCHEMA = """
CREATE TABLE IF NOT EXISTS css_optimizer (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_url TEXT NOT NULL,
    css_content TEXT,
    is_processed INTEGER DEFAULT 0,
    processing_started TEXT DEFAULT NULL,
    last_updated TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_css_optimizer_page_url ON css_optimizer (page_url);
CREATE INDEX IF NOT EXISTS idx_css_optimizer_is_processed ON css_optimizer (is_processed);
"""


def _ts(dt: datetime) -> str:
    return dt.strftime('%Y-%m-%d %H:%M:%S')


def _parse_ts(text: Optional[str]) -> Optional[datetime]:
    return datetime.strptime(text, '%Y-%m-%d %H:%M:%S') if text else None


@dataclass
class CacheEntry:
    id: int
    page_url: str
    css: str
    last_updated: datetime
    is_processed: bool
    processing_started: Optional[datetime] = None

    def is_fresh(self, now: datetime, ttl: timedelta = FRESH_TTL) -> bool:
        return self.is_processed and now - self.last_updated < ttl


class CacheStore:
    def __init__(self, path: str = ':memory:', clock=datetime.now):
        self._path = path
        self._clock = clock
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> 'CacheStore':
        self._conn = sqlite3.connect(self._path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA)
        return self

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> 'CacheStore':
        return self.connect() if self._conn is None else self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        assert self._conn is not None, 'CacheStore not connected'
        return self._conn

    def _row_to_entry(self, row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(
            id=row['id'],
            page_url=row['page_url'],
            css=row['css_content'] or '',
            last_updated=_parse_ts(row['last_updated']),
            is_processed=bool(row['is_processed']),
            processing_started=_parse_ts(row['processing_started']),
        )

    def get(self, page_url: str) -> Optional[CacheEntry]:
        row = self.conn.execute(
            'SELECT * FROM css_optimizer WHERE page_url = ? ORDER BY id DESC LIMIT 1', (page_url,)
        ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_fresh(self, page_url: str, ttl: timedelta = FRESH_TTL) -> Optional[CacheEntry]:
        entry = self.get(page_url)
        if entry and entry.is_fresh(self._clock(), ttl):
            return entry
        return None

    def store(self, page_url: str, css: str) -> CacheEntry:
        """Upsert the processed CSS for a page: old row deleted and new one inserted atomically."""
        now = _ts(self._clock())
        with self.conn:
            self.conn.execute('DELETE FROM css_optimizer WHERE page_url = ?', (page_url,))
            cur = self.conn.execute(
                'INSERT INTO css_optimizer (page_url, css_content, is_processed, last_updated) VALUES (?, ?, 1, ?)',
                (page_url, css, now),
            )
        logger.debug('cached %d chars for %s', len(css), page_url)
        return self.get_by_id(cur.lastrowid)

    def get_by_id(self, entry_id: int) -> Optional[CacheEntry]:
        row = self.conn.execute('SELECT * FROM css_optimizer WHERE id = ?', (entry_id,)).fetchone()
        return self._row_to_entry(row) if row else None

    # queue ---------------------------------------------------------------

    def enqueue(self, page_url: str, css: str) -> bool:
        """Queue raw CSS for background processing; no-op when the page already has a row."""
        with self.conn:
            exists = self.conn.execute('SELECT id FROM css_optimizer WHERE page_url = ?', (page_url,)).fetchone()
            if exists:
                return False
            self.conn.execute(
                'INSERT INTO css_optimizer (page_url, css_content, is_processed, last_updated) VALUES (?, ?, 0, ?)',
                (page_url, css, _ts(self._clock())),
            )
        return True

    def claim_next(self, stuck_after: timedelta = STUCK_TIMEOUT) -> Optional[CacheEntry]:
        """Mark the oldest unprocessed row as in progress and return it."""
        now = self._clock()
        cutoff = _ts(now - stuck_after)
        with self.conn:
            row = self.conn.execute(
                'SELECT * FROM css_optimizer WHERE is_processed = 0 '
                'AND (processing_started IS NULL OR processing_started < ?) ORDER BY id LIMIT 1',
                (cutoff,),
            ).fetchone()
            if row is None:
                return None
            self.conn.execute('UPDATE css_optimizer SET processing_started = ? WHERE id = ?', (_ts(now), row['id']))
        return self.get_by_id(row['id'])

    def complete(self, entry_id: int, css: str) -> None:
        with self.conn:
            self.conn.execute(
                'UPDATE css_optimizer SET css_content = ?, is_processed = 1, last_updated = ? WHERE id = ?',
                (css, _ts(self._clock()), entry_id),
            )

    def get_processed(self, page_url: str) -> Optional[str]:
        row = self.conn.execute(
            'SELECT css_content FROM css_optimizer WHERE page_url = ? AND is_processed = 1', (page_url,)
        ).fetchone()
        return row['css_content'] if row else None

    def cleanup(self, retention: timedelta = RETENTION, stuck_after: timedelta = STUCK_TIMEOUT) -> int:
        """Delete rows older than the retention window and rows stuck in progress."""
        now = self._clock()
        with self.conn:
            cur = self.conn.execute(
                'DELETE FROM css_optimizer WHERE last_updated < ? '
                'OR (is_processed = 0 AND processing_started < ?)',
                (_ts(now - retention), _ts(now - stuck_after)),
            )
        return cur.rowcount


QUEUE_CHUNK_CHARS = 50 * 1024
QUEUE_FRACTION = 0.9


def iter_css_chunks(css: str, size: int = QUEUE_CHUNK_CHARS):
    """Slices of about `size` characters, each cut just after a closing brace when one is in reach."""
    size = max(1, size)
    start = 0
    while start < len(css):
        end = start + size
        if end < len(css):
            cut = css.rfind('}', start, end)
            if cut != -1:
                end = cut + 1
        yield css[start:end]
        start = end


def compact_queued_css(css: str, budget: Optional[ProcessingBudget] = None,
                       chunk_size: int = QUEUE_CHUNK_CHARS) -> Optional[str]:
    """Minify queued CSS chunk by chunk; None when the budget runs out part way."""
    out = []
    for chunk in iter_css_chunks(css, chunk_size):
        if budget is not None and budget.exceeded():
            return None
        out.append(minify_css(chunk))
        gc.collect()
    return ''.join(out)


def process_queue(store: CacheStore, budget: Optional[ProcessingBudget] = None, limit: int = 1,
                  chunk_size: int = QUEUE_CHUNK_CHARS) -> int:
    """Compact queued raw CSS rows; returns how many rows were completed.

    A row interrupted by the budget stays in progress and is reclaimed once
    the stuck timeout passes.
    """
    done = 0
    for _ in range(limit):
        if budget is not None and budget.exceeded():
            break
        entry = store.claim_next(STUCK_TIMEOUT)
        if entry is None:
            break
        css = compact_queued_css(entry.css, budget, chunk_size)
        if css is None:
            logger.warning('memory limit approaching, leaving %s for later', entry.page_url)
            break
        store.complete(entry.id, css)
        done += 1
    return done


def main(argv=None):
    load_dotenv()
    ap = argparse.ArgumentParser(description='Sweep stale and stuck rows from the CSS optimizer cache')
    ap.add_argument('--db', default=os.getenv('CSS_OPTIMIZER_CACHE_DB', 'css_optimizer.db'))
    ap.add_argument('--retention-days', type=float, default=RETENTION.days)
    ap.add_argument('--stuck-minutes', type=float, default=STUCK_TIMEOUT.total_seconds() / 60)
    ap.add_argument('--process', type=int, default=0, help='Also compact up to N queued rows')
    ap.add_argument('--memory-limit', default=os.getenv('CSS_OPTIMIZER_MEMORY_LIMIT', '512M'))
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        raise SystemExit(f'Missing cache database: {args.db}')
    with CacheStore(args.db) as store:
        removed = store.cleanup(timedelta(days=args.retention_days), timedelta(minutes=args.stuck_minutes))
        print(f"[CACHE] removed {removed} rows from {args.db}")
        if args.process > 0:
            try:
                budget = ProcessingBudget(parse_size(args.memory_limit), QUEUE_FRACTION)
            except ConfigError as e:
                raise SystemExit(f'[ERROR] {e}')
            done = process_queue(store, budget, limit=args.process)
            print(f"[CACHE] compacted {done} queued rows")


if __name__ == '__main__':
    main()
