#!/usr/bin/env python3
"""
Step 02: Sweep the optimized-CSS cache.

Removes rows older than the retention window (7 days) and rows stuck
"in progress" for more than an hour:

  python reduce_02_cleanup_cache.py --db css_optimizer.db

With --process N it then compacts up to N rows waiting in the queue.
"""

from css_reducer.cache import main


if __name__ == "__main__":
    main()
