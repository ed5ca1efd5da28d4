#!/usr/bin/env python3
"""
Step 01: Reduce a page's stylesheets to the rules its HTML uses.

Thin wrapper around css_reducer/cli.py so you can run:

  python reduce_01_optimize_page.py --html page.html --css theme=style.css --out optimized.css

Flags pass-through to the underlying tool:
  --css HANDLE=SRC         Stylesheet in load order (repeatable)
  --exclude-class TEXT     Always keep selectors containing TEXT (repeatable)
  --no-media               Drop @media blocks
  --cache-db PATH          Serve/store results in a SQLite cache
  --style-block            Wrap output in <style>
  --debug                  Verbose diagnostics
"""

from css_reducer.cli import main


if __name__ == "__main__":
    main()
