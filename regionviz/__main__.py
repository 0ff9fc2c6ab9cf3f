"""``python -m regionviz`` support."""

from regionviz.main import main

if __name__ == "__main__":
    raise SystemExit(main())
