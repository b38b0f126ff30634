"""Module entrypoint for ``python -m panefm``.

All argument parsing and runtime setup happen in ``panefm.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
