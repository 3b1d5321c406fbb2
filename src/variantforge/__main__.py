"""Allow ``python -m variantforge``."""

from variantforge.cli import main

if __name__ == "__main__":
    main()
