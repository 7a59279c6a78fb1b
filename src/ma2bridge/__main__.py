"""Entry point for `python -m ma2bridge`."""

from ma2bridge.cli.main import main

if __name__ == "__main__":
    main()
