"""Allow ``python -m eventmap`` to launch the map service."""

from eventmap import run

if __name__ == "__main__":
    run()
