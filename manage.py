#!/usr/bin/env python
"""Django's command-line utility for administrative tasks (dev settings by default)."""
import os
import sys


def main():
    # Local runs use settings_dev (SQLite, DEBUG=True, eager Celery)
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "manime.settings_dev")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Make sure it's installed:\n"
            "  pip install -e '.[test]'"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
