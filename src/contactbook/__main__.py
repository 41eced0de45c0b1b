"""Entry point: python -m contactbook [shell|export]

- No args / "shell": Interactive shell over the configured data file
- "export":          Write Markdown contact cards to the configured export dir
"""

from __future__ import annotations

import logging
import sys

from contactbook.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_shell() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from contactbook.shell import Shell
    from contactbook.store import ContactBook

    book = ContactBook(config.data_file)
    Shell(book, export_dir=config.export_dir).run()


def _run_export() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from contactbook.export import export_contacts
    from contactbook.store import ContactBook

    book = ContactBook(config.data_file)
    paths = export_contacts(book, config.export_dir)
    print(f"Exported {len(paths)} card(s) to {config.export_dir}")


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "shell"

    if cmd == "shell":
        _run_shell()
    elif cmd == "export":
        _run_export()
    else:
        print("Usage: python -m contactbook [shell|export]")
        print("  shell   — Interactive shell (default)")
        print("  export  — Write Markdown contact cards")
        sys.exit(1)


if __name__ == "__main__":
    main()
