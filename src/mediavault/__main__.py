"""Allow ``python -m mediavault``."""

from mediavault.cli.typer_app import main_entry

if __name__ == "__main__":
    main_entry()
